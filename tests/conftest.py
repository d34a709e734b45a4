"""Common test fixtures."""

import os
from pathlib import Path
from textwrap import dedent
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine

from org_sql import db
from org_sql.config import MapperConfig, OrgSqlConfig
from org_sql.outline import OutlineMapper, OutlineParser
from org_sql.sync import FileScanner
from org_sql.sync.sync_service import SyncService


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def config_home(tmp_path, monkeypatch) -> Path:
    # Patch HOME environment variable for the duration of the test
    monkeypatch.setenv("HOME", str(tmp_path))
    # On Windows, also set USERPROFILE
    if os.name == "nt":
        monkeypatch.setenv("USERPROFILE", str(tmp_path))
    monkeypatch.setenv("ORG_SQL_HOME", str(tmp_path / "org-sql"))
    return tmp_path


@pytest.fixture
def app_config(config_home) -> OrgSqlConfig:
    """Create test app configuration backed by a temporary sqlite file."""
    return OrgSqlConfig(home=config_home / "org-sql")


@pytest_asyncio.fixture(scope="function")
async def engine(app_config: OrgSqlConfig) -> AsyncGenerator[AsyncEngine, None]:
    """Engine for an initialized temporary database."""
    async with db.engine_context(app_config) as engine:
        yield engine


@pytest.fixture
def org_dir(tmp_path) -> Path:
    path = tmp_path / "org"
    path.mkdir()
    return path


@pytest.fixture
def parser() -> OutlineParser:
    return OutlineParser()


@pytest.fixture
def mapper() -> OutlineMapper:
    return OutlineMapper(MapperConfig())


@pytest.fixture
def file_scanner() -> FileScanner:
    return FileScanner()


@pytest.fixture
def sync_service(app_config: OrgSqlConfig, engine: AsyncEngine) -> SyncService:
    return SyncService.from_config(app_config, engine)


@pytest.fixture
def sample_org() -> str:
    """A small outline touching most mapped structures."""
    return dedent("""\
        #+FILETAGS: :work:
        #+PROPERTY: owner alice
        * TODO [#A] Parent :proj:
        SCHEDULED: <2112-01-01 Fri>
        :PROPERTIES:
        :Effort: 1:30
        :END:
        Body with <2112-01-05 Tue> and [[https://orgmode.org][org]].
        ** Child :proj:home:
        See [[file:other.org]] and [2112-01-06 Wed].
        """)


@pytest.fixture
def logbook_org() -> str:
    """A done headline with a full logbook drawer."""
    return dedent("""\
        * DONE Task
        CLOSED: [2112-01-03 Sun 10:00]
        :LOGBOOK:
        - State "DONE"       from "TODO"       [2112-01-03 Sun 10:00]
        - Rescheduled from "<2112-01-01 Fri>" on [2112-01-02 Sat 09:00]
        - Note taken on [2112-01-02 Sat 08:00] \\\\
          remember the milk
        CLOCK: [2112-01-01 Fri 10:00]--[2112-01-01 Fri 11:00] =>  1:00
        - clock note here
        :END:
        """)
