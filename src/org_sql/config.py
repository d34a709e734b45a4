"""Configuration management for org-sql."""

from enum import Enum
from pathlib import Path
from typing import Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DATABASE_NAME = "org-sql.db"
DATA_DIR_NAME = "data"

ALL = "all"

# A list of excluded values, or "all" to exclude the whole category
Exclusion = Union[Literal["all"], List[str]]


class Dialect(str, Enum):
    """SQL dialects the compiler can target."""

    SQLITE = "sqlite"
    POSTGRES = "postgres"


def is_excluded(exclusion: Exclusion, value: Optional[str]) -> bool:
    """Return True if value is covered by an exclusion setting.

    Examples:
        >>> is_excluded("all", "https")
        True
        >>> is_excluded(["https"], "file")
        False
    """
    if exclusion == ALL:
        return True
    return value in exclusion


class MapperConfig(BaseModel):
    """Options controlling which rows the outline mapper emits.

    Passed explicitly into every mapper call; never read from global state.
    """

    model_config = ConfigDict(frozen=True)

    excluded_tags: Exclusion = Field(default_factory=list)
    use_tag_inheritance: bool = True
    exclude_inherited_tags: bool = False
    tags_excluded_from_inheritance: List[str] = Field(default_factory=list)
    excluded_properties: Exclusion = Field(default_factory=list)
    excluded_link_types: Exclusion = Field(default_factory=list)
    excluded_contents_timestamp_types: Union[
        Literal["all"], List[Literal["active", "inactive"]]
    ] = Field(default_factory=list)
    excluded_headline_planning_types: Union[
        Literal["all"], List[Literal["scheduled", "deadline", "closed"]]
    ] = Field(default_factory=list)
    excluded_logbook_types: Exclusion = Field(default_factory=list)
    exclude_clocks: bool = False
    exclude_clock_notes: bool = False
    logbook_templates: Dict[str, str] = Field(default_factory=dict)
    log_into_drawer: Optional[str] = "LOGBOOK"
    todo_keywords: List[str] = Field(default_factory=lambda: ["TODO", "DONE"])

    @field_validator("log_into_drawer", mode="before")
    @classmethod
    def normalize_drawer(cls, v):
        """Accept org-style booleans for the logbook drawer setting."""
        if v is True:
            return "LOGBOOK"
        if v is False or v in ("", "off", "nil"):
            return None
        return v


class OrgSqlConfig(BaseSettings):
    """Configuration for an org-sql installation."""

    # Default to ~/.org-sql but allow override with env var
    home: Path = Field(
        default_factory=lambda: Path.home() / ".org-sql",
        description="Base path for org-sql files",
    )
    org_dirs: List[Path] = Field(
        default_factory=list,
        description="Directories scanned for .org files",
    )
    database_backend: Dialect = Dialect.SQLITE
    database_url: Optional[str] = Field(
        default=None,
        description="SQLAlchemy URL; defaults to a sqlite file under home",
    )
    log_level: str = "WARNING"
    mapper: MapperConfig = Field(default_factory=MapperConfig)

    model_config = SettingsConfigDict(
        env_prefix="ORG_SQL_",
        extra="ignore",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
    )

    @property
    def database_path(self) -> Path:
        """Get SQLite database path."""
        return self.home / DATA_DIR_NAME / DATABASE_NAME

    def get_db_url(self) -> str:
        """Get SQLAlchemy URL for the configured backend."""
        if self.database_url:
            return self.database_url
        if self.database_backend == Dialect.POSTGRES:
            raise ValueError("database_url is required for the postgres backend")
        return f"sqlite+aiosqlite:///{self.database_path}"

    @field_validator("home")
    @classmethod
    def ensure_path_exists(cls, v: Path) -> Path:
        """Ensure home path exists."""
        if not v.exists():
            v.mkdir(parents=True)
        return v
