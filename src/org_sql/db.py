from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, List, Sequence

from loguru import logger
from sqlalchemy import event, inspect
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from org_sql.config import Dialect, OrgSqlConfig
from org_sql.schema import SCHEMA, Schema
from org_sql.sql import compile_create_schema, compile_drop_schema, compile_select
from org_sql.sync.utils import FileMeta


def _enable_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_engine(db_url: str, dialect: Dialect) -> AsyncEngine:
    """Create an async engine; sqlite connections get foreign keys switched on."""
    logger.debug(f"Creating engine for db_url: {db_url}")
    if dialect == Dialect.SQLITE:
        engine = create_async_engine(db_url, connect_args={"check_same_thread": False})
        event.listen(engine.sync_engine, "connect", _enable_foreign_keys)
        return engine
    return create_async_engine(db_url)


async def execute_statements(engine: AsyncEngine, statements: Sequence[str]) -> None:
    """Run compiled statements in order inside one transaction."""
    async with engine.begin() as conn:
        for statement in statements:
            await conn.exec_driver_sql(statement)
    logger.debug(f"Executed {len(statements)} statements")


async def fetch_rows(engine: AsyncEngine, sql: str) -> List[Dict[str, Any]]:
    """Run a query and return its rows as dicts."""
    async with engine.connect() as conn:
        result = await conn.exec_driver_sql(sql)
        return [dict(row) for row in result.mappings().all()]


async def get_table_names(engine: AsyncEngine) -> List[str]:
    async with engine.connect() as conn:
        return await conn.run_sync(lambda sync_conn: inspect(sync_conn).get_table_names())


async def init_db(engine: AsyncEngine, dialect: Dialect, schema: Schema = SCHEMA) -> bool:
    """
    Create the schema unless it is already there.

    Returns:
        True if the schema was created
    """
    if schema.tables[0].name in await get_table_names(engine):
        logger.debug("Database already initialized")
        return False
    await execute_statements(engine, compile_create_schema(dialect, schema))
    logger.info(f"Created {len(schema.tables)} tables")
    return True


async def reset_db(engine: AsyncEngine, dialect: Dialect, schema: Schema = SCHEMA) -> None:
    """Drop every table and enum type, then create them again."""
    await execute_statements(
        engine, [*compile_drop_schema(dialect, schema), *compile_create_schema(dialect, schema)]
    )
    logger.info("Database reset")


async def get_store_files(engine: AsyncEngine, dialect: Dialect) -> List[FileMeta]:
    """Return the store side of a sync: one FileMeta per ``files`` row."""
    rows = await fetch_rows(engine, compile_select(dialect, "files", ["file_path", "md5", "size"]))
    return [
        FileMeta(hash=row["md5"], store_path=row["file_path"], size=row["size"]) for row in rows
    ]


@asynccontextmanager
async def engine_context(
    config: OrgSqlConfig,
    init: bool = True,
) -> AsyncGenerator[AsyncEngine, None]:
    """Create an engine for the configured database and dispose of it on exit."""
    if config.database_backend == Dialect.SQLITE and not config.database_url:
        config.database_path.parent.mkdir(parents=True, exist_ok=True)

    engine = create_engine(config.get_db_url(), config.database_backend)
    try:
        if init:
            logger.debug("Initializing database...")
            await init_db(engine, config.database_backend)

        yield engine
    finally:
        await engine.dispose()
