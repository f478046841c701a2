from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine


def _normalize_db_url(url: str | None) -> str | None:
    # hosted postgres often hands out "postgres://..." , asyncpg/SQLAlchemy needs "postgresql+asyncpg://..."
    if not url:
        return None
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql+asyncpg://", 1)
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    if url.startswith("sqlite://"):
        return url.replace("sqlite://", "sqlite+aiosqlite://", 1)
    return url


def is_sqlite_url(url: str) -> bool:
    return url.startswith("sqlite")


def engine_kwargs(url: str) -> dict:
    if is_sqlite_url(url):
        return {"connect_args": {"timeout": 30}}
    # stock checks rely on row locks taken with SELECT ... FOR UPDATE on top of read committed
    return {"isolation_level": "READ COMMITTED", "pool_pre_ping": True}


def install_sqlite_locking(engine: AsyncEngine):
    """
    pysqlite defers BEGIN until the first write , so two transactions can both read
    stock before either decrements it. Take over BEGIN and open every transaction
    with BEGIN IMMEDIATE so writers are serialised from their first statement.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _disable_implicit_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")
