from typing import Optional

from sqlalchemy import MetaData, UniqueConstraint, event
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from blog_api.config import settings
from blog_api.middleware import install_query_counter

# Shared table registry; tables are declared in ``blog_api.models``.
metadata = MetaData()


def install_sqlite_savepoints(engine: AsyncEngine) -> None:
    """
    Make SAVEPOINT work on SQLite engines.

    The sqlite3 driver emits its own BEGIN lazily and commits before DDL,
    which breaks ``begin_nested()``.  This disables the driver's handling
    and emits BEGIN from SQLAlchemy instead (the recipe from the
    SQLAlchemy aiosqlite dialect docs).  No-op for other backends.
    """
    if engine.dialect.name != "sqlite":
        return
    sync_engine = engine.sync_engine

    @event.listens_for(sync_engine, "connect")
    def _disable_driver_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(sync_engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")


# Module-level engine variable allows tests to override with a test engine.
engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    pool_pre_ping=True,
)

install_sqlite_savepoints(engine)
# Register the per-request SQL query counter on the production engine.
install_query_counter(engine)

async_session = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


_SQLITE_UNIQUE_PREFIX = "UNIQUE constraint failed: "


def violated_constraint(exc: IntegrityError) -> Optional[str]:
    """
    Name of the unique constraint *exc* reports, or None when it cannot be
    told (another kind of integrity error, or an unknown driver).

    asyncpg reports the name directly.  SQLite only lists the columns
    ("UNIQUE constraint failed: articles.slug"), so the name is looked up
    among the table's named unique constraints.
    """
    name = getattr(exc.orig.__cause__, "constraint_name", None) or getattr(exc.orig, "constraint_name", None)
    if name:
        return name

    message = str(exc.orig)
    if not message.startswith(_SQLITE_UNIQUE_PREFIX):
        return None
    qualified = [part.strip() for part in message[len(_SQLITE_UNIQUE_PREFIX):].split(",")]
    table_name = qualified[0].split(".")[0]
    columns = {part.split(".")[-1] for part in qualified}
    table = metadata.tables.get(table_name)
    if table is None:
        return None
    for constraint in table.constraints:
        if isinstance(constraint, UniqueConstraint) and set(constraint.columns.keys()) == columns:
            return constraint.name
    return None


async def get_db():
    async with async_session() as session:
        try:
            yield session
            await session.commit()
        except BaseException:
            # BaseException so a cancelled request also discards its writes.
            await session.rollback()
            raise
