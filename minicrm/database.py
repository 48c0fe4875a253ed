import sqlalchemy.event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from minicrm.config import settings

engine = create_async_engine(settings.DATABASE_URL, echo=False)


def enable_sqlite_pragmas(async_engine) -> None:
    """Turn on foreign keys, WAL mode and a busy timeout for SQLite connections."""
    if async_engine.dialect.name != "sqlite":
        return

    @sqlalchemy.event.listens_for(async_engine.sync_engine, "connect")
    def _set_sqlite_pragmas(dbapi_conn, _connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA busy_timeout=5000")
        cursor.close()


enable_sqlite_pragmas(engine)

async_session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_db():
    async with async_session_factory() as session:
        yield session
