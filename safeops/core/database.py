from sqlmodel import SQLModel
from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from safeops.core.config import settings


def build_engine(url: str, echo: bool = False) -> AsyncEngine:
    """Create an async engine. SQLite gets foreign keys switched on so constraint
    failures behave the way they do on PostgreSQL; in-memory SQLite shares one connection.
    """
    kwargs = {"echo": echo, "future": True}
    is_sqlite = make_url(url).get_backend_name() == "sqlite"
    if is_sqlite and make_url(url).database in (None, "", ":memory:"):
        kwargs["poolclass"] = StaticPool
        kwargs["connect_args"] = {"check_same_thread": False}

    eng = create_async_engine(url, **kwargs)

    if is_sqlite:
        @event.listens_for(eng.sync_engine, "connect")
        def _enable_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return eng


def build_sessionmaker(eng: AsyncEngine) -> sessionmaker:
    return sessionmaker(eng, class_=AsyncSession, expire_on_commit=False)


# Default async engine; the container builds its session factory from it
engine = build_engine(settings.DATABASE_URL)


async def init_db(eng: AsyncEngine = engine) -> None:
    """Run SQLModel metadata.create_all() using an async connection.
    Schema migrations are managed outside this service; this helper is for
    local dev, seeding and tests.
    """
    import safeops.models  # noqa: F401  (registers tables on the metadata)

    async with eng.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)


async def drop_db(eng: AsyncEngine = engine) -> None:
    async with eng.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
