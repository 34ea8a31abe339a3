from fastapi import Request
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool

from nexus.core.config import Settings


# ── Base class for all models ─────────────────────────────────────────
class Base(DeclarativeBase):
    pass


# ── Async Engine ──────────────────────────────────────────────────────
# Built by the composition root (create_app / seed script / tests) and
# handed around explicitly. Nothing here is created at import time.
def build_engine(settings: Settings) -> AsyncEngine:
    if settings.db_is_sqlite:
        # aiosqlite: one shared connection so ":memory:" survives across sessions
        return create_async_engine(
            settings.DATABASE_URL,
            echo=settings.DEBUG,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_async_engine(
        settings.DATABASE_URL,
        echo=settings.DEBUG,   # Set DEBUG=false in .env to stop SQL logs
        pool_size=settings.DATABASE_POOL_SIZE,
        max_overflow=settings.DATABASE_MAX_OVERFLOW,
        pool_pre_ping=True,    # Drops stale connections before use
    )


# ── Session Factory ───────────────────────────────────────────────────
def build_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


async def create_all(engine: AsyncEngine) -> None:
    # Importing the models package registers every table on Base.metadata
    import nexus.models.tables  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


# ── FastAPI Dependency ────────────────────────────────────────────────
# Inject this into any route with: db: AsyncSession = Depends(get_db)
async def get_db(request: Request):
    session_factory: async_sessionmaker[AsyncSession] = request.app.state.sessionmaker
    async with session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
