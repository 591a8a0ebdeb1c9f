"""SQLAlchemy async engine and session factory construction."""

from pathlib import Path

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool


def _get_async_url(url: str) -> str:
    """Convert a sync SQLAlchemy URL to an async one."""
    if url.startswith("sqlite:///"):
        return url.replace("sqlite:///", "sqlite+aiosqlite:///", 1)
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    return url


def _ensure_sqlite_directory(async_url: str) -> None:
    prefix = "sqlite+aiosqlite:///"
    if not async_url.startswith(prefix):
        return
    path = async_url[len(prefix):]
    if path and path != ":memory:":
        Path(path).parent.mkdir(parents=True, exist_ok=True)


def create_engine_from_url(url: str, *, echo: bool = False) -> AsyncEngine:
    """Build an async engine; in-memory SQLite shares one connection."""
    async_url = _get_async_url(url)
    if async_url.endswith(":memory:"):
        return create_async_engine(
            async_url,
            echo=echo,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    _ensure_sqlite_directory(async_url)
    return create_async_engine(async_url, echo=echo, future=True)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
