"""Database engine, session factory, and declarative base.

All tables (users, tenant profiles, properties, applications, leads) live
in a single schema and share one DeclarativeBase.

Session dependency for FastAPI:
  - get_db()  → request-scoped session, committed on success,
                rolled back on any exception
"""

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    create_async_engine,
    async_sessionmaker,
)
from sqlalchemy.orm import DeclarativeBase

from rentflow.config import settings

_engine_kwargs = {"echo": settings.debug}
if not settings.database_url.startswith("sqlite"):
    _engine_kwargs.update(pool_size=20, max_overflow=10)

engine = create_async_engine(settings.database_url, **_engine_kwargs)

async_session = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)


# ── Base class ──────────────────────────────────────────────

class Base(DeclarativeBase):
    pass


# ── Session dependency ──────────────────────────────────────

async def get_db() -> AsyncSession:
    """Yield a request-scoped session."""
    async with async_session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
