"""
Async database session management.
Challenge: Connection pooling, one unit of work per request, proper cleanup.
Design: Dependency injection for request-scoped units of work (no connection leaks).
"""

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from exam_manager.config import get_settings
from exam_manager.db import soft_delete  # noqa: F401 - registers the soft-delete query filter
from exam_manager.db.repositories.unit_of_work import UnitOfWork

settings = get_settings()

# Async engine with connection pool
engine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
    pool_pre_ping=True,  # Verify connections before use
    pool_size=10,
    max_overflow=20,
)

# Session factory: one session per request
async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


async def get_uow() -> AsyncGenerator[UnitOfWork, None]:
    """Yield a unit of work per request. Whatever the handler did not save is discarded on exit."""
    async with UnitOfWork(async_session_maker()) as uow:
        yield uow


# Type alias for FastAPI dependency injection
Uow = Annotated[UnitOfWork, Depends(get_uow)]
