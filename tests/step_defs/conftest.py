"""
BDD fixtures - a synchronous TestClient over a file-backed SQLite database.
Challenge: pytest-bdd steps are plain functions, so the database is prepared with
asyncio.run and every request opens its own connection (NullPool) on the app's loop.
"""

import asyncio

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from exam_manager.db.base import Base
from exam_manager.db.repositories.unit_of_work import UnitOfWork
from exam_manager.db.session import get_uow
from exam_manager.main import app
from helpers import enable_sqlite_foreign_keys


@pytest.fixture
def bdd_session_maker(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'bdd.db'}", poolclass=NullPool)
    enable_sqlite_foreign_keys(engine)

    async def create_schema():
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    asyncio.run(create_schema())
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)
    asyncio.run(engine.dispose())


@pytest.fixture
def run_with_uow(bdd_session_maker):
    """Run ``work(uow)`` to completion outside the app, for Given steps."""

    def run(work):
        async def _run():
            async with UnitOfWork(bdd_session_maker()) as uow:
                return await work(uow)

        return asyncio.run(_run())

    return run


@pytest.fixture
def sync_client(bdd_session_maker):
    async def override_get_uow():
        async with UnitOfWork(bdd_session_maker()) as uow:
            yield uow

    app.dependency_overrides[get_uow] = override_get_uow
    # Not entered as a context manager, so the startup admin seeding does not run
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def context() -> dict:
    """Shared state between steps of one scenario."""
    return {"headers": {}}
