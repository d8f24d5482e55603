"""
Celery tasks - periodic maintenance run by beat.
Challenge: Services are async; each task run gets its own loop and its own engine.
"""

import asyncio
import logging

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from exam_manager.config import get_settings
from exam_manager.db import soft_delete  # noqa: F401 - registers the soft-delete query filter
from exam_manager.db.repositories.unit_of_work import UnitOfWork
from exam_manager.queue.celery_app import celery_app
from exam_manager.services.backup_service import BackupService
from exam_manager.services.password_reset_service import PasswordResetService

logger = logging.getLogger(__name__)


def _run_async(coro):
    """Run async function from sync Celery task."""
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


async def _with_uow(work):
    """Run ``work(uow, settings)`` on a NullPool engine bound to this task's event loop."""
    settings = get_settings()
    engine = create_async_engine(settings.database_url, poolclass=NullPool)
    session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)
    try:
        async with UnitOfWork(session_maker()) as uow:
            return await work(uow, settings)
    finally:
        await engine.dispose()


async def _automatic_backup(uow: UnitOfWork, settings) -> dict:
    result = await BackupService(uow, settings).automatic_backup()
    return {"succeeded": result.succeeded, "message": result.message, "error_code": result.error_code}


async def _revoke_expired_tokens(uow: UnitOfWork, settings) -> int:
    return await PasswordResetService(uow, settings).revoke_expired_tokens()


@celery_app.task
def automatic_backup_task() -> dict:
    """Daily pg_dump as the first admin, with retention pruning."""
    outcome = _run_async(_with_uow(_automatic_backup))
    if not outcome["succeeded"]:
        logger.error("Automatic backup failed: %s", outcome["message"])
    return outcome


@celery_app.task
def revoke_expired_reset_tokens_task() -> int:
    """Revoke password reset tokens past their expiry."""
    return _run_async(_with_uow(_revoke_expired_tokens))


@celery_app.task
def dummy_health_task():
    """Simple task for queue health check (e.g. CI or monitoring)."""
    return "ok"
