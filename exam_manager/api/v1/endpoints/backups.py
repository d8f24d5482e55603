"""
Backup endpoints (Admin only) - manual backup, restore and history.
"""

from typing import Annotated

from fastapi import APIRouter, Depends

from exam_manager.api.v1.responses import respond
from exam_manager.config import get_settings
from exam_manager.core.dependencies import AdminUser
from exam_manager.db.session import Uow
from exam_manager.services.backup_service import BackupRunner, BackupService

router = APIRouter()


def get_backup_runner() -> BackupRunner:
    """Overridden in tests, where no PostgreSQL client tools are available."""
    return BackupRunner(get_settings())


Runner = Annotated[BackupRunner, Depends(get_backup_runner)]


@router.post("/manual")
async def manual_backup(uow: Uow, runner: Runner, admin: AdminUser):
    return respond(await BackupService(uow, get_settings(), runner).manual_backup(admin.id))


@router.post("/{backup_id}/restore")
async def restore_backup(uow: Uow, backup_id: int, runner: Runner, admin: AdminUser):
    return respond(await BackupService(uow, get_settings(), runner).restore(backup_id, admin.id))


@router.get("")
async def list_backups(uow: Uow, runner: Runner, admin: AdminUser):
    """Newest first."""
    return respond(await BackupService(uow, get_settings(), runner).get_all())
