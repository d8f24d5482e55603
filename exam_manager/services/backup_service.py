"""
Backup service - pg_dump / pg_restore runs with a BackupHistory audit row per run.
Design: The subprocess work lives in BackupRunner so the service can be exercised
without PostgreSQL tools; tests pass in a fake runner.
"""

import asyncio
import logging
import os
from pathlib import Path

from sqlalchemy import and_
from sqlalchemy.engine import make_url

from exam_manager.config import Settings
from exam_manager.db.base import utcnow
from exam_manager.db.models import BackupActivityType, BackupHistory, Operator, Role
from exam_manager.db.repositories.unit_of_work import UnitOfWork
from exam_manager.schemas.history import BackupHistoryResponse
from exam_manager.services.mapping import backup_to_response
from exam_manager.services.result import ServiceResult, service_boundary

logger = logging.getLogger(__name__)

BACKUP_FAIL = "BACKUP_FAIL"
BACKUP_NOT_FOUND = "BACKUP_NOT_FOUND"
RESTORE_FAIL = "RESTORE_FAIL"
NO_ADMIN = "NO_ADMIN"


class BackupError(RuntimeError):
    """pg_dump or pg_restore could not be run or exited with an error."""


class BackupRunner:
    """Runs the PostgreSQL client tools against the configured database."""

    def __init__(self, settings: Settings):
        self.settings = settings

    def _connection(self) -> tuple[list[str], dict[str, str]]:
        url = make_url(self.settings.database_url)
        args = [
            "-h", url.host or "localhost",
            "-p", str(url.port or 5432),
            "-U", url.username or "postgres",
            "-d", url.database or "",
        ]
        env = {**os.environ, "PGPASSWORD": url.password or ""}
        return args, env

    async def _run(self, program: str, *args: str) -> None:
        connection, env = self._connection()
        try:
            process = await asyncio.create_subprocess_exec(
                program,
                *args,
                *connection,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=env,
            )
        except OSError as exc:
            raise BackupError(f"{program} could not be started: {exc}") from exc
        _, stderr = await process.communicate()
        if process.returncode != 0:
            raise BackupError(f"{Path(program).name} failed: {stderr.decode(errors='replace').strip()}")

    async def dump(self, target: Path) -> None:
        await self._run(self.settings.pg_dump_path, "-Fc", "-f", str(target))

    async def restore(self, source: Path) -> None:
        await self._run(self.settings.pg_restore_path, "--clean", "--if-exists", "--no-owner", str(source))


class BackupService:
    def __init__(self, uow: UnitOfWork, settings: Settings, runner: BackupRunner | None = None):
        self.uow = uow
        self.settings = settings
        self.runner = runner or BackupRunner(settings)
        self.backup_dir = Path(settings.backup_dir)

    async def _process(self, activity: BackupActivityType, operator_id: int) -> BackupHistory:
        """Dump the database and stage + save the history row whatever the outcome."""
        now = utcnow()
        history = BackupHistory(
            backup_date=now,
            file_name=f"backup_{now:%Y%m%d_%H%M%S}.dump",
            activity_type=activity,
            operator_id=operator_id,
        )
        try:
            self.backup_dir.mkdir(parents=True, exist_ok=True)
            await self.runner.dump(self.backup_dir / history.file_name)
            history.is_successful = True
            logger.info("%s backup written to %s", activity.value, history.file_name)
        except (BackupError, OSError) as exc:
            history.is_successful = False
            history.error_message = str(exc)
            logger.error("%s backup failed: %s", activity.value, exc)
        await self.uow.backup_histories.insert(history)
        await self.uow.save()
        return history

    @service_boundary("running a manual backup")
    async def manual_backup(self, operator_id: int) -> ServiceResult[BackupHistoryResponse]:
        history = await self._process(BackupActivityType.MANUAL, operator_id)
        if not history.is_successful:
            return ServiceResult.failed(f"Backup failed: {history.error_message}", BACKUP_FAIL)
        return ServiceResult.success(backup_to_response(history), "Backup completed successfully.")

    @service_boundary("running the automatic backup")
    async def automatic_backup(self) -> ServiceResult[BackupHistoryResponse]:
        """Backup on behalf of the first admin, then prune old automatic backups."""
        admin = await self.uow.operators.first(Operator.role == Role.ADMIN)
        if admin is None:
            logger.error("Automatic backup skipped: no admin operator")
            return ServiceResult.failed("Admin user missing.", NO_ADMIN)
        history = await self._process(BackupActivityType.AUTO, admin.id)
        if not history.is_successful:
            return ServiceResult.failed(f"Backup failed: {history.error_message}", BACKUP_FAIL)
        removed = await self._rotate()
        return ServiceResult.success(
            backup_to_response(history), f"Backup completed successfully. {removed} old backups removed."
        )

    async def _rotate(self) -> int:
        """Keep the newest ``backup_retention`` successful automatic backups."""
        backups = await self.uow.backup_histories.get(
            and_(
                BackupHistory.activity_type == BackupActivityType.AUTO,
                BackupHistory.is_successful.is_(True),
            ),
            order_by=[BackupHistory.backup_date.desc(), BackupHistory.id.desc()],
        )
        stale = backups[self.settings.backup_retention:]
        if not stale:
            return 0
        for backup in stale:
            (self.backup_dir / backup.file_name).unlink(missing_ok=True)
        await self.uow.backup_histories.delete_many(entities=stale)
        await self.uow.save()
        logger.info("Backup rotation removed %d old backups", len(stale))
        return len(stale)

    async def _restore_author(self, operator_id: int) -> int | None:
        """The acting operator, or the first admin when the restored snapshot predates them."""
        if await self.uow.operators.exists_with_deleted(Operator.id == operator_id):
            return operator_id
        admin = await self.uow.operators.first(Operator.role == Role.ADMIN)
        return admin.id if admin else None

    @service_boundary("restoring a backup")
    async def restore(self, backup_id: int, operator_id: int) -> ServiceResult[BackupHistoryResponse | None]:
        backup = await self.uow.backup_histories.get_by_key(backup_id)
        if backup is None:
            return ServiceResult.failed(f"Backup {backup_id} not found.", BACKUP_NOT_FOUND)
        backup_file = backup.file_name
        source = self.backup_dir / backup_file
        available = backup.is_successful and source.is_file()
        now = utcnow()
        history = BackupHistory(
            backup_date=now,
            file_name=f"restore_{now:%Y%m%d_%H%M%S}_{backup_file}",
            activity_type=BackupActivityType.RESTORE,
            operator_id=operator_id,
        )
        if not available:
            history.error_message = f"Backup file {backup_file} is not available"
            logger.error("Restore of backup %s failed: %s", backup_id, history.error_message)
        else:
            # pg_restore --clean drops every table; this session must not hold locks on any of them
            await self.uow.rollback()
            try:
                await self.runner.restore(source)
                history.is_successful = True
            except BackupError as exc:
                history.error_message = str(exc)
                logger.error("Restore of backup %s failed: %s", backup_id, exc)
            author = await self._restore_author(operator_id)
            if author is None:
                logger.warning("Restored database has no admin; restore of %s not recorded", backup_file)
                if not history.is_successful:
                    return ServiceResult.failed(f"Restore failed: {history.error_message}", RESTORE_FAIL)
                return ServiceResult.success(None, "Database restored successfully.")
            history.operator_id = author
        await self.uow.backup_histories.insert(history)
        await self.uow.save()
        if not history.is_successful:
            return ServiceResult.failed(f"Restore failed: {history.error_message}", RESTORE_FAIL)
        logger.info("Database restored from %s by operator %s", backup_file, operator_id)
        return ServiceResult.success(backup_to_response(history), "Database restored successfully.")

    @service_boundary("listing backups")
    async def get_all(self) -> ServiceResult[list[BackupHistoryResponse]]:
        rows = await self.uow.backup_histories.get(
            includes=["operator"], order_by=[BackupHistory.backup_date.desc(), BackupHistory.id.desc()]
        )
        return ServiceResult.success([backup_to_response(r) for r in rows])
