"""
Unit of work - one repository per entity over a single shared session.
Challenge: Several entities staged in one request must commit or fail together.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from exam_manager.db.models import (
    BackupHistory,
    Exam,
    ExamBoard,
    Examiner,
    ExamType,
    FileHistory,
    Institution,
    Operator,
    PasswordReset,
    Profession,
)
from exam_manager.db.repositories.base_repository import Repository

logger = logging.getLogger(__name__)


class UnitOfWork:
    """Aggregates repositories; ``save`` is the only place anything is committed."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.exams = Repository(session, Exam)
        self.exam_boards = Repository(session, ExamBoard)
        self.examiners = Repository(session, Examiner)
        self.exam_types = Repository(session, ExamType)
        self.professions = Repository(session, Profession)
        self.institutions = Repository(session, Institution)
        self.operators = Repository(session, Operator)
        self.password_resets = Repository(session, PasswordReset)
        self.backup_histories = Repository(session, BackupHistory)
        self.file_histories = Repository(session, FileHistory)
        self._closed = False

    @property
    def repositories(self) -> list[Repository]:
        return [value for value in vars(self).values() if isinstance(value, Repository)]

    @property
    def closed(self) -> bool:
        return self._closed

    async def save(self) -> None:
        """Commit everything staged so far. On failure nothing is persisted and the error propagates."""
        try:
            await self.session.commit()
        except Exception:
            logger.warning("Unit of work commit failed; rolling back")
            await self.session.rollback()
            raise

    async def rollback(self) -> None:
        await self.session.rollback()

    async def close(self) -> None:
        """Discard anything unsaved, close the session and invalidate all repositories."""
        if self._closed:
            return
        try:
            await self.session.close()
        finally:
            for repo in self.repositories:
                repo.detach()
            self._closed = True

    async def __aenter__(self) -> "UnitOfWork":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
