"""
File history service - audit trail of every import, export, template and report file.
"""

import logging

from exam_manager.db.models import FileAction, FileCategory, FileHistory
from exam_manager.db.repositories.unit_of_work import UnitOfWork
from exam_manager.schemas.common import FileDownload, Page
from exam_manager.schemas.history import FileHistoryResponse
from exam_manager.services.mapping import file_history_to_response
from exam_manager.services.result import BAD_REQUEST_INVALID_FIELDS, ServiceResult, service_boundary

logger = logging.getLogger(__name__)

FILE_NOT_FOUND = "FILE_NOT_FOUND"


class FileHistoryService:
    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    def _validate(self, file_name: str, content_type: str, content: bytes) -> ServiceResult | None:
        if not file_name or not file_name.strip():
            return ServiceResult.failed("File name is required.", BAD_REQUEST_INVALID_FIELDS, "file_name")
        if not content_type or not content_type.strip():
            return ServiceResult.failed("Content type is required.", BAD_REQUEST_INVALID_FIELDS, "content_type")
        if not content:
            return ServiceResult.failed("File content is empty.", BAD_REQUEST_INVALID_FIELDS, "content")
        return None

    async def stage(
        self,
        *,
        operator_id: int,
        file_name: str,
        content_type: str,
        content: bytes,
        action: FileAction,
        category: FileCategory = FileCategory.GENERAL,
        related_entity_id: int | None = None,
        is_successful: bool = True,
        processing_notes: str | None = None,
    ) -> ServiceResult[FileHistory]:
        """Validate and stage a history row; the caller's save commits it with its own changes."""
        invalid = self._validate(file_name, content_type, content)
        if invalid:
            return invalid
        history = FileHistory(
            operator_id=operator_id,
            file_name=file_name.strip(),
            content_type=content_type.strip(),
            file_size_in_bytes=len(content),
            file_content=content,
            action=action,
            category=category,
            related_entity_id=related_entity_id,
            is_successful=is_successful,
            processing_notes=processing_notes,
        )
        await self.uow.file_histories.insert(history)
        return ServiceResult.success(history)

    @service_boundary("recording file history")
    async def record(self, **kwargs) -> ServiceResult[FileHistoryResponse]:
        """Stage and save a history row on its own."""
        staged = await self.stage(**kwargs)
        if not staged.succeeded:
            return staged
        await self.uow.save()
        logger.info("Recorded file history %s (%s)", staged.data.file_name, staged.data.action.value)
        return ServiceResult.success(file_history_to_response(staged.data), "File history recorded.")

    @service_boundary("listing file history")
    async def get_page(self, page: int = 1, page_size: int = 20) -> ServiceResult[Page[FileHistoryResponse]]:
        """Newest first, with the operator's user name."""
        rows, total = await self.uow.file_histories.get_paged(
            page=page,
            page_size=page_size,
            includes=["operator"],
            order_by=[FileHistory.created_at.desc(), FileHistory.id.desc()],
        )
        return ServiceResult.success(
            Page(items=[file_history_to_response(r) for r in rows], total=total, page=page, page_size=page_size)
        )

    @service_boundary("downloading a file")
    async def get_content(self, history_id: int) -> ServiceResult[FileDownload]:
        history = await self.uow.file_histories.get_by_key(history_id)
        if history is None:
            return ServiceResult.failed(f"File history entry {history_id} not found.", FILE_NOT_FOUND)
        await self.uow.file_histories.load(history, "file_content")
        return ServiceResult.success(
            FileDownload(file_name=history.file_name, content_type=history.content_type, content=history.file_content)
        )
