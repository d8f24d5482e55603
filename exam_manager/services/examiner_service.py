"""
Examiner service - CRUD with soft delete/restore and three unique personal fields.
"""

import logging
from datetime import date

from sqlalchemy import and_

from exam_manager.db.models import Examiner
from exam_manager.db.repositories.unit_of_work import UnitOfWork
from exam_manager.schemas.common import Page
from exam_manager.schemas.examiner import ExaminerCreate, ExaminerResponse, ExaminerUpdate
from exam_manager.services.mapping import deleted_by_names, examiner_to_response
from exam_manager.services.result import (
    BAD_REQUEST_INVALID_FIELDS,
    ServiceResult,
    changed_fields,
    service_boundary,
)

logger = logging.getLogger(__name__)

EXAMINER_NOT_FOUND = "EXAMINER_NOT_FOUND"

# field -> (error code, label used in messages)
UNIQUE_FIELDS = {
    "identity_card_number": ("IDENTITY_CARD_DUPLICATE", "Identity card number"),
    "email": ("EMAIL_DUPLICATE", "Email"),
    "phone": ("PHONE_DUPLICATE", "Phone number"),
}


class ExaminerService:
    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def _check_unique(self, values: dict, exclude_id: int | None = None) -> ServiceResult | None:
        """First conflicting unique field among ``values`` as a failed result, else None."""
        for name, (code, label) in UNIQUE_FIELDS.items():
            if name not in values:
                continue
            predicate = getattr(Examiner, name) == values[name]
            if exclude_id is not None:
                predicate = and_(predicate, Examiner.id != exclude_id)
            if await self.uow.examiners.exists_with_deleted(predicate):
                return ServiceResult.failed(f"{label} '{values[name]}' is already in use.", code, name)
        return None

    @staticmethod
    def _check_birth_date(value: date) -> ServiceResult | None:
        if value > date.today():
            return ServiceResult.failed(
                "Date of birth cannot be in the future.", BAD_REQUEST_INVALID_FIELDS, "date_of_birth"
            )
        return None

    @service_boundary("creating an examiner")
    async def create(self, data: ExaminerCreate) -> ServiceResult[ExaminerResponse]:
        values = data.model_dump()
        invalid = self._check_birth_date(data.date_of_birth) or await self._check_unique(values)
        if invalid:
            return invalid
        examiner = Examiner(**values)
        await self.uow.examiners.insert(examiner)
        await self.uow.save()
        logger.info("Created examiner %s", examiner.id)
        return ServiceResult.success(examiner_to_response(examiner), "Create successful.")

    @service_boundary("fetching an examiner")
    async def get(self, examiner_id: int) -> ServiceResult[ExaminerResponse]:
        examiner = await self.uow.examiners.get_by_key(examiner_id)
        if examiner is None:
            return ServiceResult.failed(f"Examiner {examiner_id} not found.", EXAMINER_NOT_FOUND)
        return ServiceResult.success(examiner_to_response(examiner))

    @service_boundary("listing examiners")
    async def get_page(self, page: int = 1, page_size: int = 20) -> ServiceResult[Page[ExaminerResponse]]:
        rows, total = await self.uow.examiners.get_paged(
            page=page, page_size=page_size, order_by=[Examiner.last_name, Examiner.first_name, Examiner.id]
        )
        return ServiceResult.success(
            Page(items=[examiner_to_response(r) for r in rows], total=total, page=page, page_size=page_size)
        )

    @service_boundary("listing deleted examiners")
    async def list_deleted(self) -> ServiceResult[list[ExaminerResponse]]:
        rows = await self.uow.examiners.get_with_deleted(Examiner.is_deleted.is_(True))
        names = await deleted_by_names(self.uow, rows)
        return ServiceResult.success([examiner_to_response(r, names) for r in rows])

    @service_boundary("updating an examiner")
    async def update(self, examiner_id: int, data: ExaminerUpdate) -> ServiceResult[ExaminerResponse]:
        examiner = await self.uow.examiners.get_by_key(examiner_id)
        if examiner is None:
            return ServiceResult.failed(f"Examiner {examiner_id} not found.", EXAMINER_NOT_FOUND)
        changes = changed_fields(examiner, data)
        if not changes:
            return ServiceResult.success(examiner_to_response(examiner), "No changes detected to update.")
        invalid = await self._check_unique(changes, exclude_id=examiner_id)
        if invalid is None and "date_of_birth" in changes:
            invalid = self._check_birth_date(changes["date_of_birth"])
        if invalid:
            return invalid
        for name, value in changes.items():
            setattr(examiner, name, value)
        await self.uow.save()
        logger.info("Updated examiner %s: %s", examiner.id, sorted(changes))
        return ServiceResult.success(examiner_to_response(examiner), "Update successful.")

    @service_boundary("deleting an examiner")
    async def delete(self, examiner_id: int, acting_operator_id: int) -> ServiceResult[None]:
        examiner = await self.uow.examiners.first_with_deleted(Examiner.id == examiner_id)
        if examiner is None:
            return ServiceResult.failed(f"Examiner {examiner_id} not found.", EXAMINER_NOT_FOUND)
        if examiner.is_deleted:
            return ServiceResult.failed(f"Examiner {examiner_id} is already deleted.", "EXAMINER_ALREADY_DELETED")
        await self.uow.examiners.soft_delete(examiner, acting_operator_id)
        await self.uow.save()
        logger.info("Examiner %s deleted by %s", examiner_id, acting_operator_id)
        return ServiceResult.success(message="Examiner deleted successfully.")

    @service_boundary("restoring an examiner")
    async def restore(self, examiner_id: int) -> ServiceResult[ExaminerResponse]:
        examiner = await self.uow.examiners.first_with_deleted(Examiner.id == examiner_id)
        if examiner is None:
            return ServiceResult.failed(f"Examiner {examiner_id} not found.", EXAMINER_NOT_FOUND)
        if not examiner.is_deleted:
            return ServiceResult.failed(f"Examiner {examiner_id} is not deleted.", "EXAMINER_ALREADY_RESTORED")
        await self.uow.examiners.restore(examiner)
        await self.uow.save()
        logger.info("Examiner %s restored", examiner_id)
        return ServiceResult.success(examiner_to_response(examiner), "Examiner restored successfully.")
