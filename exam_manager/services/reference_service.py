"""
Lookup data services: exam types, professions and institutions.
Design: Same rules for all three (one unique business key, hard delete refused while
any exam, deleted or not, still points at the row), so one generic base carries them.
"""

import logging
from typing import Any, ClassVar, Generic, TypeVar

from pydantic import BaseModel
from sqlalchemy import and_

from exam_manager.db.base import Base
from exam_manager.db.models import Exam, ExamType, Institution, Profession
from exam_manager.db.repositories.base_repository import Repository
from exam_manager.db.repositories.unit_of_work import UnitOfWork
from exam_manager.schemas.common import Page
from exam_manager.schemas.reference import ExamTypeResponse, InstitutionResponse, ProfessionResponse
from exam_manager.services.result import ServiceResult, changed_fields, service_boundary

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=Base)
ResponseT = TypeVar("ResponseT", bound=BaseModel)


class LookupService(Generic[ModelT, ResponseT]):
    """CRUD for a lookup table with a single unique business key."""

    model: ClassVar[type[Base]]
    response_schema: ClassVar[type[BaseModel]]
    repository_name: ClassVar[str]
    label: ClassVar[str]
    code_prefix: ClassVar[str]
    unique_field: ClassVar[str]
    unique_label: ClassVar[str]
    duplicate_code: ClassVar[str]
    exam_fk: ClassVar[str]
    order_field: ClassVar[str]

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    @property
    def repo(self) -> Repository[ModelT]:
        return getattr(self.uow, self.repository_name)

    def _not_found(self, entity_id: int) -> ServiceResult:
        return ServiceResult.failed(f"{self.label} {entity_id} not found.", f"{self.code_prefix}_NOT_FOUND")

    async def _check_unique(self, value: Any, exclude_id: int | None = None) -> ServiceResult | None:
        column = getattr(self.model, self.unique_field)
        predicate = column == value
        if exclude_id is not None:
            predicate = and_(predicate, self.model.id != exclude_id)
        if await self.repo.exists(predicate):
            return ServiceResult.failed(
                f"{self.unique_label} '{value}' is already taken.", self.duplicate_code, self.unique_field
            )
        return None

    def _to_response(self, entity: ModelT) -> ResponseT:
        return self.response_schema.model_validate(entity)

    @service_boundary("creating a lookup record")
    async def create(self, data: BaseModel) -> ServiceResult[ResponseT]:
        values = data.model_dump()
        invalid = await self._check_unique(values[self.unique_field])
        if invalid:
            return invalid
        entity = self.model(**values)
        await self.repo.insert(entity)
        await self.uow.save()
        logger.info("Created %s %s", self.label.lower(), entity.id)
        return ServiceResult.success(self._to_response(entity), "Create successful.")

    @service_boundary("fetching a lookup record")
    async def get(self, entity_id: int) -> ServiceResult[ResponseT]:
        entity = await self.repo.get_by_key(entity_id)
        if entity is None:
            return self._not_found(entity_id)
        return ServiceResult.success(self._to_response(entity))

    @service_boundary("listing lookup records")
    async def get_page(self, page: int = 1, page_size: int = 20) -> ServiceResult[Page[ResponseT]]:
        order = [getattr(self.model, self.order_field), self.model.id]
        rows, total = await self.repo.get_paged(page=page, page_size=page_size, order_by=order)
        return ServiceResult.success(
            Page(items=[self._to_response(r) for r in rows], total=total, page=page, page_size=page_size)
        )

    @service_boundary("listing lookup records")
    async def list_all(self) -> ServiceResult[list[ResponseT]]:
        rows = await self.repo.get(order_by=[getattr(self.model, self.order_field)])
        return ServiceResult.success([self._to_response(r) for r in rows])

    @service_boundary("updating a lookup record")
    async def update(self, entity_id: int, data: BaseModel) -> ServiceResult[ResponseT]:
        entity = await self.repo.get_by_key(entity_id)
        if entity is None:
            return self._not_found(entity_id)
        changes = changed_fields(entity, data)
        if not changes:
            return ServiceResult.success(self._to_response(entity), "No changes detected to update.")
        if self.unique_field in changes:
            invalid = await self._check_unique(changes[self.unique_field], exclude_id=entity_id)
            if invalid:
                return invalid
        for name, value in changes.items():
            setattr(entity, name, value)
        await self.uow.save()
        logger.info("Updated %s %s: %s", self.label.lower(), entity_id, sorted(changes))
        return ServiceResult.success(self._to_response(entity), "Update successful.")

    @service_boundary("deleting a lookup record")
    async def delete(self, entity_id: int) -> ServiceResult[None]:
        entity = await self.repo.get_by_key(entity_id)
        if entity is None:
            return self._not_found(entity_id)
        if await self.uow.exams.exists_with_deleted(getattr(Exam, self.exam_fk) == entity_id):
            return ServiceResult.failed(
                f"{self.label} {entity_id} is still used by exams.", f"{self.code_prefix}_IN_USE"
            )
        await self.repo.delete(entity_id)
        await self.uow.save()
        logger.info("Deleted %s %s", self.label.lower(), entity_id)
        return ServiceResult.success(message=f"{self.label} deleted successfully.")


class ExamTypeService(LookupService[ExamType, ExamTypeResponse]):
    model = ExamType
    response_schema = ExamTypeResponse
    repository_name = "exam_types"
    label = "Exam type"
    code_prefix = "EXAM_TYPE"
    unique_field = "type_name"
    unique_label = "Exam type name"
    duplicate_code = "EXAM_TYPE_NAME_DUPLICATE"
    exam_fk = "exam_type_id"
    order_field = "type_name"


class ProfessionService(LookupService[Profession, ProfessionResponse]):
    model = Profession
    response_schema = ProfessionResponse
    repository_name = "professions"
    label = "Profession"
    code_prefix = "PROFESSION"
    unique_field = "keor_id"
    unique_label = "KEOR ID"
    duplicate_code = "PROFESSION_KEOR_ID_DUPLICATE"
    exam_fk = "profession_id"
    order_field = "profession_name"


class InstitutionService(LookupService[Institution, InstitutionResponse]):
    model = Institution
    response_schema = InstitutionResponse
    repository_name = "institutions"
    label = "Institution"
    code_prefix = "INSTITUTION"
    unique_field = "educational_id"
    unique_label = "Educational ID"
    duplicate_code = "INSTITUTION_ID_DUPLICATE"
    exam_fk = "institution_id"
    order_field = "name"
