"""
Lookup data endpoints - exam types, professions and institutions.
Design: The three resources share one router factory, as their services share one base.
"""

from fastapi import APIRouter, status
from pydantic import BaseModel

from exam_manager.api.v1.responses import respond, respond_patch_error
from exam_manager.core.dependencies import CurrentUser, Editor, PageQuery
from exam_manager.core.patch import PatchError, apply_patch
from exam_manager.db.session import Uow
from exam_manager.schemas.common import PatchOperation
from exam_manager.schemas.reference import (
    ExamTypeCreate,
    ExamTypeUpdate,
    InstitutionCreate,
    InstitutionUpdate,
    ProfessionCreate,
    ProfessionUpdate,
)
from exam_manager.services.reference_service import (
    ExamTypeService,
    InstitutionService,
    LookupService,
    ProfessionService,
)


def build_router(
    service_cls: type[LookupService],
    create_schema: type[BaseModel],
    update_schema: type[BaseModel],
) -> APIRouter:
    router = APIRouter()

    @router.post("", status_code=status.HTTP_201_CREATED)
    async def create(uow: Uow, data: create_schema, operator: Editor):  # type: ignore[valid-type]
        return respond(await service_cls(uow).create(data), status.HTTP_201_CREATED)

    @router.get("")
    async def list_page(uow: Uow, paging: PageQuery, operator: CurrentUser):
        return respond(await service_cls(uow).get_page(paging.page, paging.page_size))

    @router.get("/all")
    async def list_all(uow: Uow, operator: CurrentUser):
        """Every row, for dropdowns."""
        return respond(await service_cls(uow).list_all())

    @router.get("/{entity_id}")
    async def get(uow: Uow, entity_id: int, operator: CurrentUser):
        return respond(await service_cls(uow).get(entity_id))

    @router.patch("/{entity_id}")
    async def patch(uow: Uow, entity_id: int, operations: list[PatchOperation], operator: Editor):
        svc = service_cls(uow)
        current = await svc.get(entity_id)
        if not current.succeeded:
            return respond(current)
        try:
            update = apply_patch(current.data, operations, update_schema)
        except PatchError as exc:
            return respond_patch_error(exc)
        return respond(await svc.update(entity_id, update))

    @router.delete("/{entity_id}")
    async def delete(uow: Uow, entity_id: int, operator: Editor):
        """Hard delete; refused while any exam references the row."""
        return respond(await service_cls(uow).delete(entity_id))

    return router


exam_types_router = build_router(ExamTypeService, ExamTypeCreate, ExamTypeUpdate)
professions_router = build_router(ProfessionService, ProfessionCreate, ProfessionUpdate)
institutions_router = build_router(InstitutionService, InstitutionCreate, InstitutionUpdate)
