"""
Examiner endpoints - CRUD with soft delete and restore.
"""

from fastapi import APIRouter, status

from exam_manager.api.v1.responses import respond, respond_patch_error
from exam_manager.core.dependencies import CurrentUser, Editor, PageQuery
from exam_manager.core.patch import PatchError, apply_patch
from exam_manager.db.session import Uow
from exam_manager.schemas.common import PatchOperation
from exam_manager.schemas.examiner import ExaminerCreate, ExaminerUpdate
from exam_manager.services.examiner_service import ExaminerService

router = APIRouter()


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_examiner(uow: Uow, data: ExaminerCreate, operator: Editor):
    return respond(await ExaminerService(uow).create(data), status.HTTP_201_CREATED)


@router.get("")
async def list_examiners(uow: Uow, paging: PageQuery, operator: CurrentUser):
    return respond(await ExaminerService(uow).get_page(paging.page, paging.page_size))


@router.get("/deleted")
async def list_deleted_examiners(uow: Uow, operator: CurrentUser):
    return respond(await ExaminerService(uow).list_deleted())


@router.get("/{examiner_id}")
async def get_examiner(uow: Uow, examiner_id: int, operator: CurrentUser):
    return respond(await ExaminerService(uow).get(examiner_id))


@router.patch("/{examiner_id}")
async def patch_examiner(uow: Uow, examiner_id: int, operations: list[PatchOperation], operator: Editor):
    svc = ExaminerService(uow)
    current = await svc.get(examiner_id)
    if not current.succeeded:
        return respond(current)
    try:
        update = apply_patch(current.data, operations, ExaminerUpdate)
    except PatchError as exc:
        return respond_patch_error(exc)
    return respond(await svc.update(examiner_id, update))


@router.delete("/{examiner_id}")
async def delete_examiner(uow: Uow, examiner_id: int, operator: Editor):
    """Soft delete; the examiner's existing board seats are kept."""
    return respond(await ExaminerService(uow).delete(examiner_id, operator.id))


@router.post("/{examiner_id}/restore")
async def restore_examiner(uow: Uow, examiner_id: int, operator: Editor):
    return respond(await ExaminerService(uow).restore(examiner_id))
