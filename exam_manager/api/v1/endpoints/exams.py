"""
Exam endpoints - exams with their boards, soft delete/restore and the board report.
"""

from fastapi import APIRouter, Query, status

from exam_manager.api.v1.responses import respond, respond_file, respond_patch_error
from exam_manager.core.dependencies import CurrentUser, Editor, PageQuery
from exam_manager.core.patch import PatchError, apply_patch
from exam_manager.db.models import ExamStatus
from exam_manager.db.session import Uow
from exam_manager.schemas.common import PatchOperation
from exam_manager.schemas.exam import ExamCreate, ExamUpdate
from exam_manager.services.exam_service import ExamService

router = APIRouter()


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_exam(uow: Uow, data: ExamCreate, operator: Editor):
    """Create an exam with its board; the caller becomes the owning operator."""
    return respond(await ExamService(uow).create(data, operator.id), status.HTTP_201_CREATED)


@router.get("")
async def list_exams(
    uow: Uow,
    paging: PageQuery,
    operator: CurrentUser,
    exam_status: ExamStatus | None = Query(None, alias="status"),
):
    return respond(await ExamService(uow).get_page(paging.page, paging.page_size, exam_status))


@router.get("/deleted")
async def list_deleted_exams(uow: Uow, operator: CurrentUser):
    return respond(await ExamService(uow).list_deleted())


@router.get("/upcoming")
async def upcoming_exams(uow: Uow, operator: CurrentUser, days_ahead: int = Query(3, ge=0, le=365)):
    return respond(await ExamService(uow).upcoming(days_ahead))


@router.get("/{exam_id}")
async def get_exam(uow: Uow, exam_id: int, operator: CurrentUser):
    return respond(await ExamService(uow).get(exam_id))


@router.patch("/{exam_id}")
async def patch_exam(uow: Uow, exam_id: int, operations: list[PatchOperation], operator: Editor):
    """RFC 6902 patch over ExamUpdate; /exam_boards is the full desired board."""
    svc = ExamService(uow)
    current = await svc.get(exam_id)
    if not current.succeeded:
        return respond(current)
    try:
        update = apply_patch(current.data, operations, ExamUpdate)
    except PatchError as exc:
        return respond_patch_error(exc)
    return respond(await svc.update(exam_id, update))


@router.delete("/{exam_id}")
async def delete_exam(uow: Uow, exam_id: int, operator: Editor):
    return respond(await ExamService(uow).delete(exam_id, operator.id))


@router.post("/{exam_id}/restore")
async def restore_exam(uow: Uow, exam_id: int, operator: Editor):
    return respond(await ExamService(uow).restore(exam_id))


@router.get("/{exam_id}/board-report")
async def board_report(
    uow: Uow,
    exam_id: int,
    operator: CurrentUser,
    language: str = Query("en", pattern="^(en|hu|de)$"),
):
    """PDF of the exam board, as an attachment."""
    return respond_file(await ExamService(uow).generate_board_report(exam_id, operator.id, language))
