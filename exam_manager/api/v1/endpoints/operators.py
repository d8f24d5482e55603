"""
Operator endpoints - login, self service and admin-only operator management.
Challenge: Same 401 for unknown user and wrong password; admins cannot delete themselves.
"""

from fastapi import APIRouter, status

from exam_manager.api.v1.responses import envelope, respond, respond_patch_error
from exam_manager.config import get_settings
from exam_manager.core.dependencies import AdminUser, CurrentUser, PageQuery
from exam_manager.core.patch import PatchError, apply_patch
from exam_manager.db.session import Uow
from exam_manager.schemas.common import PatchOperation
from exam_manager.schemas.operator import (
    ChangePasswordRequest,
    LoginRequest,
    OperatorCreate,
    OperatorUpdate,
    UsernameCheckResponse,
)
from exam_manager.services.operator_service import OperatorService

router = APIRouter()


def _service(uow: Uow) -> OperatorService:
    return OperatorService(uow, get_settings())


@router.post("/login")
async def login(uow: Uow, data: LoginRequest):
    """Exchange user name + password for a bearer token."""
    return respond(await _service(uow).login(data.user_name, data.password))


@router.post("", status_code=status.HTTP_201_CREATED)
async def register(uow: Uow, data: OperatorCreate, admin: AdminUser):
    return respond(await _service(uow).register(data), status.HTTP_201_CREATED)


@router.get("")
async def list_operators(uow: Uow, paging: PageQuery, admin: AdminUser):
    return respond(await _service(uow).get_page(paging.page, paging.page_size))


@router.get("/deleted")
async def list_deleted_operators(uow: Uow, admin: AdminUser):
    return respond(await _service(uow).list_deleted())


@router.get("/me")
async def me(uow: Uow, operator: CurrentUser):
    return respond(await _service(uow).get(operator.id))


@router.post("/me/change-password")
async def change_password(uow: Uow, data: ChangePasswordRequest, operator: CurrentUser):
    return respond(await _service(uow).change_password(operator.id, data.new_password))


@router.get("/check-username/{user_name}")
async def check_username(uow: Uow, user_name: str, operator: CurrentUser):
    exists = await _service(uow).user_exists(user_name)
    return envelope(True, data=UsernameCheckResponse(exists=exists))


@router.get("/{operator_id}")
async def get_operator(uow: Uow, operator_id: int, operator: CurrentUser):
    return respond(await _service(uow).get(operator_id))


@router.patch("/{operator_id}")
async def patch_operator(uow: Uow, operator_id: int, operations: list[PatchOperation], admin: AdminUser):
    """RFC 6902 patch over the OperatorUpdate shape."""
    svc = _service(uow)
    current = await svc.get(operator_id)
    if not current.succeeded:
        return respond(current)
    try:
        update = apply_patch(current.data, operations, OperatorUpdate)
    except PatchError as exc:
        return respond_patch_error(exc)
    return respond(await svc.update(operator_id, update))


@router.delete("/{operator_id}")
async def delete_operator(uow: Uow, operator_id: int, admin: AdminUser):
    return respond(await _service(uow).delete(operator_id, admin.id))


@router.post("/{operator_id}/restore")
async def restore_operator(uow: Uow, operator_id: int, admin: AdminUser):
    return respond(await _service(uow).restore(operator_id))
