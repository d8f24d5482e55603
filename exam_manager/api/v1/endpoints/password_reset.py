"""
Password reset endpoints (anonymous).
Challenge: Do not reveal which user names exist.
"""

from fastapi import APIRouter

from exam_manager.api.v1.responses import envelope, respond
from exam_manager.config import get_settings
from exam_manager.db.session import Uow
from exam_manager.schemas.history import InitiatePasswordResetRequest, PasswordResetRequest
from exam_manager.services.password_reset_service import USER_NOT_FOUND, PasswordResetService

router = APIRouter()

INITIATED_MESSAGE = "If the user exists, a password reset code has been sent."


@router.post("/initiate")
async def initiate(uow: Uow, data: InitiatePasswordResetRequest):
    result = await PasswordResetService(uow, get_settings()).initiate(data.user_name)
    if result.succeeded or result.error_code == USER_NOT_FOUND:
        return envelope(True, message=INITIATED_MESSAGE)
    return respond(result)


@router.post("/reset")
async def reset(uow: Uow, data: PasswordResetRequest):
    return respond(await PasswordResetService(uow, get_settings()).reset(data.token, data.new_password))
