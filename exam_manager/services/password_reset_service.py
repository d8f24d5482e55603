"""
Password reset service - one-time 6 digit codes with a short expiry.
Design: Issuing a code revokes the operator's earlier codes; using, expiring or
re-issuing all end in is_revoked so a code can never be replayed.
"""

import logging
import secrets
from datetime import timedelta

from sqlalchemy import and_

from exam_manager.config import Settings
from exam_manager.core.security import hash_password
from exam_manager.db.base import utcnow
from exam_manager.db.models import Operator, PasswordReset
from exam_manager.db.repositories.unit_of_work import UnitOfWork
from exam_manager.schemas.history import PasswordResetResponse
from exam_manager.services.email_service import EmailService
from exam_manager.services.result import ServiceResult, service_boundary

logger = logging.getLogger(__name__)

INVALID_TOKEN_OR_PASSWORD = "INVALID_TOKEN_OR_PASSWORD"
INVALID_TOKEN = "INVALID_TOKEN"
TOKEN_REVOKED = "TOKEN_REVOKED"
USER_NOT_FOUND = "USER_NOT_FOUND"

_TOKEN_ATTEMPTS = 20


class PasswordResetService:
    def __init__(self, uow: UnitOfWork, settings: Settings, email_service: EmailService | None = None):
        self.uow = uow
        self.settings = settings
        self.email_service = email_service or EmailService(settings)

    async def _new_token(self) -> str:
        # Six digits is a small space and old tokens keep the unique index busy
        for _ in range(_TOKEN_ATTEMPTS):
            token = f"{secrets.randbelow(1_000_000):06d}"
            if not await self.uow.password_resets.exists(PasswordReset.token == token):
                return token
        raise RuntimeError("Could not generate a unique password reset token")

    @service_boundary("initiating a password reset")
    async def initiate(self, user_name: str) -> ServiceResult[PasswordResetResponse]:
        if not user_name or not user_name.strip():
            return ServiceResult.failed("User not found.", USER_NOT_FOUND)
        operator = await self.uow.operators.first(Operator.user_name == user_name.strip())
        if operator is None:
            logger.warning("Password reset requested for unknown user")
            return ServiceResult.failed("User not found.", USER_NOT_FOUND)

        active = await self.uow.password_resets.get(
            and_(PasswordReset.operator_id == operator.id, PasswordReset.is_revoked.is_(False))
        )
        for reset in active:
            reset.is_revoked = True

        now = utcnow()
        reset = PasswordReset(
            token=await self._new_token(),
            requested_at=now,
            expired_at=now + timedelta(minutes=self.settings.password_reset_token_minutes),
            operator_id=operator.id,
        )
        await self.uow.password_resets.insert(reset)
        await self.uow.save()
        logger.info("Issued password reset for operator %s (revoked %d earlier)", operator.id, len(active))

        if operator.email:
            await self.email_service.send_password_reset(
                operator.email,
                operator.user_name,
                reset.token,
                self.settings.password_reset_token_minutes,
            )
        else:
            logger.warning("Operator %s has no email; reset code was not delivered", operator.id)

        return ServiceResult.success(
            PasswordResetResponse(operator_id=operator.id, expired_at=reset.expired_at),
            "Password reset initiated.",
        )

    @service_boundary("resetting a password")
    async def reset(self, token: str, new_password: str) -> ServiceResult[None]:
        token = (token or "").strip()
        if not token or not new_password or not 6 <= len(new_password) <= 72:
            return ServiceResult.failed("Token and a new password of 6-72 characters are required.", INVALID_TOKEN_OR_PASSWORD)

        reset = await self.uow.password_resets.first(PasswordReset.token == token)
        if reset is None:
            return ServiceResult.failed("Invalid token.", INVALID_TOKEN)
        if reset.is_revoked or reset.used_at is not None:
            return ServiceResult.failed("Token has been revoked.", TOKEN_REVOKED)
        if reset.is_expired():
            reset.is_revoked = True
            await self.uow.save()
            logger.info("Password reset %s expired and was revoked", reset.id)
            return ServiceResult.failed("Token has expired.", TOKEN_REVOKED)

        operator = await self.uow.operators.get_by_key(reset.operator_id)
        if operator is None:
            return ServiceResult.failed("Invalid token.", INVALID_TOKEN)

        operator.password = hash_password(new_password)
        reset.used_at = utcnow()
        reset.is_revoked = True
        await self.uow.save()
        logger.info("Password reset completed for operator %s", operator.id)
        return ServiceResult.success(message="Password has been reset successfully.")

    async def revoke_expired_tokens(self) -> int:
        """Revoke every live token past its expiry. Returns how many were revoked."""
        expired = await self.uow.password_resets.get(
            and_(PasswordReset.is_revoked.is_(False), PasswordReset.expired_at <= utcnow())
        )
        for reset in expired:
            reset.is_revoked = True
        if expired:
            await self.uow.save()
            logger.info("Revoked %d expired password reset tokens", len(expired))
        return len(expired)
