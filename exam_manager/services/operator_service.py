"""
Operator service - login, registration and operator administration.
Challenge: Login must fail the same way whether the user or the password is wrong.
"""

import logging
from functools import lru_cache

from sqlalchemy import func

from exam_manager.config import Settings
from exam_manager.core.security import create_access_token, hash_password, verify_password
from exam_manager.db.models import Operator, Role
from exam_manager.db.repositories.unit_of_work import UnitOfWork
from exam_manager.schemas.common import Page
from exam_manager.schemas.operator import (
    LoginResponse,
    OperatorCreate,
    OperatorResponse,
    OperatorUpdate,
)
from exam_manager.services.mapping import deleted_by_names, operator_to_response
from exam_manager.services.result import (
    BAD_REQUEST_INVALID_FIELDS,
    ServiceResult,
    changed_fields,
    service_boundary,
)

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
INVALID_CREDENTIALS_MESSAGE = "Invalid username or password"


@lru_cache
def _dummy_hash() -> str:
    # Verified against when the user does not exist, so both failures cost one bcrypt round
    return hash_password("exam-manager-timing-equaliser")


class OperatorService:
    def __init__(self, uow: UnitOfWork, settings: Settings):
        self.uow = uow
        self.settings = settings

    @service_boundary("logging in")
    async def login(self, user_name: str, password: str) -> ServiceResult[LoginResponse]:
        invalid = ServiceResult.failed(INVALID_CREDENTIALS_MESSAGE, INVALID_CREDENTIALS)
        if not user_name or not user_name.strip() or not password:
            return invalid
        operator = await self.uow.operators.first(Operator.user_name == user_name.strip())
        if operator is None:
            verify_password(password, _dummy_hash())
            logger.warning("Failed login for unknown user")
            return invalid
        if not verify_password(password, operator.password):
            logger.warning("Failed login for operator %s", operator.id)
            return invalid

        token, expires_at = create_access_token(
            operator.id,
            extra={"name": operator.user_name, "role": operator.role.value},
            settings=self.settings,
        )
        logger.info("Operator %s logged in", operator.id)
        return ServiceResult.success(
            LoginResponse(
                id=operator.id,
                user_name=operator.user_name,
                first_name=operator.first_name,
                last_name=operator.last_name,
                role=operator.role,
                token=token,
                expires_at=expires_at,
            ),
            "Login successful.",
        )

    async def user_exists(self, user_name: str) -> bool:
        """Usernames stay reserved after soft delete, and differ only if they differ ignoring case."""
        return await self.uow.operators.exists_with_deleted(
            func.lower(Operator.user_name) == user_name.strip().lower()
        )

    @service_boundary("registering an operator")
    async def register(self, data: OperatorCreate) -> ServiceResult[OperatorResponse]:
        user_name = data.user_name.strip()
        if not user_name:
            return ServiceResult.failed("User name is required.", BAD_REQUEST_INVALID_FIELDS, "user_name")
        if await self.user_exists(user_name):
            return ServiceResult.failed(
                f"User name '{user_name}' is already taken.", "USERNAME_DUPLICATE", "user_name"
            )
        operator = Operator(
            user_name=user_name,
            password=hash_password(data.password),
            first_name=data.first_name,
            last_name=data.last_name,
            role=data.role,
            email=data.email,
        )
        await self.uow.operators.insert(operator)
        await self.uow.save()
        logger.info("Registered operator %s (%s) as %s", operator.id, operator.user_name, operator.role.value)
        return ServiceResult.success(operator_to_response(operator), "Registration successful.")

    @service_boundary("fetching an operator")
    async def get(self, operator_id: int) -> ServiceResult[OperatorResponse]:
        operator = await self.uow.operators.get_by_key(operator_id)
        if operator is None:
            return ServiceResult.failed(f"Operator {operator_id} not found.", "OPERATOR_NOT_FOUND")
        return ServiceResult.success(operator_to_response(operator))

    @service_boundary("listing operators")
    async def get_page(self, page: int = 1, page_size: int = 20) -> ServiceResult[Page[OperatorResponse]]:
        rows, total = await self.uow.operators.get_paged(page=page, page_size=page_size)
        return ServiceResult.success(
            Page(items=[operator_to_response(r) for r in rows], total=total, page=page, page_size=page_size)
        )

    @service_boundary("listing deleted operators")
    async def list_deleted(self) -> ServiceResult[list[OperatorResponse]]:
        rows = await self.uow.operators.get_with_deleted(Operator.is_deleted.is_(True))
        names = await deleted_by_names(self.uow, rows)
        return ServiceResult.success([operator_to_response(r, names) for r in rows])

    @service_boundary("updating an operator")
    async def update(self, operator_id: int, data: OperatorUpdate) -> ServiceResult[OperatorResponse]:
        operator = await self.uow.operators.get_by_key(operator_id)
        if operator is None:
            return ServiceResult.failed(f"Operator {operator_id} not found.", "OPERATOR_NOT_FOUND")
        changes = changed_fields(operator, data)
        if not changes:
            return ServiceResult.success(operator_to_response(operator), "No changes detected to update.")
        for name, value in changes.items():
            setattr(operator, name, value)
        await self.uow.operators.update(operator)
        await self.uow.save()
        logger.info("Updated operator %s: %s", operator.id, sorted(changes))
        return ServiceResult.success(operator_to_response(operator), "Update successful.")

    @service_boundary("changing a password")
    async def change_password(self, operator_id: int, new_password: str) -> ServiceResult[None]:
        if not new_password or len(new_password) < 6:
            return ServiceResult.failed(
                "Password must be at least 6 characters.", BAD_REQUEST_INVALID_FIELDS, "new_password"
            )
        operator = await self.uow.operators.get_by_key(operator_id)
        if operator is None:
            return ServiceResult.failed(f"Operator {operator_id} not found.", "OPERATOR_NOT_FOUND")
        operator.password = hash_password(new_password)
        await self.uow.save()
        logger.info("Operator %s changed password", operator.id)
        return ServiceResult.success(message="Password changed successfully.")

    @service_boundary("deleting an operator")
    async def delete(self, operator_id: int, acting_operator_id: int) -> ServiceResult[None]:
        if operator_id == acting_operator_id:
            return ServiceResult.failed("Operators cannot delete themselves.", "CANNOT_DELETE_SELF")
        operator = await self.uow.operators.first_with_deleted(Operator.id == operator_id)
        if operator is None:
            return ServiceResult.failed(f"Operator {operator_id} not found.", "OPERATOR_NOT_FOUND")
        if operator.is_deleted:
            return ServiceResult.failed(f"Operator {operator_id} is already deleted.", "OPERATOR_ALREADY_DELETED")
        await self.uow.operators.soft_delete(operator, acting_operator_id)
        await self.uow.save()
        logger.info("Operator %s deleted by %s", operator_id, acting_operator_id)
        return ServiceResult.success(message="Operator deleted successfully.")

    @service_boundary("restoring an operator")
    async def restore(self, operator_id: int) -> ServiceResult[OperatorResponse]:
        operator = await self.uow.operators.first_with_deleted(Operator.id == operator_id)
        if operator is None:
            return ServiceResult.failed(f"Operator {operator_id} not found.", "OPERATOR_NOT_FOUND")
        if not operator.is_deleted:
            return ServiceResult.failed(f"Operator {operator_id} is not deleted.", "OPERATOR_ALREADY_RESTORED")
        await self.uow.operators.restore(operator)
        await self.uow.save()
        logger.info("Operator %s restored", operator_id)
        return ServiceResult.success(operator_to_response(operator), "Operator restored successfully.")

    async def ensure_default_admin(self) -> Operator | None:
        """Create the configured admin when no live Admin exists. Returns the new operator, if any."""
        if await self.uow.operators.exists(Operator.role == Role.ADMIN):
            return None
        user_name = self.settings.default_admin_username
        if await self.user_exists(user_name):
            logger.warning("No active admin, but user name %s is taken; not seeding", user_name)
            return None
        admin = Operator(
            user_name=user_name,
            password=hash_password(self.settings.default_admin_password),
            first_name="Admin",
            last_name="System",
            role=Role.ADMIN,
        )
        await self.uow.operators.insert(admin)
        await self.uow.save()
        logger.info("Seeded default admin operator %s", user_name)
        return admin
