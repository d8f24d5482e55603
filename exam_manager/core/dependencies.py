"""
FastAPI dependencies - authentication and role checks.
Challenge: Reusable auth, uniform 401/403 without telling the caller what failed.
"""

import logging
from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, HTTPException, Query, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from exam_manager.config import get_settings
from exam_manager.core.security import decode_access_token
from exam_manager.db.models import Role
from exam_manager.db.session import Uow

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)

NOT_AUTHENTICATED = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Not authenticated",
    headers={"WWW-Authenticate": "Bearer"},
)


@dataclass(frozen=True)
class CurrentOperator:
    id: int
    user_name: str
    role: Role


async def get_current_operator(
    uow: Uow,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
) -> CurrentOperator:
    """Resolve the bearer token to a live (not soft-deleted) operator, else 401."""
    if not credentials:
        raise NOT_AUTHENTICATED
    payload = decode_access_token(credentials.credentials, get_settings())
    if not payload or not str(payload.get("sub", "")).isdigit():
        raise NOT_AUTHENTICATED
    operator = await uow.operators.get_by_key(int(payload["sub"]))
    if operator is None:
        raise NOT_AUTHENTICATED
    return CurrentOperator(id=operator.id, user_name=operator.user_name, role=operator.role)


def require_roles(*roles: Role):
    """Dependency factory: 403 unless the current operator has one of ``roles``."""

    async def checker(
        operator: Annotated[CurrentOperator, Depends(get_current_operator)],
    ) -> CurrentOperator:
        if operator.role not in roles:
            logger.warning("Operator %s (%s) denied; needs one of %s", operator.id, operator.role.value, [r.value for r in roles])
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")
        return operator

    return checker


CurrentUser = Annotated[CurrentOperator, Depends(get_current_operator)]
# Staff is read-only: business data changes need Operator or Admin
Editor = Annotated[CurrentOperator, Depends(require_roles(Role.OPERATOR, Role.ADMIN))]
AdminUser = Annotated[CurrentOperator, Depends(require_roles(Role.ADMIN))]


@dataclass(frozen=True)
class Paging:
    page: int
    page_size: int


_settings = get_settings()


def get_paging(
    page: int = Query(1, ge=1),
    page_size: int = Query(_settings.default_page_size, ge=1, le=_settings.max_page_size),
) -> Paging:
    return Paging(page=page, page_size=page_size)


PageQuery = Annotated[Paging, Depends(get_paging)]
