"""
Service result envelope and the service-layer error boundary.
Design: Services never raise to the API for business failures; they return
ServiceResult.failed(...) with a stable error code the API maps to a status.
"""

import functools
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, Generic, ParamSpec, TypeVar

from pydantic import BaseModel
from sqlalchemy import inspect
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

T = TypeVar("T")
P = ParamSpec("P")

logger = logging.getLogger(__name__)

DB_CONSTRAINT_VIOLATION = "DB_CONSTRAINT_VIOLATION"
DB_UPDATE_ERROR = "DB_UPDATE_ERROR"
UNEXPECTED_ERROR = "UNEXPECTED_ERROR"
BAD_REQUEST_INVALID_FIELDS = "BAD_REQUEST_INVALID_FIELDS"


@dataclass
class ServiceResult(Generic[T]):
    succeeded: bool
    data: T | None = None
    message: str | None = None
    errors: list[str] = field(default_factory=list)
    error_code: str | None = None

    @classmethod
    def success(cls, data: T | None = None, message: str | None = None) -> "ServiceResult[T]":
        return cls(succeeded=True, data=data, message=message)

    @classmethod
    def failed(
        cls, message: str, error_code: str, field_name: str | None = None
    ) -> "ServiceResult[T]":
        """Failure; ``field_name`` prefixes the error entry so clients can attach it to a form field."""
        error = f"{field_name}: {message}" if field_name else message
        return cls(succeeded=False, message=message, errors=[error], error_code=error_code)


def service_boundary(action: str) -> Callable[[Callable[P, Awaitable[ServiceResult]]], Callable[P, Awaitable[ServiceResult]]]:
    """
    Catch store and unexpected errors escaping a service method and turn them into
    a generic failed result. The traceback is logged; the client only sees the code.
    """

    def decorator(func: Callable[P, Awaitable[ServiceResult]]) -> Callable[P, Awaitable[ServiceResult]]:
        @functools.wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> ServiceResult:
            try:
                return await func(*args, **kwargs)
            except IntegrityError:
                logger.exception("Constraint violation while %s", action)
                return ServiceResult.failed(
                    f"The data conflicts with an existing record while {action}.",
                    DB_CONSTRAINT_VIOLATION,
                )
            except SQLAlchemyError:
                logger.exception("Database error while %s", action)
                return ServiceResult.failed(f"A database error occurred while {action}.", DB_UPDATE_ERROR)
            except Exception:
                logger.exception("Unexpected error while %s", action)
                return ServiceResult.failed(f"An unexpected error occurred while {action}.", UNEXPECTED_ERROR)

        return wrapper

    return decorator


def loaded(entity: Any, name: str) -> Any:
    """Value of a relationship if it is already loaded, else None (no lazy IO in async)."""
    if entity is None or name in inspect(entity).unloaded:
        return None
    return getattr(entity, name)


def changed_fields(entity: Any, data: BaseModel) -> dict[str, Any]:
    """
    Fields of a partial update that differ from ``entity``. None clears a nullable
    column and means "leave as is" for the rest.
    """
    columns = inspect(entity).mapper.columns
    return {
        name: value
        for name, value in data.model_dump(exclude_unset=True).items()
        if (value is not None or columns[name].nullable) and getattr(entity, name) != value
    }
