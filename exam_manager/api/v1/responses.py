"""
ServiceResult -> HTTP translation shared by all endpoint modules.
"""

from urllib.parse import quote

from fastapi import Response, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from exam_manager.core.patch import PatchError
from exam_manager.schemas.common import ApiResponse, FileDownload
from exam_manager.services.result import BAD_REQUEST_INVALID_FIELDS, DB_CONSTRAINT_VIOLATION, ServiceResult

_CONFLICT_SUFFIXES = ("_DUPLICATE", "_ALREADY_DELETED", "_ALREADY_RESTORED", "_IN_USE")
_BAD_REQUEST_CODES = {"TOKEN_REVOKED", "CANNOT_DELETE_SELF", "NO_EXAMINERS_FOUND"}


def status_for(error_code: str | None) -> int:
    """HTTP status for a failed result's error code."""
    code = error_code or ""
    if code.endswith("_NOT_FOUND"):
        return status.HTTP_404_NOT_FOUND
    if code.endswith(_CONFLICT_SUFFIXES) or code == DB_CONSTRAINT_VIOLATION:
        return status.HTTP_409_CONFLICT
    if code == "INVALID_CREDENTIALS":
        return status.HTTP_401_UNAUTHORIZED
    if (
        code.startswith(("BAD_REQUEST_", "INVALID_"))
        or code.endswith("_INVALID")
        or code in _BAD_REQUEST_CODES
    ):
        return status.HTTP_400_BAD_REQUEST
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def envelope(
    succeeded: bool,
    data=None,
    message: str | None = None,
    errors: list[str] | None = None,
    error_code: str | None = None,
    status_code: int = status.HTTP_200_OK,
) -> JSONResponse:
    body = ApiResponse(succeeded=succeeded, data=data, message=message, errors=errors or [], error_code=error_code)
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body))


def respond(result: ServiceResult, success_status: int = status.HTTP_200_OK) -> JSONResponse:
    """Envelope for a service result with the mapped status code."""
    code = success_status if result.succeeded else status_for(result.error_code)
    return envelope(
        result.succeeded,
        data=result.data,
        message=result.message,
        errors=result.errors,
        error_code=result.error_code,
        status_code=code,
    )


def respond_file(result: ServiceResult[FileDownload]) -> Response:
    """Attachment for a successful file result, envelope otherwise."""
    if not result.succeeded:
        return respond(result)
    file = result.data
    fallback = file.file_name.encode("ascii", "replace").decode("ascii").replace("\"", "")
    disposition = f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(file.file_name)}"
    return Response(
        content=file.content,
        media_type=file.content_type,
        headers={"Content-Disposition": disposition},
    )


def respond_patch_error(exc: PatchError) -> JSONResponse:
    return envelope(
        False,
        message=str(exc),
        errors=exc.errors,
        error_code=BAD_REQUEST_INVALID_FIELDS,
        status_code=status.HTTP_400_BAD_REQUEST,
    )
