"""
JSON Patch (RFC 6902) support for PATCH endpoints.
The current resource is projected onto its Update schema, patched, then re-validated,
so the service only ever receives a well-typed partial update.
"""

from typing import TypeVar

import jsonpatch
import jsonpointer
from pydantic import BaseModel, ValidationError

from exam_manager.schemas.common import PatchOperation

UpdateT = TypeVar("UpdateT", bound=BaseModel)


class PatchError(ValueError):
    """The patch document could not be applied or produced an invalid resource."""

    def __init__(self, message: str, errors: list[str] | None = None):
        super().__init__(message)
        self.errors = errors or [message]


def apply_patch(current: BaseModel, operations: list[PatchOperation], schema: type[UpdateT]) -> UpdateT:
    """Apply ``operations`` to ``current`` seen through ``schema`` and return the validated result."""
    document = schema.model_validate(current.model_dump()).model_dump(mode="json")
    ops = [op.model_dump(by_alias=True, exclude_unset=True) for op in operations]
    try:
        patched = jsonpatch.apply_patch(document, ops)
    except (jsonpatch.JsonPatchException, jsonpointer.JsonPointerException) as exc:
        raise PatchError(f"Invalid patch document: {exc}") from exc
    if not isinstance(patched, dict):
        raise PatchError("Patched resource must be an object.")
    # A removed member is an explicit null, so nullable columns can be cleared
    patched = {**dict.fromkeys(document), **patched}
    try:
        return schema.model_validate(patched)
    except ValidationError as exc:
        errors = [f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()]
        raise PatchError("Patched resource failed validation.", errors) from exc
