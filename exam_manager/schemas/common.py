"""Shared API shapes: response envelope, paging, JSON Patch operations."""

from typing import Any, Generic, Literal, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """Envelope returned by every JSON endpoint."""

    succeeded: bool
    data: T | None = None
    message: str | None = None
    errors: list[str] = []
    error_code: str | None = None


class Page(BaseModel, Generic[T]):
    items: list[T]
    total: int
    page: int
    page_size: int

    @property
    def pages(self) -> int:
        return -(-self.total // self.page_size) if self.page_size else 0


class PatchOperation(BaseModel):
    """One RFC 6902 operation. Paths use the snake_case field names of the Update shape."""

    model_config = ConfigDict(populate_by_name=True)

    op: Literal["add", "remove", "replace", "move", "copy", "test"]
    path: str
    value: Any = None
    from_: str | None = Field(default=None, alias="from")


class IdList(BaseModel):
    ids: list[int] | None = None


class FileDownload(BaseModel):
    """Binary payload produced by a service; endpoints turn it into an attachment."""

    file_name: str
    content_type: str
    content: bytes


class ImportResult(BaseModel):
    success_count: int = 0
    errors: list[str] = []
