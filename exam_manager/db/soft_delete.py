"""
Soft delete capability shared by Exam, ExamBoard, Examiner and Operator.

Rows with is_deleted set are hidden from every ORM SELECT issued through a Session.
Statements executed with the ``include_deleted=True`` execution option see them again;
that option is the only bypass and is used by the repository's ``get_with_deleted``.
"""

from datetime import datetime
from typing import ClassVar

from sqlalchemy import Boolean, DateTime, ForeignKey, event
from sqlalchemy.orm import Mapped, ORMExecuteState, Session, declared_attr, mapped_column, with_loader_criteria

from exam_manager.db.base import utcnow

INCLUDE_DELETED = "include_deleted"


class SoftDeleteMixin:
    """Deleted flag, deletion timestamp and the operator who deleted the row."""

    # Relationship names whose rows are soft-deleted and restored together with this one
    __soft_delete_cascade__: ClassVar[tuple[str, ...]] = ()

    is_deleted: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False, index=True)
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    @declared_attr
    def deleted_by_id(cls) -> Mapped[int | None]:
        # No relationship on purpose: Operator would reference itself. Resolve by lookup.
        return mapped_column(ForeignKey("operators.id", ondelete="RESTRICT"), nullable=True)

    def mark_deleted(self, deleted_by_id: int | None, at: datetime | None = None) -> None:
        self.is_deleted = True
        self.deleted_at = at or utcnow()
        self.deleted_by_id = deleted_by_id

    def restore(self) -> None:
        self.is_deleted = False
        self.deleted_at = None
        self.deleted_by_id = None


@event.listens_for(Session, "do_orm_execute")
def _exclude_soft_deleted(execute_state: ORMExecuteState) -> None:
    """Attach the not-deleted criteria to every ORM SELECT unless bypassed."""
    if (
        execute_state.is_select
        and not execute_state.is_column_load
        and not execute_state.is_relationship_load
        and not execute_state.execution_options.get(INCLUDE_DELETED, False)
    ):
        execute_state.statement = execute_state.statement.options(
            with_loader_criteria(
                SoftDeleteMixin,
                lambda cls: cls.is_deleted.is_(False),
                include_aliases=True,
            )
        )
