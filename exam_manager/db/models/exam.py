"""
Exam model - a scheduled exam with its board of examiners.
"""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from exam_manager.db.base import Base
from exam_manager.db.models.enums import ExamStatus, enum_type
from exam_manager.db.soft_delete import SoftDeleteMixin

if TYPE_CHECKING:
    from exam_manager.db.models.exam_board import ExamBoard
    from exam_manager.db.models.exam_type import ExamType
    from exam_manager.db.models.institution import Institution
    from exam_manager.db.models.operator import Operator
    from exam_manager.db.models.profession import Profession


class Exam(SoftDeleteMixin, Base):
    """Exam entity. Soft-deleting it also soft-deletes its board rows."""

    __tablename__ = "exams"
    __soft_delete_cascade__ = ("exam_board",)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    exam_name: Mapped[str] = mapped_column(String(256), nullable=False)
    exam_code: Mapped[str] = mapped_column(String(256), unique=True, index=True, nullable=False)
    exam_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    status: Mapped[ExamStatus] = mapped_column(
        enum_type(ExamStatus), default=ExamStatus.PLANNED, nullable=False
    )
    profession_id: Mapped[int] = mapped_column(
        ForeignKey("professions.id", ondelete="RESTRICT"), index=True, nullable=False
    )
    institution_id: Mapped[int] = mapped_column(
        ForeignKey("institutions.id", ondelete="RESTRICT"), index=True, nullable=False
    )
    exam_type_id: Mapped[int] = mapped_column(
        ForeignKey("exam_types.id", ondelete="RESTRICT"), index=True, nullable=False
    )
    operator_id: Mapped[int] = mapped_column(
        ForeignKey("operators.id", ondelete="RESTRICT"), index=True, nullable=False
    )

    profession: Mapped["Profession"] = relationship("Profession")
    institution: Mapped["Institution"] = relationship("Institution")
    exam_type: Mapped["ExamType"] = relationship("ExamType")
    # Two FKs point at operators (owner and deleted_by); pin the owner one
    operator: Mapped["Operator"] = relationship("Operator", foreign_keys=[operator_id])
    exam_board: Mapped[list["ExamBoard"]] = relationship(
        "ExamBoard",
        back_populates="exam",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<Exam(id={self.id}, exam_code={self.exam_code})>"
