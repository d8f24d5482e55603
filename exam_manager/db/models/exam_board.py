"""
ExamBoard model - role assignment of one examiner on one exam.
"""

from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from exam_manager.db.base import Base
from exam_manager.db.soft_delete import SoftDeleteMixin

if TYPE_CHECKING:
    from exam_manager.db.models.exam import Exam
    from exam_manager.db.models.examiner import Examiner


class ExamBoard(SoftDeleteMixin, Base):
    """Join entity keyed by (exam_id, examiner_id); at most one role per pair."""

    __tablename__ = "exam_boards"

    exam_id: Mapped[int] = mapped_column(
        ForeignKey("exams.id", ondelete="CASCADE"), primary_key=True
    )
    examiner_id: Mapped[int] = mapped_column(
        ForeignKey("examiners.id", ondelete="CASCADE"), primary_key=True, index=True
    )
    role: Mapped[str] = mapped_column(String(100), nullable=False)

    exam: Mapped["Exam"] = relationship("Exam", back_populates="exam_board")
    examiner: Mapped["Examiner"] = relationship("Examiner", back_populates="exam_board")

    def __repr__(self) -> str:
        return f"<ExamBoard(exam_id={self.exam_id}, examiner_id={self.examiner_id}, role={self.role})>"
