"""
Examiner model - person who can sit on exam boards.
"""

from datetime import date
from typing import TYPE_CHECKING

from sqlalchemy import Date, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from exam_manager.db.base import Base
from exam_manager.db.soft_delete import SoftDeleteMixin

if TYPE_CHECKING:
    from exam_manager.db.models.exam_board import ExamBoard


class Examiner(SoftDeleteMixin, Base):
    __tablename__ = "examiners"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    first_name: Mapped[str] = mapped_column(String(256), nullable=False)
    last_name: Mapped[str] = mapped_column(String(256), nullable=False)
    date_of_birth: Mapped[date] = mapped_column(Date, nullable=False)
    email: Mapped[str] = mapped_column(String(256), unique=True, index=True, nullable=False)
    phone: Mapped[str] = mapped_column(String(30), unique=True, index=True, nullable=False)
    identity_card_number: Mapped[str] = mapped_column(
        String(50), unique=True, index=True, nullable=False
    )

    exam_board: Mapped[list["ExamBoard"]] = relationship(
        "ExamBoard", back_populates="examiner", passive_deletes=True
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def __repr__(self) -> str:
        return f"<Examiner(id={self.id}, identity_card_number={self.identity_card_number})>"
