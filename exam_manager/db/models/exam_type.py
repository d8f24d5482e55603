"""
ExamType lookup model.
"""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from exam_manager.db.base import Base


class ExamType(Base):
    __tablename__ = "exam_types"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    type_name: Mapped[str] = mapped_column(String(256), unique=True, index=True, nullable=False)
    description: Mapped[str | None] = mapped_column(String(1000), nullable=True)

    def __repr__(self) -> str:
        return f"<ExamType(id={self.id}, type_name={self.type_name})>"
