"""
Profession lookup model, identified by its KEOR code.
"""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from exam_manager.db.base import Base


class Profession(Base):
    __tablename__ = "professions"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    keor_id: Mapped[str] = mapped_column(String(256), unique=True, index=True, nullable=False)
    profession_name: Mapped[str] = mapped_column(String(256), nullable=False)

    def __repr__(self) -> str:
        return f"<Profession(id={self.id}, keor_id={self.keor_id})>"
