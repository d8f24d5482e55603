"""
Institution lookup model, identified by its educational ID.
"""

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from exam_manager.db.base import Base


class Institution(Base):
    __tablename__ = "institutions"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    educational_id: Mapped[str] = mapped_column(String(256), unique=True, index=True, nullable=False)
    name: Mapped[str] = mapped_column(String(256), nullable=False)
    zip_code: Mapped[int] = mapped_column(Integer, nullable=False)
    town: Mapped[str] = mapped_column(String(256), nullable=False)
    street: Mapped[str] = mapped_column(String(256), nullable=False)
    number: Mapped[str] = mapped_column(String(10), nullable=False)
    floor: Mapped[str | None] = mapped_column(String(5), nullable=True)
    door: Mapped[str | None] = mapped_column(String(5), nullable=True)

    @property
    def address(self) -> str:
        parts = [f"{self.zip_code} {self.town}", f"{self.street} {self.number}"]
        if self.floor:
            parts.append(f"floor {self.floor}")
        if self.door:
            parts.append(f"door {self.door}")
        return ", ".join(parts)

    def __repr__(self) -> str:
        return f"<Institution(id={self.id}, educational_id={self.educational_id})>"
