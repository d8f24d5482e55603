"""
Operator model - system user who logs in and owns exams, backups and files.
"""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from exam_manager.db.base import Base
from exam_manager.db.models.enums import Role, enum_type
from exam_manager.db.soft_delete import SoftDeleteMixin


class Operator(SoftDeleteMixin, Base):
    """Application user. Password is always a bcrypt hash."""

    __tablename__ = "operators"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_name: Mapped[str] = mapped_column(String(256), unique=True, index=True, nullable=False)
    password: Mapped[str] = mapped_column(String(256), nullable=False)
    first_name: Mapped[str] = mapped_column(String(256), nullable=False)
    last_name: Mapped[str] = mapped_column(String(256), nullable=False)
    role: Mapped[Role] = mapped_column(enum_type(Role), default=Role.OPERATOR, nullable=False)
    email: Mapped[str | None] = mapped_column(String(256), nullable=True)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def __repr__(self) -> str:
        return f"<Operator(id={self.id}, user_name={self.user_name}, role={self.role})>"
