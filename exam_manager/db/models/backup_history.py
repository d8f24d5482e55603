"""
BackupHistory model - audit row for each backup or restore run.
"""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from exam_manager.db.base import Base, utcnow
from exam_manager.db.models.enums import BackupActivityType, enum_type

if TYPE_CHECKING:
    from exam_manager.db.models.operator import Operator


class BackupHistory(Base):
    __tablename__ = "backup_histories"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    backup_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    file_name: Mapped[str] = mapped_column(String(256), unique=True, index=True, nullable=False)
    activity_type: Mapped[BackupActivityType] = mapped_column(
        enum_type(BackupActivityType), nullable=False
    )
    is_successful: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    operator_id: Mapped[int] = mapped_column(
        ForeignKey("operators.id", ondelete="RESTRICT"), index=True, nullable=False
    )

    operator: Mapped["Operator"] = relationship("Operator")

    def __repr__(self) -> str:
        return f"<BackupHistory(id={self.id}, file_name={self.file_name}, ok={self.is_successful})>"
