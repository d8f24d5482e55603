"""
FileHistory model - every generated or uploaded file with its raw bytes.
"""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import BigInteger, Boolean, DateTime, ForeignKey, LargeBinary, String, Text
from sqlalchemy.orm import Mapped, deferred, mapped_column, relationship

from exam_manager.db.base import Base, utcnow
from exam_manager.db.models.enums import FileAction, FileCategory, enum_type

if TYPE_CHECKING:
    from exam_manager.db.models.operator import Operator


class FileHistory(Base):
    __tablename__ = "file_histories"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    operator_id: Mapped[int] = mapped_column(
        ForeignKey("operators.id", ondelete="RESTRICT"), index=True, nullable=False
    )
    file_name: Mapped[str] = mapped_column(String(256), nullable=False)
    content_type: Mapped[str] = mapped_column(String(256), nullable=False)
    file_size_in_bytes: Mapped[int] = mapped_column(BigInteger, nullable=False)
    # Listings never need the payload; load it only for downloads
    file_content: Mapped[bytes] = deferred(mapped_column(LargeBinary, nullable=False))
    action: Mapped[FileAction] = mapped_column(enum_type(FileAction), nullable=False)
    category: Mapped[FileCategory] = mapped_column(
        enum_type(FileCategory), default=FileCategory.GENERAL, nullable=False
    )
    related_entity_id: Mapped[int | None] = mapped_column(nullable=True)
    is_successful: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    processing_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, index=True, nullable=False
    )

    operator: Mapped["Operator"] = relationship("Operator")

    def __repr__(self) -> str:
        return f"<FileHistory(id={self.id}, file_name={self.file_name}, action={self.action})>"
