"""
PasswordReset model - one-time reset token issued to an operator.
"""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from exam_manager.db.base import Base, as_utc, utcnow

if TYPE_CHECKING:
    from exam_manager.db.models.operator import Operator


class PasswordReset(Base):
    __tablename__ = "password_resets"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    token: Mapped[str] = mapped_column(String(256), unique=True, index=True, nullable=False)
    requested_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    expired_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    used_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    is_revoked: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    operator_id: Mapped[int] = mapped_column(
        ForeignKey("operators.id", ondelete="RESTRICT"), index=True, nullable=False
    )

    operator: Mapped["Operator"] = relationship("Operator")

    def is_expired(self, now: datetime | None = None) -> bool:
        return as_utc(self.expired_at) <= (now or utcnow())

    def __repr__(self) -> str:
        return f"<PasswordReset(id={self.id}, operator_id={self.operator_id}, revoked={self.is_revoked})>"
