"""Password reset, backup history and file history schemas."""

from datetime import datetime

from pydantic import BaseModel

from exam_manager.db.models.enums import BackupActivityType, FileAction, FileCategory


class InitiatePasswordResetRequest(BaseModel):
    user_name: str = ""


class PasswordResetRequest(BaseModel):
    token: str = ""
    new_password: str = ""


class PasswordResetResponse(BaseModel):
    operator_id: int
    expired_at: datetime


class BackupHistoryResponse(BaseModel):
    id: int
    backup_date: datetime
    file_name: str
    activity_type: BackupActivityType
    is_successful: bool
    error_message: str | None = None
    operator_id: int
    operator_user_name: str | None = None


class FileHistoryResponse(BaseModel):
    id: int
    operator_id: int
    operator_user_name: str | None = None
    file_name: str
    content_type: str
    file_size_in_bytes: int
    action: FileAction
    category: FileCategory
    related_entity_id: int | None = None
    is_successful: bool
    processing_notes: str | None = None
    created_at: datetime
