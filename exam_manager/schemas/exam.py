"""Exam and exam board schemas."""

from datetime import datetime

from pydantic import BaseModel, Field

from exam_manager.db.models.enums import ExamStatus


class ExamBoardCreate(BaseModel):
    examiner_id: int = Field(..., gt=0)
    role: str = Field(..., min_length=1, max_length=100)


class ExamBoardUpdate(BaseModel):
    examiner_id: int = Field(..., gt=0)
    role: str | None = Field(None, min_length=1, max_length=100)


class ExamBoardResponse(BaseModel):
    exam_id: int
    examiner_id: int
    role: str
    examiner_first_name: str | None = None
    examiner_last_name: str | None = None
    examiner_identity_card_number: str | None = None
    is_deleted: bool = False
    deleted_at: datetime | None = None


class ExamCreate(BaseModel):
    exam_name: str = Field(..., min_length=1, max_length=256)
    exam_code: str = Field(..., min_length=1, max_length=256)
    exam_date: datetime
    status: ExamStatus = ExamStatus.PLANNED
    profession_id: int = Field(..., gt=0)
    institution_id: int = Field(..., gt=0)
    exam_type_id: int = Field(..., gt=0)
    exam_boards: list[ExamBoardCreate] = Field(..., min_length=1)


class ExamUpdate(BaseModel):
    """Partial update; None means "leave as is". exam_boards, when given, is the full desired board."""

    exam_name: str | None = Field(None, min_length=1, max_length=256)
    exam_code: str | None = Field(None, min_length=1, max_length=256)
    exam_date: datetime | None = None
    status: ExamStatus | None = None
    profession_id: int | None = None
    institution_id: int | None = None
    exam_type_id: int | None = None
    exam_boards: list[ExamBoardUpdate] | None = None


class ExamResponse(BaseModel):
    id: int
    exam_name: str
    exam_code: str
    exam_date: datetime
    status: ExamStatus
    profession_id: int
    profession_name: str | None = None
    institution_id: int
    institution_name: str | None = None
    exam_type_id: int
    exam_type_name: str | None = None
    operator_id: int
    operator_user_name: str | None = None
    exam_boards: list[ExamBoardResponse] = []
    is_deleted: bool = False
    deleted_at: datetime | None = None
    deleted_by_operator_name: str | None = None


class UpcomingExamResponse(BaseModel):
    id: int
    exam_name: str
    exam_code: str
    exam_date: datetime
    status: ExamStatus
    institution_name: str | None = None
