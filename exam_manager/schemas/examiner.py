"""Examiner schemas."""

from datetime import date, datetime

from pydantic import BaseModel, EmailStr, Field


class ExaminerCreate(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=256)
    last_name: str = Field(..., min_length=1, max_length=256)
    date_of_birth: date
    email: EmailStr
    phone: str = Field(..., min_length=1, max_length=30)
    identity_card_number: str = Field(..., min_length=1, max_length=50)


class ExaminerUpdate(BaseModel):
    first_name: str | None = Field(None, min_length=1, max_length=256)
    last_name: str | None = Field(None, min_length=1, max_length=256)
    date_of_birth: date | None = None
    email: EmailStr | None = None
    phone: str | None = Field(None, min_length=1, max_length=30)
    identity_card_number: str | None = Field(None, min_length=1, max_length=50)


class ExaminerResponse(BaseModel):
    id: int
    first_name: str
    last_name: str
    date_of_birth: date
    email: str
    phone: str
    identity_card_number: str
    is_deleted: bool = False
    deleted_at: datetime | None = None
    deleted_by_operator_name: str | None = None

    model_config = {"from_attributes": True}
