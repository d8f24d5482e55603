"""Operator request/response schemas - API contract and validation."""

from datetime import datetime

from pydantic import BaseModel, EmailStr, Field

from exam_manager.db.models.enums import Role


class OperatorBase(BaseModel):
    user_name: str = Field(..., min_length=1, max_length=256)
    first_name: str = Field(..., min_length=1, max_length=256)
    last_name: str = Field(..., min_length=1, max_length=256)
    role: Role = Role.OPERATOR
    email: EmailStr | None = None


class OperatorCreate(OperatorBase):
    # bcrypt accepts max 72 bytes; longer passwords cause 500. Validate here for clear 422.
    password: str = Field(..., min_length=6, max_length=72)


class OperatorUpdate(BaseModel):
    first_name: str | None = Field(None, min_length=1, max_length=256)
    last_name: str | None = Field(None, min_length=1, max_length=256)
    role: Role | None = None
    email: EmailStr | None = None


class OperatorResponse(BaseModel):
    id: int
    user_name: str
    first_name: str
    last_name: str
    role: Role
    email: str | None = None
    is_deleted: bool = False
    deleted_at: datetime | None = None
    deleted_by_operator_name: str | None = None

    model_config = {"from_attributes": True}


class LoginRequest(BaseModel):
    # Blank values are allowed through so they fail the same way as wrong credentials
    user_name: str = ""
    password: str = ""


class LoginResponse(BaseModel):
    id: int
    user_name: str
    first_name: str
    last_name: str
    role: Role
    token: str
    token_type: str = "bearer"
    expires_at: datetime


class ChangePasswordRequest(BaseModel):
    new_password: str = Field(..., min_length=6, max_length=72)


class UsernameCheckResponse(BaseModel):
    exists: bool
