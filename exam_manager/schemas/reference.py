"""Lookup data schemas: exam types, professions, institutions."""

from pydantic import BaseModel, Field


class ExamTypeCreate(BaseModel):
    type_name: str = Field(..., min_length=1, max_length=256)
    description: str | None = Field(None, max_length=1000)


class ExamTypeUpdate(BaseModel):
    type_name: str | None = Field(None, min_length=1, max_length=256)
    description: str | None = Field(None, max_length=1000)


class ExamTypeResponse(BaseModel):
    id: int
    type_name: str
    description: str | None = None

    model_config = {"from_attributes": True}


class ProfessionCreate(BaseModel):
    keor_id: str = Field(..., min_length=1, max_length=256)
    profession_name: str = Field(..., min_length=1, max_length=256)


class ProfessionUpdate(BaseModel):
    keor_id: str | None = Field(None, min_length=1, max_length=256)
    profession_name: str | None = Field(None, min_length=1, max_length=256)


class ProfessionResponse(BaseModel):
    id: int
    keor_id: str
    profession_name: str

    model_config = {"from_attributes": True}


class InstitutionCreate(BaseModel):
    educational_id: str = Field(..., min_length=1, max_length=256)
    name: str = Field(..., min_length=1, max_length=256)
    zip_code: int = Field(..., ge=0)
    town: str = Field(..., min_length=1, max_length=256)
    street: str = Field(..., min_length=1, max_length=256)
    number: str = Field(..., min_length=1, max_length=10)
    floor: str | None = Field(None, max_length=5)
    door: str | None = Field(None, max_length=5)


class InstitutionUpdate(BaseModel):
    educational_id: str | None = Field(None, min_length=1, max_length=256)
    name: str | None = Field(None, min_length=1, max_length=256)
    zip_code: int | None = Field(None, ge=0)
    town: str | None = Field(None, min_length=1, max_length=256)
    street: str | None = Field(None, min_length=1, max_length=256)
    number: str | None = Field(None, min_length=1, max_length=10)
    floor: str | None = Field(None, max_length=5)
    door: str | None = Field(None, max_length=5)


class InstitutionResponse(BaseModel):
    id: int
    educational_id: str
    name: str
    zip_code: int
    town: str
    street: str
    number: str
    floor: str | None = None
    door: str | None = None

    model_config = {"from_attributes": True}
