"""
Category schemas
"""

from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator

from allone.models.note import Grade, Subject
from allone.schemas.common import CamelModel
from allone.utils.validators import validate_hex_color


class CategoryFields(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=50)
    description: Optional[str] = Field(None, max_length=200)
    subject: Optional[Subject] = None
    grade: Optional[Grade] = None
    color: Optional[str] = None
    icon: Optional[str] = Field(None, min_length=1, max_length=50)

    @field_validator("name", "description", mode="before")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("grade", mode="before")
    @classmethod
    def grade_as_text(cls, v):
        return str(v) if isinstance(v, int) and not isinstance(v, bool) else v

    @field_validator("grade")
    @classmethod
    def high_school_only(cls, v):
        if v == Grade.GRADUATE:
            raise ValueError("Category grade must be one of 9, 10, 11, 12")
        return v

    @field_validator("color")
    @classmethod
    def hex_color(cls, v):
        if v is not None and not validate_hex_color(v):
            raise ValueError("Color must be a hex value like #3b82f6")
        return v


class CategoryCreate(CategoryFields):
    name: str = Field(..., min_length=1, max_length=50)
    subject: Subject
    grade: Grade
    color: str = "#3b82f6"
    icon: str = Field("book", min_length=1, max_length=50)


class CategoryUpdate(CategoryFields):
    is_active: Optional[bool] = None


class CategoryResponse(CamelModel):
    id: int
    name: str
    description: Optional[str] = None
    subject: Subject
    grade: Grade
    color: str
    icon: str
    is_active: bool
    created_by: Optional[int] = None
    created_at: datetime
    updated_at: datetime
