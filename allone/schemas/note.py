"""
Note schemas for AllOne
"""

from datetime import datetime
from typing import List, Optional

from pydantic import Field, field_validator

from allone.models.note import Grade, Subject
from allone.schemas.common import CamelModel
from allone.schemas.user import AuthorSummary
from allone.utils.validators import normalize_tags

MAX_TAG_LENGTH = 30


def _grade_as_text(v):
    return str(v) if isinstance(v, int) and not isinstance(v, bool) else v


def _clean_tags(v):
    if v is None:
        return v
    tags = normalize_tags(v)
    for tag in tags:
        if len(tag) > MAX_TAG_LENGTH:
            raise ValueError(f"Tags cannot be longer than {MAX_TAG_LENGTH} characters")
    return tags


def _strip(v):
    return v.strip() if isinstance(v, str) else v


class NoteFields(CamelModel):
    """Editable metadata shared by create and update"""
    title: Optional[str] = Field(None, min_length=5, max_length=200)
    description: Optional[str] = Field(None, min_length=10, max_length=1000)
    subject: Optional[Subject] = None
    grade: Optional[Grade] = None
    tags: Optional[List[str]] = None

    @field_validator("title", "description", mode="before")
    @classmethod
    def strip_text(cls, v):
        return _strip(v)

    @field_validator("grade", mode="before")
    @classmethod
    def grade_as_text(cls, v):
        return _grade_as_text(v)

    @field_validator("tags", mode="before")
    @classmethod
    def clean_tags(cls, v):
        return _clean_tags(v)


class NoteCreate(NoteFields):
    """Metadata for a note whose file was already uploaded"""
    title: str = Field(..., min_length=5, max_length=200)
    description: str = Field(..., min_length=10, max_length=1000)
    subject: Subject
    grade: Grade
    tags: List[str] = []
    file_url: str = Field(..., min_length=1, max_length=500)
    file_name: str = Field(..., min_length=1, max_length=255)
    file_size: int = Field(..., gt=0)


class NoteUpdate(NoteFields):
    pass


class NoteUpdateById(NoteUpdate):
    """Update body carrying the note id"""
    id: int


class NoteDeleteById(CamelModel):
    note_id: int
    soft: bool = False


class RateRequest(CamelModel):
    rating: int = Field(..., ge=1, le=5)


class ApprovalRequest(CamelModel):
    is_approved: bool


class NoteResponse(CamelModel):
    """Note response schema"""
    id: int
    title: str
    description: str
    subject: Subject
    grade: Grade
    tags: List[str] = []
    file_url: str
    file_name: str
    file_size: int
    author: Optional[AuthorSummary] = None
    downloads: int
    view_count: int
    rating: int
    rating_count: int
    average_rating: float
    is_approved: bool
    is_active: bool
    created_at: datetime
    updated_at: datetime
