"""
Daily question schemas
"""

from datetime import datetime, timezone
from typing import List, Optional

from pydantic import Field, field_validator

from allone.models.daily_question import Difficulty
from allone.schemas.common import CamelModel
from allone.schemas.user import AuthorSummary


class QuestionCreate(CamelModel):
    question: str = Field(..., min_length=1, max_length=500)
    description: str = Field(..., min_length=1, max_length=1000)
    category: str = Field(..., min_length=1, max_length=100)
    difficulty: Difficulty
    points: int = Field(10, ge=10, le=100)
    date: Optional[datetime] = None

    @field_validator("question", "description", "category", mode="before")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("date")
    @classmethod
    def naive_utc(cls, v):
        if v is not None and v.tzinfo is not None:
            v = v.astimezone(timezone.utc).replace(tzinfo=None)
        return v


class AnswerCreate(CamelModel):
    content: str = Field(..., min_length=1, max_length=1000)

    @field_validator("content", mode="before")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v


class AnswerResponse(CamelModel):
    id: int
    content: str
    author: Optional[AuthorSummary] = None
    likes: List[int] = []
    like_count: int = 0
    is_accepted: bool
    created_at: datetime


class QuestionResponse(CamelModel):
    id: int
    question: str
    description: str
    category: str
    difficulty: Difficulty
    points: int
    likes: List[int] = []
    like_count: int = 0
    answers: List[AnswerResponse] = []
    answer_count: int = 0
    is_active: bool
    date: datetime
    created_at: datetime
