"""
Community forum schemas
"""

from datetime import datetime
from typing import List, Optional

from pydantic import Field, field_validator

from allone.models.community import PostType
from allone.schemas.common import CamelModel
from allone.schemas.user import AuthorSummary
from allone.utils.validators import normalize_tags


class PostFields(CamelModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    content: Optional[str] = Field(None, min_length=1, max_length=2000)
    type: Optional[PostType] = None
    category: Optional[str] = Field(None, min_length=1, max_length=100)
    tags: Optional[List[str]] = None

    @field_validator("title", "content", "category", mode="before")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("tags", mode="before")
    @classmethod
    def split_tags(cls, v):
        return None if v is None else normalize_tags(v)


class PostCreate(PostFields):
    title: str = Field(..., min_length=1, max_length=200)
    content: str = Field(..., min_length=1, max_length=2000)
    type: PostType
    category: str = Field(..., min_length=1, max_length=100)
    tags: List[str] = []


class PostUpdate(PostFields):
    pass


class CommentCreate(CamelModel):
    content: str = Field(..., min_length=1, max_length=500)

    @field_validator("content", mode="before")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v


class ReportRequest(CamelModel):
    reason: str = Field(..., min_length=1, max_length=500)


class CommentResponse(CamelModel):
    id: int
    author: Optional[AuthorSummary] = None
    content: str
    likes: List[int] = []
    like_count: int = 0
    created_at: datetime


class PostResponse(CamelModel):
    id: int
    title: str
    content: str
    type: PostType
    category: str
    tags: List[str] = []
    author: Optional[AuthorSummary] = None
    likes: List[int] = []
    like_count: int = 0
    comments: List[CommentResponse] = []
    comment_count: int = 0
    is_pinned: bool
    is_approved: bool
    created_at: datetime
    updated_at: datetime
