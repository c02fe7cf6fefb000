"""
User schemas for AllOne
"""

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import Field

from allone.models.user import AcademicYear, UserRole
from allone.schemas.common import CamelModel


class PrivacySettings(CamelModel):
    profile_visibility: Literal["public", "friends", "private"] = "public"
    email_visibility: bool = False
    show_activity: bool = True


class PrivacyUpdate(CamelModel):
    profile_visibility: Optional[Literal["public", "friends", "private"]] = None
    email_visibility: Optional[bool] = None
    show_activity: Optional[bool] = None


class AuthorSummary(CamelModel):
    """Public view of a user embedded in notes, posts and answers"""
    id: int
    name: str
    avatar: Optional[str] = None


class UserResponse(CamelModel):
    """User response schema"""
    id: int
    name: str
    email: str
    avatar: Optional[str] = None
    role: UserRole
    is_active: bool
    email_verified: bool = False
    last_login: Optional[datetime] = None
    department: Optional[str] = None
    year: Optional[AcademicYear] = None
    student_number: Optional[str] = None
    graduation_year: Optional[str] = None
    biography: Optional[str] = None
    interests: List[str] = []
    privacy: PrivacySettings = Field(default_factory=PrivacySettings)
    badges: List[str] = []
    level: int = 1
    points: int = 0
    created_at: datetime
    updated_at: Optional[datetime] = None


class SessionResponse(CamelModel):
    id: int
    device: Optional[str] = None
    ip: Optional[str] = None
    created_at: datetime
    last_activity: datetime
    expires_at: datetime
    current: bool = False


class UserStats(CamelModel):
    notes_count: int
    total_downloads: int
    posts_count: int
    answers_count: int
    total_likes_received: int
    points: int
    level: int
