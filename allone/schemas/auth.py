"""
Authentication request schemas
"""

from typing import List, Optional

from pydantic import EmailStr, Field, field_validator

from allone.core.config import settings
from allone.models.user import AcademicYear
from allone.schemas.common import CamelModel
from allone.schemas.user import PrivacyUpdate
from allone.utils.validators import normalize_tags


def _check_password(value: str, minimum: int) -> str:
    if len(value) < minimum:
        raise ValueError(f"Password must be at least {minimum} characters long")
    return value


class RegisterRequest(CamelModel):
    name: str = Field(..., min_length=2, max_length=50)
    email: EmailStr
    password: str

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("password")
    @classmethod
    def password_length(cls, v: str) -> str:
        return _check_password(v, settings.PASSWORD_MIN_LENGTH)


class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class ProfileUpdate(CamelModel):
    """Fields a user may change on their own profile"""
    name: Optional[str] = Field(None, min_length=2, max_length=50)
    email: Optional[EmailStr] = None
    avatar: Optional[str] = Field(None, max_length=500)
    department: Optional[str] = Field(None, max_length=100)
    year: Optional[AcademicYear] = None
    student_number: Optional[str] = Field(None, max_length=50)
    graduation_year: Optional[str] = Field(None, max_length=10)
    biography: Optional[str] = Field(None, max_length=500)
    interests: Optional[List[str]] = None
    privacy: Optional[PrivacyUpdate] = None

    @field_validator("year", mode="before")
    @classmethod
    def year_as_text(cls, v):
        return str(v) if isinstance(v, int) else v

    @field_validator("interests", mode="before")
    @classmethod
    def split_interests(cls, v):
        return None if v is None else normalize_tags(v)


class ChangePasswordRequest(CamelModel):
    current_password: str = Field(..., min_length=1)
    new_password: str

    @field_validator("new_password")
    @classmethod
    def password_length(cls, v: str) -> str:
        return _check_password(v, settings.PASSWORD_MIN_LENGTH)


class ForgotPasswordRequest(CamelModel):
    email: EmailStr


class ResetPasswordRequest(CamelModel):
    token: str = Field(..., min_length=1)
    email: EmailStr
    password: str

    @field_validator("password")
    @classmethod
    def password_length(cls, v: str) -> str:
        return _check_password(v, settings.RESET_PASSWORD_MIN_LENGTH)
