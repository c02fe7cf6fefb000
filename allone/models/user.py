"""
User and session models for AllOne
"""

import enum

from sqlalchemy import Boolean, Column, DateTime, Enum, ForeignKey, Integer, JSON, String, Text
from sqlalchemy.ext.mutable import MutableDict, MutableList
from sqlalchemy.orm import relationship

from allone.core.database import Base
from allone.utils.validators import utcnow


class UserRole(str, enum.Enum):
    """User roles"""
    USER = "user"
    ADMIN = "admin"


class AcademicYear(str, enum.Enum):
    """Year of study shown on the profile"""
    FIRST = "1"
    SECOND = "2"
    THIRD = "3"
    FOURTH = "4"
    FIFTH = "5"
    SIXTH = "6"
    MASTERS = "Yüksek Lisans"
    DOCTORATE = "Doktora"
    GRADUATE = "Mezun"


def default_privacy() -> dict:
    return {"profileVisibility": "public", "emailVisibility": False, "showActivity": True}


class User(Base):
    """User model"""
    __tablename__ = "users"
    # Never reuse ids; likes lists and audit logs hold user ids
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(50), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    avatar = Column(String(500), default="")

    role = Column(Enum(UserRole), default=UserRole.USER, nullable=False, index=True)
    is_active = Column(Boolean, default=True, nullable=False)
    email_verified = Column(Boolean, default=False)
    last_login = Column(DateTime, nullable=True)

    password_reset_token = Column(String(64), nullable=True, index=True)
    password_reset_expires = Column(DateTime, nullable=True)

    # Academic profile
    department = Column(String(100), nullable=True)
    year = Column(Enum(AcademicYear), nullable=True)
    student_number = Column(String(50), nullable=True)
    graduation_year = Column(String(10), nullable=True)
    biography = Column(Text, nullable=True)
    interests = Column(MutableList.as_mutable(JSON), default=list)

    privacy = Column(MutableDict.as_mutable(JSON), default=default_privacy)

    # Gamification
    badges = Column(MutableList.as_mutable(JSON), default=list)
    level = Column(Integer, default=1, nullable=False)
    points = Column(Integer, default=0, nullable=False)

    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    sessions = relationship(
        "UserSession", back_populates="user", cascade="all, delete-orphan", order_by="UserSession.id"
    )
    notes = relationship("Note", back_populates="author", cascade="all, delete-orphan")
    posts = relationship("CommunityPost", back_populates="author", cascade="all, delete-orphan")
    comments = relationship("PostComment", back_populates="author", cascade="all, delete-orphan")
    answers = relationship("QuestionAnswer", back_populates="author", cascade="all, delete-orphan")

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


class UserSession(Base):
    """One signed-in device; a bearer token is only valid while its row exists"""
    __tablename__ = "user_sessions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    token_id = Column(String(36), unique=True, nullable=False, index=True)
    device = Column(String(255), nullable=True)
    ip = Column(String(64), nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    last_activity = Column(DateTime, default=utcnow, nullable=False)
    expires_at = Column(DateTime, nullable=False)

    user = relationship("User", back_populates="sessions")
