"""
Daily question models for AllOne
"""

import enum

from sqlalchemy import Boolean, Column, DateTime, Enum, ForeignKey, Integer, JSON, String, Text
from sqlalchemy.ext.mutable import MutableList
from sqlalchemy.orm import relationship

from allone.core.database import Base
from allone.utils.validators import utcnow


class Difficulty(str, enum.Enum):
    """Question difficulty levels"""
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class DailyQuestion(Base):
    """Question of the day"""
    __tablename__ = "daily_questions"

    id = Column(Integer, primary_key=True, index=True)
    question = Column(String(500), nullable=False)
    description = Column(Text, nullable=False)
    category = Column(String(100), nullable=False, index=True)
    difficulty = Column(Enum(Difficulty), nullable=False, index=True)
    points = Column(Integer, nullable=False)
    likes = Column(MutableList.as_mutable(JSON), default=list)
    is_active = Column(Boolean, default=True, nullable=False, index=True)
    date = Column(DateTime, default=utcnow, nullable=False, index=True)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    answers = relationship(
        "QuestionAnswer", back_populates="question", cascade="all, delete-orphan", order_by="QuestionAnswer.id"
    )

    @property
    def like_count(self) -> int:
        return len(self.likes or [])

    @property
    def answer_count(self) -> int:
        return len(self.answers)


class QuestionAnswer(Base):
    """Answer owned by a daily question"""
    __tablename__ = "question_answers"

    id = Column(Integer, primary_key=True, index=True)
    question_id = Column(Integer, ForeignKey("daily_questions.id", ondelete="CASCADE"), nullable=False, index=True)
    author_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    content = Column(Text, nullable=False)
    likes = Column(MutableList.as_mutable(JSON), default=list)
    is_accepted = Column(Boolean, default=False, nullable=False)
    points_awarded = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    question = relationship("DailyQuestion", back_populates="answers")
    author = relationship("User", back_populates="answers")

    @property
    def like_count(self) -> int:
        return len(self.likes or [])
