"""
Category model for AllOne
"""

from sqlalchemy import Boolean, Column, DateTime, Enum, ForeignKey, Integer, String

from allone.core.database import Base
from allone.models.note import Grade, Subject
from allone.utils.validators import utcnow


class Category(Base):
    """Subject/grade pairing used to organise notes"""
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(50), nullable=False)
    name_key = Column(String(50), unique=True, nullable=False, index=True)  # casefolded name
    description = Column(String(200), nullable=True)
    subject = Column(Enum(Subject), nullable=False)
    grade = Column(Enum(Grade), nullable=False)
    color = Column(String(7), default="#3b82f6", nullable=False)
    icon = Column(String(50), default="book", nullable=False)
    is_active = Column(Boolean, default=True, nullable=False, index=True)
    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)
