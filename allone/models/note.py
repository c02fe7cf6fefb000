"""
Note models for AllOne
"""

import enum

from sqlalchemy import Boolean, Column, DateTime, Enum, ForeignKey, Index, Integer, JSON, String, Text
from sqlalchemy.ext.mutable import MutableList
from sqlalchemy.orm import relationship

from allone.core.database import Base
from allone.utils.validators import utcnow


class Subject(str, enum.Enum):
    """School subjects a note can belong to"""
    MATEMATIK = "matematik"
    FIZIK = "fizik"
    KIMYA = "kimya"
    BIYOLOJI = "biyoloji"
    TURKCE = "turkce"
    TARIH = "tarih"
    COGRAFYA = "cografya"
    FELSEFE = "felsefe"
    EDEBIYAT = "edebiyat"


class Grade(str, enum.Enum):
    """High-school grade; graduates preparing for exams use ``mezun``"""
    NINTH = "9"
    TENTH = "10"
    ELEVENTH = "11"
    TWELFTH = "12"
    GRADUATE = "mezun"


class Note(Base):
    """Uploaded study note"""
    __tablename__ = "notes"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=False)
    subject = Column(Enum(Subject), nullable=False)
    grade = Column(Enum(Grade), nullable=False)
    tags = Column(MutableList.as_mutable(JSON), default=list)

    file_url = Column(String(500), nullable=False)
    file_name = Column(String(255), nullable=False)
    file_size = Column(Integer, nullable=False)

    author_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    downloads = Column(Integer, default=0, nullable=False, index=True)
    view_count = Column(Integer, default=0, nullable=False)
    rating = Column(Integer, default=0, nullable=False)  # sum of all scores
    rating_count = Column(Integer, default=0, nullable=False)

    is_approved = Column(Boolean, default=False, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    author = relationship("User", back_populates="notes")
    stored_file = relationship("StoredFile", back_populates="note", uselist=False)

    __table_args__ = (
        Index("ix_notes_subject_grade", "subject", "grade"),
    )

    @property
    def average_rating(self) -> float:
        if not self.rating_count:
            return 0.0
        return round(self.rating / self.rating_count, 1)
