"""
Stored upload model for AllOne
"""

import enum

from sqlalchemy import Column, DateTime, Enum, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from allone.core.database import Base
from allone.utils.validators import utcnow


class UploadKind(str, enum.Enum):
    """What an upload is for; decides the accepted types and the directory"""
    NOTE = "note"
    AVATAR = "avatar"


class StoredFile(Base):
    """
    A file written to the content directory.

    Rows without a note are pending; note creation claims them. Pending
    rows older than the retention window are swept together with the file.
    """
    __tablename__ = "stored_files"

    id = Column(Integer, primary_key=True, index=True)
    file_name = Column(String(255), unique=True, nullable=False, index=True)
    original_name = Column(String(255), nullable=True)
    content_type = Column(String(100), nullable=False)
    size = Column(Integer, nullable=False)
    kind = Column(Enum(UploadKind), nullable=False)
    uploader_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    note_id = Column(Integer, ForeignKey("notes.id", ondelete="SET NULL"), nullable=True, index=True)
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)

    note = relationship("Note", back_populates="stored_file")

    @property
    def relative_path(self) -> str:
        if self.kind == UploadKind.AVATAR:
            return f"avatars/{self.file_name}"
        return self.file_name
