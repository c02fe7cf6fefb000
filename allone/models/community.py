"""
Community forum models for AllOne
"""

import enum

from sqlalchemy import Boolean, Column, DateTime, Enum, ForeignKey, Integer, JSON, String, Text
from sqlalchemy.ext.mutable import MutableList
from sqlalchemy.orm import relationship

from allone.core.database import Base
from allone.utils.validators import utcnow


class PostType(str, enum.Enum):
    """Kinds of community post"""
    DISCUSSION = "discussion"
    QUESTION = "question"
    ACHIEVEMENT = "achievement"
    RESOURCE = "resource"


class CommunityPost(Base):
    """Forum post"""
    __tablename__ = "community_posts"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(200), nullable=False)
    content = Column(Text, nullable=False)
    type = Column(Enum(PostType), nullable=False, index=True)
    category = Column(String(100), nullable=False, index=True)
    tags = Column(MutableList.as_mutable(JSON), default=list)

    author_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    likes = Column(MutableList.as_mutable(JSON), default=list)  # user ids

    is_pinned = Column(Boolean, default=False, nullable=False)
    is_approved = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    author = relationship("User", back_populates="posts")
    comments = relationship(
        "PostComment", back_populates="post", cascade="all, delete-orphan", order_by="PostComment.id"
    )

    @property
    def like_count(self) -> int:
        return len(self.likes or [])

    @property
    def comment_count(self) -> int:
        return len(self.comments)


class PostComment(Base):
    """Comment owned by a post"""
    __tablename__ = "post_comments"

    id = Column(Integer, primary_key=True, index=True)
    post_id = Column(Integer, ForeignKey("community_posts.id", ondelete="CASCADE"), nullable=False, index=True)
    author_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    content = Column(String(500), nullable=False)
    likes = Column(MutableList.as_mutable(JSON), default=list)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    post = relationship("CommunityPost", back_populates="comments")
    author = relationship("User", back_populates="comments")

    @property
    def like_count(self) -> int:
        return len(self.likes or [])
