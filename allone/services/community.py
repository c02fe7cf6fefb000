"""
Community forum service for AllOne
"""

import logging
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session, selectinload

from allone.core.config import settings
from allone.core.exceptions import AuthorizationException, NotFoundException
from allone.core.logging import get_audit_logger
from allone.models.community import CommunityPost, PostComment, PostType
from allone.models.user import User, UserRole
from allone.schemas.common import Pagination
from allone.schemas.community import PostCreate, PostUpdate
from allone.utils.validators import utcnow

logger = logging.getLogger(__name__)
audit_logger = get_audit_logger()


def toggle_like(likes: list, user_id: int) -> bool:
    """Add or remove ``user_id``; returns True when the user now likes it"""
    if user_id in likes:
        likes.remove(user_id)
        return False
    likes.append(user_id)
    return True


class CommunityService:
    """Community service"""

    @staticmethod
    def list_posts(
        db: Session,
        post_type: Optional[PostType] = None,
        category: Optional[str] = None,
        page: int = 1,
        limit: int = 10,
    ) -> Tuple[List[CommunityPost], Pagination]:
        """Approved posts, pinned first then newest"""
        limit = min(limit, settings.MAX_PAGE_SIZE)
        query = db.query(CommunityPost).filter(CommunityPost.is_approved.is_(True))
        if post_type is not None:
            query = query.filter(CommunityPost.type == post_type)
        if category:
            query = query.filter(CommunityPost.category == category)

        total = query.count()
        posts = (
            query.options(selectinload(CommunityPost.comments), selectinload(CommunityPost.author))
            .order_by(CommunityPost.is_pinned.desc(), CommunityPost.created_at.desc(), CommunityPost.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return posts, Pagination.build(page, limit, total)

    @staticmethod
    def get_post(db: Session, post_id: int) -> CommunityPost:
        post = db.get(CommunityPost, post_id)
        if post is None:
            raise NotFoundException("Post")
        return post

    @staticmethod
    def _get_owned(db: Session, post_id: int, user: User) -> CommunityPost:
        post = CommunityService.get_post(db, post_id)
        if post.author_id != user.id and user.role != UserRole.ADMIN:
            raise AuthorizationException("Not authorized to modify this post")
        return post

    @staticmethod
    def create_post(db: Session, payload: PostCreate, author: User) -> CommunityPost:
        post = CommunityPost(**payload.model_dump(), author_id=author.id, likes=[])
        db.add(post)
        db.commit()
        db.refresh(post)
        return post

    @staticmethod
    def update_post(db: Session, post_id: int, payload: PostUpdate, user: User) -> CommunityPost:
        post = CommunityService._get_owned(db, post_id, user)
        for field, value in payload.model_dump(exclude_unset=True).items():
            if value is not None:
                setattr(post, field, value)
        post.updated_at = utcnow()
        db.commit()
        db.refresh(post)
        return post

    @staticmethod
    def delete_post(db: Session, post_id: int, user: User) -> None:
        post = CommunityService._get_owned(db, post_id, user)
        db.delete(post)
        db.commit()
        if post.author_id != user.id:
            audit_logger.info("Post removed by admin", extra={"post_id": post_id, "admin_id": user.id})

    @staticmethod
    def toggle_post_like(db: Session, post_id: int, user: User) -> CommunityPost:
        post = CommunityService.get_post(db, post_id)
        toggle_like(post.likes, user.id)
        db.commit()
        db.refresh(post)
        return post

    @staticmethod
    def add_comment(db: Session, post_id: int, content: str, user: User) -> PostComment:
        post = CommunityService.get_post(db, post_id)
        comment = PostComment(author_id=user.id, content=content, likes=[])
        post.comments.append(comment)
        db.commit()
        db.refresh(comment)
        return comment

    @staticmethod
    def toggle_comment_like(db: Session, post_id: int, comment_id: int, user: User) -> PostComment:
        comment = (
            db.query(PostComment)
            .filter(PostComment.id == comment_id, PostComment.post_id == post_id)
            .first()
        )
        if comment is None:
            raise NotFoundException("Comment")
        toggle_like(comment.likes, user.id)
        db.commit()
        db.refresh(comment)
        return comment

    @staticmethod
    def toggle_pin(db: Session, post_id: int, admin: User) -> CommunityPost:
        post = CommunityService.get_post(db, post_id)
        post.is_pinned = not post.is_pinned
        db.commit()
        db.refresh(post)
        audit_logger.info(
            "Post pin toggled",
            extra={"post_id": post_id, "pinned": post.is_pinned, "admin_id": admin.id},
        )
        return post

    @staticmethod
    def report_post(db: Session, post_id: int, reason: str, user: User) -> None:
        post = CommunityService.get_post(db, post_id)
        audit_logger.warning(
            "Post reported",
            extra={"post_id": post.id, "reporter_id": user.id, "reason": reason},
        )
