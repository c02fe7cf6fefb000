"""
Admin service for AllOne
User management and platform analytics
"""

import logging
from datetime import timedelta
from typing import List, Optional, Tuple

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from allone.core.config import settings
from allone.core.database import unique_write
from allone.core.exceptions import DuplicateException, NotFoundException, ValidationException
from allone.core.logging import get_audit_logger
from allone.models.category import Category
from allone.models.community import CommunityPost
from allone.models.daily_question import DailyQuestion
from allone.models.note import Note
from allone.models.user import User, UserRole
from allone.schemas.admin import AdminUserUpdate
from allone.schemas.common import Pagination
from allone.utils.validators import normalize_email, utcnow

logger = logging.getLogger(__name__)
audit_logger = get_audit_logger()


class AdminService:
    """Admin service"""

    @staticmethod
    def list_users(
        db: Session,
        search: Optional[str] = None,
        role: Optional[UserRole] = None,
        is_active: Optional[bool] = None,
        page: int = 1,
        limit: int = 10,
    ) -> Tuple[List[User], Pagination]:
        limit = min(limit, settings.MAX_PAGE_SIZE)
        query = db.query(User)
        if search:
            pattern = f"%{search.strip().lower()}%"
            query = query.filter(or_(func.lower(User.name).like(pattern), User.email.like(pattern)))
        if role is not None:
            query = query.filter(User.role == role)
        if is_active is not None:
            query = query.filter(User.is_active.is_(is_active))

        total = query.count()
        users = query.order_by(User.created_at.desc(), User.id.desc()).offset((page - 1) * limit).limit(limit).all()
        return users, Pagination.build(page, limit, total)

    @staticmethod
    def get_user(db: Session, user_id: int) -> User:
        user = db.get(User, user_id)
        if user is None:
            raise NotFoundException("User")
        return user

    @staticmethod
    def update_user(db: Session, user_id: int, payload: AdminUserUpdate, admin: User) -> User:
        user = AdminService.get_user(db, user_id)
        data = {k: v for k, v in payload.model_dump(exclude_unset=True).items() if v is not None}

        if "email" in data:
            email = normalize_email(data.pop("email"))
            taken = db.query(User).filter(User.email == email, User.id != user.id).first()
            if taken:
                raise DuplicateException("Email already in use")
            user.email = email
        for field, value in data.items():
            setattr(user, field, value)
        with unique_write(db, "Email already in use"):
            db.commit()
        db.refresh(user)

        audit_logger.info(
            "User updated by admin",
            extra={"user_id": user.id, "admin_id": admin.id, "fields": sorted(payload.model_fields_set)},
        )
        return user

    @staticmethod
    def delete_user(db: Session, user_id: int, admin: User) -> None:
        if user_id == admin.id:
            raise ValidationException("You cannot delete your own account", status_code=400, error_code="SELF_ACTION")
        user = AdminService.get_user(db, user_id)
        db.delete(user)
        db.commit()
        audit_logger.info("User deleted", extra={"user_id": user_id, "admin_id": admin.id})

    @staticmethod
    def toggle_status(db: Session, user_id: int, admin: User) -> User:
        if user_id == admin.id:
            raise ValidationException(
                "You cannot change your own status", status_code=400, error_code="SELF_ACTION"
            )
        user = AdminService.get_user(db, user_id)
        user.is_active = not user.is_active
        db.commit()
        db.refresh(user)
        audit_logger.info(
            "User status toggled",
            extra={"user_id": user_id, "is_active": user.is_active, "admin_id": admin.id},
        )
        return user

    @staticmethod
    def analytics(db: Session) -> dict:
        """Totals, recent activity and per-subject breakdown"""
        now = utcnow()
        month_ago = now - timedelta(days=30)

        totals = {
            "users": db.query(func.count(User.id)).scalar(),
            "activeUsers": db.query(func.count(User.id)).filter(User.is_active.is_(True)).scalar(),
            "notes": db.query(func.count(Note.id)).scalar(),
            "pendingNotes": db.query(func.count(Note.id))
            .filter(Note.is_active.is_(True), Note.is_approved.is_(False))
            .scalar(),
            "categories": db.query(func.count(Category.id)).filter(Category.is_active.is_(True)).scalar(),
            "posts": db.query(func.count(CommunityPost.id)).scalar(),
            "questions": db.query(func.count(DailyQuestion.id)).scalar(),
            "downloads": db.query(func.coalesce(func.sum(Note.downloads), 0)).scalar(),
        }
        recent = {
            "newUsers": db.query(func.count(User.id)).filter(User.created_at >= month_ago).scalar(),
            "newNotes": db.query(func.count(Note.id)).filter(Note.created_at >= month_ago).scalar(),
            "newPosts": db.query(func.count(CommunityPost.id))
            .filter(CommunityPost.created_at >= month_ago)
            .scalar(),
            "activeUsers": db.query(func.count(User.id)).filter(User.last_login >= month_ago).scalar(),
        }
        notes_by_subject = {
            subject.value: count
            for subject, count in db.query(Note.subject, func.count(Note.id)).group_by(Note.subject)
        }

        growth = []
        for days_back in range(6, -1, -1):
            day_start = (now - timedelta(days=days_back)).replace(hour=0, minute=0, second=0, microsecond=0)
            count = (
                db.query(func.count(User.id))
                .filter(User.created_at >= day_start, User.created_at < day_start + timedelta(days=1))
                .scalar()
            )
            growth.append({"date": day_start.date().isoformat(), "count": count})

        return {
            "totals": totals,
            "last30Days": recent,
            "notesBySubject": notes_by_subject,
            "userGrowth": growth,
        }
