"""
Authentication service for AllOne
Registration, login, session management and password recovery
"""

import logging
from datetime import timedelta
from typing import List, Optional, Tuple

from fastapi import Request
from pydantic.alias_generators import to_camel
from sqlalchemy import func
from sqlalchemy.orm import Session

from allone.core.config import settings
from allone.core.exceptions import (
    DuplicateException,
    InvalidCredentialsException,
    NotFoundException,
    ValidationException,
)
from allone.core.database import unique_write
from allone.core.logging import get_security_logger
from allone.core.security import SecurityUtils, open_session
from allone.models.community import CommunityPost
from allone.models.daily_question import QuestionAnswer
from allone.models.note import Note
from allone.models.user import User, UserRole, UserSession
from allone.schemas.auth import ProfileUpdate, RegisterRequest
from allone.utils.validators import normalize_email, utcnow

logger = logging.getLogger(__name__)
security_logger = get_security_logger()


class AuthService:
    """Authentication service"""

    @staticmethod
    def get_by_email(db: Session, email: str) -> Optional[User]:
        return db.query(User).filter(User.email == normalize_email(email)).first()

    @staticmethod
    def register(db: Session, payload: RegisterRequest, request: Optional[Request] = None) -> Tuple[str, User]:
        """Create a user account and sign it in"""
        email = normalize_email(payload.email)
        if AuthService.get_by_email(db, email):
            raise DuplicateException("User already exists")

        user = User(
            name=payload.name,
            email=email,
            hashed_password=SecurityUtils.get_password_hash(payload.password),
            role=UserRole.USER,
            last_login=utcnow(),
        )
        with unique_write(db, "User already exists"):
            db.add(user)
            db.flush()
            token = open_session(db, user, request)
            db.commit()
        db.refresh(user)

        logger.info("User registered", extra={"user_id": user.id})
        return token, user

    @staticmethod
    def login(db: Session, email: str, password: str, request: Optional[Request] = None) -> Tuple[str, User]:
        """
        Verify credentials and open a session

        Raises:
            InvalidCredentialsException: unknown email, wrong password or
                disabled account; the message is the same in every case
        """
        user = AuthService.get_by_email(db, email)
        if user is None or not SecurityUtils.verify_password(password, user.hashed_password):
            security_logger.warning("Failed login", extra={"email": normalize_email(email)})
            raise InvalidCredentialsException()
        if not user.is_active:
            security_logger.warning("Login attempt on disabled account", extra={"user_id": user.id})
            raise InvalidCredentialsException()

        token = open_session(db, user, request)
        user.last_login = utcnow()
        db.commit()
        db.refresh(user)
        return token, user

    @staticmethod
    def logout(db: Session, session: UserSession) -> None:
        db.delete(session)
        db.commit()

    @staticmethod
    def logout_all(db: Session, user: User) -> int:
        count = db.query(UserSession).filter(UserSession.user_id == user.id).delete(synchronize_session=False)
        db.commit()
        security_logger.info("All sessions revoked", extra={"user_id": user.id, "count": count})
        return count

    @staticmethod
    def list_sessions(db: Session, user: User) -> List[UserSession]:
        return (
            db.query(UserSession)
            .filter(UserSession.user_id == user.id)
            .order_by(UserSession.last_activity.desc(), UserSession.id.desc())
            .all()
        )

    @staticmethod
    def revoke_session(db: Session, user: User, session_id: int) -> None:
        session = (
            db.query(UserSession)
            .filter(UserSession.id == session_id, UserSession.user_id == user.id)
            .first()
        )
        if session is None:
            raise NotFoundException("Session")
        db.delete(session)
        db.commit()
        security_logger.info("Session revoked", extra={"user_id": user.id, "session_id": session_id})

    @staticmethod
    def update_profile(db: Session, user: User, payload: ProfileUpdate) -> User:
        data = payload.model_dump(exclude_unset=True)

        email = data.pop("email", None)
        if email:
            email = normalize_email(email)
            if email != user.email:
                if AuthService.get_by_email(db, email):
                    raise DuplicateException("Email already in use")
                user.email = email
                user.email_verified = False

        privacy = data.pop("privacy", None)
        if privacy:
            merged = dict(user.privacy or {})
            for key, value in privacy.items():
                if value is not None:
                    merged[to_camel(key)] = value
            user.privacy = merged

        for field, value in data.items():
            if value is None and field in ("name", "interests"):
                continue
            setattr(user, field, value)

        with unique_write(db, "Email already in use"):
            db.commit()
        db.refresh(user)
        return user

    @staticmethod
    def change_password(
        db: Session, user: User, current_session: UserSession, current_password: str, new_password: str
    ) -> int:
        """Set a new password and revoke every other session of the user"""
        if not SecurityUtils.verify_password(current_password, user.hashed_password):
            raise ValidationException("Current password is incorrect", status_code=400, error_code="INVALID_PASSWORD")

        user.hashed_password = SecurityUtils.get_password_hash(new_password)
        revoked = (
            db.query(UserSession)
            .filter(UserSession.user_id == user.id, UserSession.id != current_session.id)
            .delete(synchronize_session=False)
        )
        db.commit()
        security_logger.info("Password changed", extra={"user_id": user.id, "revoked_sessions": revoked})
        return revoked

    @staticmethod
    def forgot_password(db: Session, email: str) -> Optional[str]:
        """
        Issue a reset token for ``email`` if the account exists.

        Returns the reset URL, or None when there is no such account.
        Callers must answer the same way either way.
        """
        user = AuthService.get_by_email(db, email)
        if user is None:
            return None

        token = SecurityUtils.generate_reset_token()
        user.password_reset_token = SecurityUtils.hash_reset_token(token)
        user.password_reset_expires = utcnow() + timedelta(minutes=settings.PASSWORD_RESET_EXPIRE_MINUTES)
        db.commit()

        security_logger.info("Password reset requested", extra={"user_id": user.id})
        return f"{settings.FRONTEND_URL.rstrip('/')}/reset-password?token={token}&email={user.email}"

    @staticmethod
    def reset_password(db: Session, token: str, email: str, password: str) -> None:
        user = (
            db.query(User)
            .filter(
                User.email == normalize_email(email),
                User.password_reset_token == SecurityUtils.hash_reset_token(token),
                User.password_reset_expires > utcnow(),
            )
            .first()
        )
        if user is None:
            raise ValidationException("Invalid or expired reset token", status_code=400, error_code="INVALID_TOKEN")

        user.hashed_password = SecurityUtils.get_password_hash(password)
        user.password_reset_token = None
        user.password_reset_expires = None
        # A reset signs the account out everywhere
        db.query(UserSession).filter(UserSession.user_id == user.id).delete(synchronize_session=False)
        db.commit()
        security_logger.info("Password reset completed", extra={"user_id": user.id})

    @staticmethod
    def stats(db: Session, user: User) -> dict:
        notes_count, total_downloads, ratings = (
            db.query(
                func.count(Note.id),
                func.coalesce(func.sum(Note.downloads), 0),
                func.coalesce(func.sum(Note.rating_count), 0),
            )
            .filter(Note.author_id == user.id)
            .one()
        )
        posts = db.query(CommunityPost).filter(CommunityPost.author_id == user.id).all()
        answers = db.query(QuestionAnswer).filter(QuestionAnswer.author_id == user.id).all()

        likes_received = ratings + sum(p.like_count for p in posts) + sum(a.like_count for a in answers)
        return {
            "notes_count": notes_count,
            "total_downloads": total_downloads,
            "posts_count": len(posts),
            "answers_count": len(answers),
            "total_likes_received": likes_received,
            "points": user.points,
            "level": user.level,
        }

