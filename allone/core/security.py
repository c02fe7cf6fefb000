"""
Security utilities for authentication and authorization
Handles JWT tokens, password hashing, and session-backed permission checks
"""

import hashlib
import logging
import secrets
import uuid
from datetime import timedelta
from typing import Any, Dict, Optional

from fastapi import Depends, Request, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from allone.core.config import settings
from allone.core.database import get_db
from allone.core.exceptions import AuthenticationException, AuthorizationException
from allone.core.logging import get_security_logger
from allone.models.user import User, UserRole, UserSession
from allone.utils.validators import utcnow

logger = logging.getLogger(__name__)
security_logger = get_security_logger()

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=settings.BCRYPT_ROUNDS)

# HTTP Bearer scheme; missing credentials are reported through our own envelope
security = HTTPBearer(auto_error=False)


class SecurityUtils:
    """Security utility functions"""

    @staticmethod
    def verify_password(plain_password: str, hashed_password: str) -> bool:
        """Verify a plain password against hashed password"""
        try:
            return pwd_context.verify(plain_password, hashed_password)
        except ValueError:
            return False

    @staticmethod
    def get_password_hash(password: str) -> str:
        """Hash a password using bcrypt"""
        return pwd_context.hash(password)

    @staticmethod
    def new_token_id() -> str:
        return str(uuid.uuid4())

    @staticmethod
    def create_access_token(user_id: int, token_id: str, expires_delta: Optional[timedelta] = None) -> str:
        """
        Create JWT access token

        Args:
            user_id: Owner of the token, stored as ``sub``
            token_id: Session identifier, stored as ``jti``
            expires_delta: Token lifetime, ACCESS_TOKEN_EXPIRE_MINUTES by default

        Returns:
            Encoded JWT token
        """
        expire = utcnow() + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
        to_encode = {"sub": str(user_id), "jti": token_id, "exp": expire, "type": "access"}
        return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

    @staticmethod
    def decode_token(token: str) -> Dict[str, Any]:
        """
        Decode JWT token

        Raises:
            AuthenticationException: If token is malformed, badly signed or expired
        """
        try:
            return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        except JWTError:
            raise AuthenticationException("Not authorized, token failed")

    @staticmethod
    def generate_reset_token() -> str:
        """Generate a password reset token"""
        return secrets.token_hex(20)

    @staticmethod
    def hash_reset_token(token: str) -> str:
        return hashlib.sha256(token.encode("utf-8")).hexdigest()


def _client_ip(request: Request) -> Optional[str]:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None


def purge_expired_sessions(db: Session, user_id: Optional[int] = None) -> int:
    """Delete sessions past their expiry, for one user or for everybody. The caller commits."""
    query = db.query(UserSession).filter(UserSession.expires_at <= utcnow())
    if user_id is not None:
        query = query.filter(UserSession.user_id == user_id)
    return query.delete(synchronize_session=False)


def open_session(db: Session, user: User, request: Optional[Request] = None) -> str:
    """
    Record a new session for ``user`` and return its bearer token.
    The caller commits.
    """
    purge_expired_sessions(db, user.id)
    token_id = SecurityUtils.new_token_id()
    now = utcnow()
    db.add(
        UserSession(
            user_id=user.id,
            token_id=token_id,
            device=request.headers.get("user-agent") if request else None,
            ip=_client_ip(request) if request else None,
            created_at=now,
            last_activity=now,
            expires_at=now + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
        )
    )
    return SecurityUtils.create_access_token(user.id, token_id)


def resolve_token(db: Session, token: str) -> tuple[User, UserSession]:
    """
    Resolve a bearer token to its user and session

    Raises:
        AuthenticationException: invalid token, unknown user or revoked session
        AuthorizationException: the account is disabled
    """
    payload = SecurityUtils.decode_token(token)
    user_id = payload.get("sub")
    token_id = payload.get("jti")
    if not user_id or not token_id:
        raise AuthenticationException("Not authorized, token failed")

    session = db.query(UserSession).filter(UserSession.token_id == token_id).first()
    if session is None or str(session.user_id) != str(user_id):
        security_logger.info("Rejected token for revoked session", extra={"user_id": user_id})
        raise AuthenticationException("Session expired or revoked")
    if session.expires_at <= utcnow():
        db.delete(session)
        db.commit()
        raise AuthenticationException("Session expired or revoked")

    user = session.user
    if user is None:
        raise AuthenticationException("User not found")
    if not user.is_active:
        raise AuthorizationException("Account is deactivated")

    session.last_activity = utcnow()
    db.commit()
    return user, session


def get_current_session(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security),
    db: Session = Depends(get_db),
) -> UserSession:
    """Session behind the presented bearer token"""
    if credentials is None or not credentials.credentials:
        raise AuthenticationException("Not authorized, no token")
    _, session = resolve_token(db, credentials.credentials)
    return session


def get_current_user(session: UserSession = Depends(get_current_session)) -> User:
    """Owner of the presented bearer token"""
    return session.user


def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security),
    db: Session = Depends(get_db),
) -> Optional[User]:
    """
    Like ``get_current_user`` but anonymous callers get ``None``.
    A token that is present but invalid is still rejected.
    """
    if credentials is None or not credentials.credentials:
        return None
    user, _ = resolve_token(db, credentials.credentials)
    return user


def require_admin(current_user: User = Depends(get_current_user)) -> User:
    """Dependency to require admin role"""
    if current_user.role != UserRole.ADMIN:
        raise AuthorizationException("Admin access required")
    return current_user
