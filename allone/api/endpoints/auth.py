"""
Authentication endpoints
"""

from fastapi import APIRouter, Depends, File, Request, UploadFile, status
from sqlalchemy.orm import Session

from allone.core.config import settings
from allone.core.database import get_db
from allone.core.security import get_current_session, get_current_user
from allone.models.upload import UploadKind
from allone.models.user import User, UserSession
from allone.schemas.auth import (
    ChangePasswordRequest,
    ForgotPasswordRequest,
    LoginRequest,
    ProfileUpdate,
    RegisterRequest,
    ResetPasswordRequest,
)
from allone.schemas.common import dump, success_response
from allone.schemas.user import SessionResponse, UserResponse, UserStats
from allone.services.auth import AuthService
from allone.services.uploads import UploadService

router = APIRouter()


def _auth_payload(token: str, user: User) -> dict:
    return {"token": token, "user": dump(UserResponse, user)}


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(payload: RegisterRequest, request: Request, db: Session = Depends(get_db)):
    """Register new user"""
    token, user = AuthService.register(db, payload, request)
    return success_response(_auth_payload(token, user), message="User registered successfully")


@router.post("/login")
def login(payload: LoginRequest, request: Request, db: Session = Depends(get_db)):
    """Login user"""
    token, user = AuthService.login(db, payload.email, payload.password, request)
    return success_response(_auth_payload(token, user), message="Login successful")


@router.post("/logout")
def logout(session: UserSession = Depends(get_current_session), db: Session = Depends(get_db)):
    """End the session of the presented token"""
    AuthService.logout(db, session)
    return success_response(message="Logged out successfully")


@router.post("/logout-all")
def logout_all(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """End every session of the current user"""
    count = AuthService.logout_all(db, current_user)
    return success_response({"revoked": count}, message="Logged out from all devices")


@router.get("/me")
def me(current_user: User = Depends(get_current_user)):
    return success_response(dump(UserResponse, current_user))


@router.get("/sessions")
def list_sessions(session: UserSession = Depends(get_current_session), db: Session = Depends(get_db)):
    """Active sessions, the presented one flagged as current"""
    sessions = []
    for item in AuthService.list_sessions(db, session.user):
        data = dump(SessionResponse, item)
        data["current"] = item.id == session.id
        sessions.append(data)
    return success_response(sessions)


@router.delete("/sessions/{session_id}")
def revoke_session(
    session_id: int, current_user: User = Depends(get_current_user), db: Session = Depends(get_db)
):
    AuthService.revoke_session(db, current_user, session_id)
    return success_response(message="Session revoked")


@router.put("/profile")
def update_profile(
    payload: ProfileUpdate, current_user: User = Depends(get_current_user), db: Session = Depends(get_db)
):
    user = AuthService.update_profile(db, current_user, payload)
    return success_response(dump(UserResponse, user), message="Profile updated successfully")


@router.post("/change-password")
def change_password(
    payload: ChangePasswordRequest,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Change the password; other devices are signed out"""
    revoked = AuthService.change_password(
        db, session.user, session, payload.current_password, payload.new_password
    )
    return success_response({"revokedSessions": revoked}, message="Password changed successfully")


@router.post("/forgot-password")
def forgot_password(payload: ForgotPasswordRequest, db: Session = Depends(get_db)):
    """
    Start a password reset

    The answer is the same whether or not the account exists. The reset
    link is only returned in DEBUG, since no mailer is configured.
    """
    reset_url = AuthService.forgot_password(db, payload.email)
    data = {"resetUrl": reset_url} if settings.DEBUG and reset_url else None
    return success_response(data, message="If the email is registered, a reset link has been sent")


@router.post("/reset-password")
def reset_password(payload: ResetPasswordRequest, db: Session = Depends(get_db)):
    AuthService.reset_password(db, payload.token, payload.email, payload.password)
    return success_response(message="Password has been reset")


@router.post("/avatar")
def upload_avatar(
    avatar: UploadFile = File(...),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Upload an image and make it the current user's avatar"""
    data = avatar.file.read(settings.MAX_UPLOAD_SIZE + 1)
    stored = UploadService.store(db, data, avatar.content_type, avatar.filename, UploadKind.AVATAR, current_user)
    UploadService.replace_avatar(db, current_user, stored)
    return success_response(
        {"avatar": current_user.avatar, "user": dump(UserResponse, current_user)},
        message="Avatar updated successfully",
    )


@router.get("/stats")
def stats(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return success_response(dump(UserStats, AuthService.stats(db, current_user)))
