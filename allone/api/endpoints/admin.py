"""
Admin endpoints
Handles moderation, user management and maintenance
"""

from datetime import timedelta
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from allone.core.config import settings
from allone.core.database import get_db
from allone.core.logging import get_audit_logger
from allone.core.security import require_admin
from allone.models.user import User, UserRole
from allone.schemas.admin import AdminUserUpdate
from allone.schemas.common import dump, dump_list, success_response
from allone.schemas.note import NoteResponse
from allone.schemas.upload import SweepResult
from allone.schemas.user import UserResponse
from allone.services.admin import AdminService
from allone.services.notes import NoteService
from allone.services.uploads import UploadService

router = APIRouter()
audit_logger = get_audit_logger()


@router.get("/users")
def list_users(
    search: Optional[str] = None,
    role: Optional[UserRole] = None,
    is_active: Optional[bool] = Query(None, alias="isActive"),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=50),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Get all users with filters (admin only)"""
    users, pagination = AdminService.list_users(db, search, role, is_active, page, limit)
    return success_response(dump_list(UserResponse, users), pagination=pagination)


@router.get("/users/{user_id}")
def get_user(user_id: int, admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    return success_response(dump(UserResponse, AdminService.get_user(db, user_id)))


@router.put("/users/{user_id}")
def update_user(
    user_id: int,
    payload: AdminUserUpdate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    user = AdminService.update_user(db, user_id, payload, admin)
    return success_response(dump(UserResponse, user), message="User updated successfully")


@router.delete("/users/{user_id}")
def delete_user(user_id: int, admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    AdminService.delete_user(db, user_id, admin)
    return success_response(message="User deleted successfully")


@router.put("/users/{user_id}/status")
def toggle_user_status(
    user_id: int, admin: User = Depends(require_admin), db: Session = Depends(get_db)
):
    """Activate/deactivate user account"""
    user = AdminService.toggle_status(db, user_id, admin)
    state = "activated" if user.is_active else "deactivated"
    return success_response(dump(UserResponse, user), message=f"User {state} successfully")


@router.get("/analytics")
def analytics(admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    return success_response(AdminService.analytics(db))


@router.get("/notes/pending")
def pending_notes(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=50),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Moderation queue"""
    notes, pagination = NoteService.list_pending(db, page, limit)
    return success_response(dump_list(NoteResponse, notes), pagination=pagination)


@router.post("/maintenance/sweep-uploads")
def sweep_uploads(
    older_than_hours: Optional[float] = Query(None, ge=0, alias="olderThanHours"),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Remove orphaned uploads now instead of waiting for the scheduled sweep"""
    older_than = timedelta(hours=older_than_hours) if older_than_hours is not None else None
    result = UploadService.sweep_orphans(db, older_than)
    audit_logger.info("Upload sweep requested", extra={"admin_id": admin.id})
    return success_response(dump(SweepResult, result))
