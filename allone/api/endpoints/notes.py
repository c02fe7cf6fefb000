"""
Note endpoints

Notes are reachable by id (``/notes/{id}``) and, for clients written
against the serverless handler, through ``PUT``/``DELETE`` on the
collection with the id in the body. Both go through ``NoteService``.
"""

from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from allone.core.config import settings
from allone.core.database import get_db
from allone.core.security import get_current_user, get_optional_user, require_admin
from allone.models.note import Grade, Subject
from allone.models.user import User
from allone.schemas.common import dump, dump_list, success_response
from allone.schemas.note import (
    ApprovalRequest,
    NoteCreate,
    NoteDeleteById,
    NoteResponse,
    NoteUpdate,
    NoteUpdateById,
    RateRequest,
)
from allone.services.notes import NoteService

router = APIRouter()


@router.get("")
def list_notes(
    subject: Optional[Subject] = None,
    grade: Optional[Grade] = None,
    sort: Literal["newest", "oldest", "rating", "downloads"] = "newest",
    page: Optional[int] = Query(None, ge=1),
    limit: Optional[int] = Query(None, ge=1, le=50),
    current_user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db),
):
    """List notes, newest first; all of them unless ``limit`` is given"""
    if page is not None and limit is None:
        limit = settings.DEFAULT_PAGE_SIZE
    notes, pagination = NoteService.list_notes(
        db, current_user, subject=subject, grade=grade, sort=sort, page=page, limit=limit
    )
    extra = {"pagination": pagination} if pagination is not None else {}
    return success_response(dump_list(NoteResponse, notes), count=len(notes), **extra)


@router.post("", status_code=status.HTTP_201_CREATED)
def create_note(
    payload: NoteCreate, current_user: User = Depends(get_current_user), db: Session = Depends(get_db)
):
    """Create a note for a previously uploaded file; it waits for approval"""
    note = NoteService.create_note(db, payload, current_user)
    return success_response(dump(NoteResponse, note), message="Note created and waiting for approval")


@router.put("")
def update_note_by_body(
    payload: NoteUpdateById, current_user: User = Depends(get_current_user), db: Session = Depends(get_db)
):
    note = NoteService.update_note(db, payload.id, payload, current_user)
    return success_response(dump(NoteResponse, note))


@router.delete("")
def delete_note_by_body(
    payload: NoteDeleteById, current_user: User = Depends(get_current_user), db: Session = Depends(get_db)
):
    NoteService.delete_note(db, payload.note_id, current_user, soft=payload.soft)
    return success_response(message="Note deleted")


@router.get("/{note_id}")
def get_note(
    note_id: int,
    current_user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db),
):
    note = NoteService.get_note(db, note_id, current_user)
    return success_response(dump(NoteResponse, note))


@router.put("/{note_id}")
def update_note(
    note_id: int,
    payload: NoteUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    note = NoteService.update_note(db, note_id, payload, current_user)
    return success_response(dump(NoteResponse, note))


@router.delete("/{note_id}")
def delete_note(
    note_id: int,
    soft: bool = False,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    NoteService.delete_note(db, note_id, current_user, soft=soft)
    return success_response(message="Note deleted")


@router.put("/{note_id}/download")
def record_download(
    note_id: int,
    current_user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db),
):
    """Count a download and hand back the file link"""
    note = NoteService.record_download(db, note_id, current_user)
    return success_response({"downloads": note.downloads, "fileUrl": note.file_url})


@router.post("/{note_id}/rate")
def rate_note(
    note_id: int,
    payload: RateRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    note = NoteService.rate_note(db, note_id, payload.rating, current_user)
    return success_response(dump(NoteResponse, note))


@router.put("/{note_id}/approval")
def set_approval(
    note_id: int,
    payload: ApprovalRequest,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    note = NoteService.set_approval(db, note_id, payload.is_approved, admin)
    return success_response(dump(NoteResponse, note))
