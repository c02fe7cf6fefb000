"""
Note service for AllOne
Listing, moderation visibility, ownership checks and counters
"""

import logging
from typing import List, Optional, Tuple

from sqlalchemy import Float, case, cast, or_
from sqlalchemy.orm import Query, Session, joinedload

from allone.core.config import settings
from allone.core.exceptions import AuthorizationException, NotFoundException
from allone.core.logging import get_audit_logger
from allone.models.note import Grade, Note, Subject
from allone.models.user import User, UserRole
from allone.schemas.common import Pagination
from allone.schemas.note import NoteCreate, NoteUpdate
from allone.services.uploads import UploadService
from allone.utils.validators import utcnow

logger = logging.getLogger(__name__)
audit_logger = get_audit_logger()

EDITABLE_FIELDS = ("title", "description", "subject", "grade", "tags")

_average_rating = case(
    (Note.rating_count > 0, cast(Note.rating, Float) / Note.rating_count),
    else_=0.0,
)

SORT_ORDERS = {
    "newest": (Note.created_at.desc(), Note.id.desc()),
    "oldest": (Note.created_at.asc(), Note.id.asc()),
    "rating": (_average_rating.desc(), Note.created_at.desc(), Note.id.desc()),
    "downloads": (Note.downloads.desc(), Note.created_at.desc(), Note.id.desc()),
}


def _is_admin(user: Optional[User]) -> bool:
    return user is not None and user.role == UserRole.ADMIN


class NoteService:
    """Note service"""

    @staticmethod
    def visible_query(db: Session, user: Optional[User]) -> Query:
        """
        Active notes the caller may see: approved ones for everybody, plus
        their own for signed-in users, plus everything for admins.
        """
        query = db.query(Note).options(joinedload(Note.author)).filter(Note.is_active.is_(True))
        if user is None:
            return query.filter(Note.is_approved.is_(True))
        if _is_admin(user):
            return query
        return query.filter(or_(Note.is_approved.is_(True), Note.author_id == user.id))

    @staticmethod
    def list_notes(
        db: Session,
        user: Optional[User] = None,
        subject: Optional[Subject] = None,
        grade: Optional[Grade] = None,
        sort: str = "newest",
        page: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> Tuple[List[Note], Optional[Pagination]]:
        """
        List notes newest first

        Without ``limit`` every matching note is returned and no pagination
        block is produced.
        """
        query = NoteService.visible_query(db, user)
        if subject is not None:
            query = query.filter(Note.subject == subject)
        if grade is not None:
            query = query.filter(Note.grade == grade)
        query = query.order_by(*SORT_ORDERS.get(sort, SORT_ORDERS["newest"]))

        if limit is None:
            return query.all(), None

        limit = min(limit, settings.MAX_PAGE_SIZE)
        page = page or 1
        total = query.count()
        notes = query.offset((page - 1) * limit).limit(limit).all()
        return notes, Pagination.build(page, limit, total)

    @staticmethod
    def get_note(db: Session, note_id: int, user: Optional[User] = None) -> Note:
        """Fetch a visible note and count the view"""
        note = NoteService.visible_query(db, user).filter(Note.id == note_id).first()
        if note is None:
            raise NotFoundException("Note")

        db.query(Note).filter(Note.id == note_id).update(
            {Note.view_count: Note.view_count + 1}, synchronize_session=False
        )
        db.commit()
        db.refresh(note)
        return note

    @staticmethod
    def create_note(db: Session, payload: NoteCreate, author: User) -> Note:
        """
        Create a note around an upload the author made earlier

        The upload is claimed in the same transaction, so a file is either
        attached to exactly one note or left for the orphan sweep.
        """
        stored = UploadService.claim(db, payload.file_name, author)
        now = utcnow()
        note = Note(
            title=payload.title,
            description=payload.description,
            subject=payload.subject,
            grade=payload.grade,
            tags=list(payload.tags),
            file_url=UploadService.public_url(stored),
            file_name=stored.file_name,
            file_size=stored.size,
            author_id=author.id,
            downloads=0,
            view_count=0,
            rating=0,
            rating_count=0,
            is_approved=False,
            is_active=True,
            created_at=now,
            updated_at=now,
        )
        db.add(note)
        db.flush()
        stored.note_id = note.id
        db.commit()
        db.refresh(note)

        logger.info("Note created", extra={"note_id": note.id, "user_id": author.id})
        return note

    @staticmethod
    def get_owned(db: Session, note_id: int, user: User) -> Note:
        note = db.get(Note, note_id)
        if note is None:
            raise NotFoundException("Note")
        if note.author_id != user.id and not _is_admin(user):
            raise AuthorizationException("Not authorized to modify this note")
        return note

    @staticmethod
    def update_note(db: Session, note_id: int, payload: NoteUpdate, user: User) -> Note:
        note = NoteService.get_owned(db, note_id, user)
        data = payload.model_dump(exclude_unset=True)
        for field in EDITABLE_FIELDS:
            if data.get(field) is not None:
                setattr(note, field, data[field])
        note.updated_at = utcnow()
        db.commit()
        db.refresh(note)
        return note

    @staticmethod
    def delete_note(db: Session, note_id: int, user: User, soft: bool = False) -> None:
        """
        Delete a note

        A hard delete detaches the file so the orphan sweep reclaims it;
        a soft delete only hides the note.
        """
        note = NoteService.get_owned(db, note_id, user)
        if soft:
            note.is_active = False
            note.updated_at = utcnow()
        else:
            if note.stored_file is not None:
                note.stored_file.note_id = None
            db.delete(note)
        db.commit()

        audit_logger.info(
            "Note deleted",
            extra={"note_id": note_id, "user_id": user.id, "soft": soft},
        )

    @staticmethod
    def record_download(db: Session, note_id: int, user: Optional[User] = None) -> Note:
        note = NoteService.visible_query(db, user).filter(Note.id == note_id).first()
        if note is None:
            raise NotFoundException("Note")
        db.query(Note).filter(Note.id == note_id).update(
            {Note.downloads: Note.downloads + 1}, synchronize_session=False
        )
        db.commit()
        db.refresh(note)
        return note

    @staticmethod
    def rate_note(db: Session, note_id: int, score: int, user: User) -> Note:
        note = NoteService.visible_query(db, user).filter(Note.id == note_id).first()
        if note is None:
            raise NotFoundException("Note")
        db.query(Note).filter(Note.id == note_id).update(
            {Note.rating: Note.rating + score, Note.rating_count: Note.rating_count + 1},
            synchronize_session=False,
        )
        db.commit()
        db.refresh(note)
        return note

    @staticmethod
    def set_approval(db: Session, note_id: int, approved: bool, admin: User) -> Note:
        note = db.get(Note, note_id)
        if note is None:
            raise NotFoundException("Note")
        note.is_approved = approved
        note.updated_at = utcnow()
        db.commit()
        db.refresh(note)

        audit_logger.info(
            "Note approval changed",
            extra={"note_id": note_id, "approved": approved, "admin_id": admin.id},
        )
        return note

    @staticmethod
    def list_pending(db: Session, page: int = 1, limit: int = 10) -> Tuple[List[Note], Pagination]:
        """Moderation queue, oldest submissions first"""
        limit = min(limit, settings.MAX_PAGE_SIZE)
        query = (
            db.query(Note)
            .options(joinedload(Note.author))
            .filter(Note.is_active.is_(True), Note.is_approved.is_(False))
            .order_by(Note.created_at.asc(), Note.id.asc())
        )
        total = query.count()
        notes = query.offset((page - 1) * limit).limit(limit).all()
        return notes, Pagination.build(page, limit, total)
