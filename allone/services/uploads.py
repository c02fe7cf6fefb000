"""
Upload storage service for AllOne
Validates uploads, writes them to the content directory and sweeps orphans
"""

import logging
import os
import secrets
import time
from datetime import timedelta
from pathlib import Path
from typing import Dict, Optional

from prometheus_client import Counter
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from allone.core.config import settings
from allone.core.exceptions import (
    AuthorizationException,
    DatabaseException,
    FileTooLargeException,
    FileUploadException,
    NotFoundException,
    UnsupportedTypeException,
    ValidationException,
)
from allone.core.logging import get_audit_logger
from allone.models.upload import StoredFile, UploadKind
from allone.models.user import User, UserRole
from allone.utils.validators import utcnow

logger = logging.getLogger(__name__)
audit_logger = get_audit_logger()

# Declared MIME type -> stored extension
ACCEPTED_TYPES: Dict[UploadKind, Dict[str, str]] = {
    UploadKind.NOTE: {"application/pdf": ".pdf"},
    UploadKind.AVATAR: {
        "image/jpeg": ".jpg",
        "image/png": ".png",
        "image/gif": ".gif",
        "image/webp": ".webp",
    },
}

NAME_ATTEMPTS = 5
# Untracked files younger than this may belong to an upload whose row is not committed yet
UNTRACKED_MIN_AGE = timedelta(minutes=10)

UPLOADS_STORED = Counter("allone_uploads_stored_total", "Uploads written to the content directory", ["kind"])
UPLOADS_SWEPT = Counter("allone_uploads_swept_total", "Files removed by the orphan sweep")


def _matches_signature(content_type: str, data: bytes) -> bool:
    """Check that the leading bytes agree with the declared type"""
    if content_type == "application/pdf":
        return data.startswith(b"%PDF")
    if content_type == "image/jpeg":
        return data.startswith(b"\xff\xd8\xff")
    if content_type == "image/png":
        return data.startswith(b"\x89PNG\r\n\x1a\n")
    if content_type == "image/gif":
        return data[:6] in (b"GIF87a", b"GIF89a")
    if content_type == "image/webp":
        return data[:4] == b"RIFF" and data[8:12] == b"WEBP"
    return False


class UploadService:
    """Local-disk storage for note files and avatars"""

    @staticmethod
    def upload_dir() -> Path:
        return settings.get_upload_dir()

    @staticmethod
    def public_url(stored: StoredFile) -> str:
        return f"{settings.PUBLIC_BASE_URL.rstrip('/')}/uploads/{stored.relative_path}"

    @staticmethod
    def path_for(stored: StoredFile) -> Path:
        return UploadService.upload_dir() / stored.relative_path

    @staticmethod
    def new_file_name(kind: UploadKind, ext: str) -> str:
        """``<kind>-<epoch ms>-<16 hex>`` plus extension"""
        return f"{kind.value}-{int(time.time() * 1000)}-{secrets.token_hex(8)}{ext}"

    @staticmethod
    def validate(data: bytes, content_type: Optional[str], kind: UploadKind) -> str:
        """
        Check declared type, size and content signature

        Returns:
            The extension the file will be stored with

        Raises:
            FileUploadException: empty upload
            UnsupportedTypeException: type not accepted for ``kind`` or content mismatch
            FileTooLargeException: larger than MAX_UPLOAD_SIZE
        """
        declared = (content_type or "").split(";")[0].strip().lower()
        accepted = ACCEPTED_TYPES[kind]
        if declared not in accepted:
            expected = "PDF files" if kind == UploadKind.NOTE else "JPEG, PNG, GIF or WebP images"
            raise UnsupportedTypeException(f"Only {expected} are allowed")
        if not data:
            raise FileUploadException("No file uploaded")
        if len(data) > settings.MAX_UPLOAD_SIZE:
            raise FileTooLargeException(settings.MAX_UPLOAD_SIZE)
        if not _matches_signature(declared, data):
            raise UnsupportedTypeException("File content does not match its declared type")
        return accepted[declared]

    @staticmethod
    def store(
        db: Session,
        data: bytes,
        content_type: Optional[str],
        original_name: Optional[str],
        kind: UploadKind,
        uploader: User,
    ) -> StoredFile:
        """
        Validate and persist an upload

        Nothing touches the disk until validation has passed. The file is
        created exclusively so two uploads can never share a path.
        """
        ext = UploadService.validate(data, content_type, kind)
        stored = StoredFile(
            original_name=(original_name or "")[:255] or None,
            content_type=content_type.split(";")[0].strip().lower(),
            size=len(data),
            kind=kind,
            uploader_id=uploader.id,
        )

        for _ in range(NAME_ATTEMPTS):
            stored.file_name = UploadService.new_file_name(kind, ext)
            path = UploadService.path_for(stored)
            try:
                with open(path, "xb") as fh:
                    fh.write(data)
                break
            except FileExistsError:
                continue
        else:
            raise FileUploadException("Could not allocate a file name, please retry")

        db.add(stored)
        try:
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            path.unlink(missing_ok=True)
            raise DatabaseException("Could not record the upload") from e
        db.refresh(stored)
        UPLOADS_STORED.labels(kind=kind.value).inc()

        logger.info(
            "Stored upload",
            extra={"file_name": stored.file_name, "kind": kind.value, "size": len(data), "user_id": uploader.id},
        )
        return stored

    @staticmethod
    def get(db: Session, file_name: str) -> StoredFile:
        stored = db.query(StoredFile).filter(StoredFile.file_name == file_name).first()
        if stored is None or not UploadService.path_for(stored).is_file():
            raise NotFoundException("File")
        return stored

    @staticmethod
    def delete(db: Session, file_name: str, user: User) -> None:
        """Remove an upload that has not been attached to a note"""
        stored = db.query(StoredFile).filter(StoredFile.file_name == file_name).first()
        if stored is None:
            raise NotFoundException("File")
        if stored.uploader_id != user.id and user.role != UserRole.ADMIN:
            raise AuthorizationException("Not authorized to delete this file")
        if stored.note_id is not None:
            raise ValidationException(
                "File is attached to a note; delete the note instead",
                status_code=409,
                error_code="FILE_IN_USE",
            )

        UploadService.path_for(stored).unlink(missing_ok=True)
        db.delete(stored)
        db.commit()
        logger.info("Deleted upload", extra={"file_name": file_name, "user_id": user.id})

    @staticmethod
    def claim(db: Session, file_name: str, user: User) -> StoredFile:
        """
        Find the caller's pending note upload called ``file_name``.
        The caller attaches it to the note and commits.
        """
        stored = db.query(StoredFile).filter(StoredFile.file_name == file_name).first()
        if (
            stored is None
            or stored.kind != UploadKind.NOTE
            or stored.uploader_id != user.id
            or stored.note_id is not None
        ):
            raise ValidationException(
                "fileName must refer to a file you uploaded that is not used by another note",
                details={"field": "fileName"},
            )
        return stored

    @staticmethod
    def replace_avatar(db: Session, user: User, stored: StoredFile) -> None:
        """Point the user's avatar at ``stored`` and drop the previous uploaded avatar"""
        previous_name = (user.avatar or "").rsplit("/", 1)[-1]
        user.avatar = UploadService.public_url(stored)
        if previous_name and previous_name != stored.file_name:
            previous = (
                db.query(StoredFile)
                .filter(StoredFile.file_name == previous_name, StoredFile.kind == UploadKind.AVATAR)
                .first()
            )
            if previous is not None:
                UploadService.path_for(previous).unlink(missing_ok=True)
                db.delete(previous)
        db.commit()

    @staticmethod
    def sweep_orphans(db: Session, older_than: Optional[timedelta] = None) -> dict:
        """
        Delete pending uploads older than the retention window, and files
        in the content directory that no record refers to. Untracked files
        are only removed once they are at least ``UNTRACKED_MIN_AGE`` old,
        whatever ``older_than`` says.

        A note upload is pending while no note claims it; an avatar is
        pending while no user's avatar points at it.
        """
        older_than = older_than if older_than is not None else timedelta(hours=settings.UPLOAD_ORPHAN_TTL_HOURS)
        cutoff = utcnow() - older_than
        directory = UploadService.upload_dir()
        expired = 0
        untracked = 0
        freed = 0

        avatars_in_use = {
            avatar.rsplit("/", 1)[-1]
            for (avatar,) in db.query(User.avatar).filter(User.avatar.isnot(None), User.avatar != "")
        }
        candidates = (
            db.query(StoredFile)
            .filter(StoredFile.note_id.is_(None), StoredFile.created_at < cutoff)
            .all()
        )
        for stored in candidates:
            if stored.kind == UploadKind.AVATAR and stored.file_name in avatars_in_use:
                continue
            path = UploadService.path_for(stored)
            if path.is_file():
                freed += path.stat().st_size
                path.unlink(missing_ok=True)
            db.delete(stored)
            expired += 1
        db.commit()

        known = {name for (name,) in db.query(StoredFile.file_name)}
        cutoff_ts = time.time() - max(older_than, UNTRACKED_MIN_AGE).total_seconds()
        for folder in (directory, directory / "avatars"):
            if not folder.is_dir():
                continue
            for entry in os.scandir(folder):
                if not entry.is_file() or entry.name.startswith("."):
                    continue
                stat = entry.stat()
                if entry.name in known or stat.st_mtime >= cutoff_ts:
                    continue
                freed += stat.st_size
                Path(entry.path).unlink(missing_ok=True)
                untracked += 1

        UPLOADS_SWEPT.inc(expired + untracked)
        result = {"expired_records": expired, "untracked_files": untracked, "freed_bytes": freed}
        audit_logger.info("Upload sweep finished", extra=result)
        return result
