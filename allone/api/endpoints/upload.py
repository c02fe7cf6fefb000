"""
Upload endpoints
"""

from fastapi import APIRouter, Depends, File, UploadFile, status
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session

from allone.core.config import settings
from allone.core.database import get_db
from allone.core.security import get_current_user
from allone.models.upload import UploadKind
from allone.models.user import User
from allone.schemas.common import dump, success_response
from allone.schemas.upload import UploadResponse
from allone.services.uploads import UploadService

router = APIRouter()


@router.post("", status_code=status.HTTP_201_CREATED)
def upload_file(
    file: UploadFile = File(...),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Store a note file

    The upload stays pending until a note is created with its ``fileName``.
    Pending uploads are removed by the orphan sweep.
    """
    # One byte past the limit is enough to reject oversize files
    data = file.file.read(settings.MAX_UPLOAD_SIZE + 1)
    stored = UploadService.store(db, data, file.content_type, file.filename, UploadKind.NOTE, current_user)
    payload = {
        "file_name": stored.file_name,
        "file_url": UploadService.public_url(stored),
        "file_size": stored.size,
        "original_name": stored.original_name,
        "mimetype": stored.content_type,
    }
    return success_response(dump(UploadResponse, payload), message="File uploaded successfully")


@router.get("/{file_name}")
def get_file(file_name: str, db: Session = Depends(get_db)):
    stored = UploadService.get(db, file_name)
    return FileResponse(
        UploadService.path_for(stored),
        media_type=stored.content_type,
        filename=stored.original_name or stored.file_name,
        content_disposition_type="inline",
    )


@router.delete("/{file_name}")
def delete_file(
    file_name: str, current_user: User = Depends(get_current_user), db: Session = Depends(get_db)
):
    """Delete an upload that no note uses yet"""
    UploadService.delete(db, file_name, current_user)
    return success_response(message="File deleted")
