"""
Upload schemas
"""

from typing import Optional

from allone.schemas.common import CamelModel


class UploadResponse(CamelModel):
    file_name: str
    file_url: str
    file_size: int
    original_name: Optional[str] = None
    mimetype: str


class SweepResult(CamelModel):
    expired_records: int
    untracked_files: int
    freed_bytes: int
