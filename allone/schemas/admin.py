"""
Admin schemas
"""

from typing import Optional

from pydantic import EmailStr, Field

from allone.models.user import UserRole
from allone.schemas.common import CamelModel


class AdminUserUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=2, max_length=50)
    email: Optional[EmailStr] = None
    role: Optional[UserRole] = None
    is_active: Optional[bool] = None
