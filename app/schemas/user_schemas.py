from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, computed_field

from app.db.models import RoleEnum


class UserCreateForm(BaseModel):
    """Request body of the create-user endpoint.

    Accepts both ``password_repeated`` and the camelCase ``passwordRepeated``.
    """

    model_config = ConfigDict(populate_by_name=True)

    username: str = Field(..., min_length=1, max_length=64)
    password: str = Field(..., min_length=1, max_length=72)
    password_repeated: str = Field(..., alias="passwordRepeated")
    email: Optional[EmailStr] = None

    def __repr__(self) -> str:
        # keep passwords out of debug logs
        return f"UserCreateForm(username={self.username!r}, email={self.email!r})"


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    email: Optional[str] = None
    role: RoleEnum
    enabled: bool
    avatar: Optional[str] = None
    created_at: Optional[datetime] = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def avatar_url(self) -> Optional[str]:
        if not self.avatar:
            return None
        return f"/api/v1/i/user/{self.id}/avatar"


class UserListPage(BaseModel):
    """Paginated user list in the jquery-bootgrid response shape."""

    model_config = ConfigDict(populate_by_name=True)

    current: int
    row_count: int = Field(..., alias="rowCount")
    rows: List[UserResponse]
    total: int


class UploadResult(BaseModel):
    filename: Optional[str] = None
    storage_key: str
    url: str
    content_type: Optional[str] = None
    size: int
