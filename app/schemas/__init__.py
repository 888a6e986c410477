"""Pydantic schemas for requests and responses."""

from .common import Envelope  # noqa: F401
from .user_schemas import (  # noqa: F401
    UploadResult,
    UserCreateForm,
    UserListPage,
    UserResponse,
)
