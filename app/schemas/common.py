from __future__ import annotations

from typing import Generic, Optional, TypeVar
from pydantic import BaseModel

T = TypeVar("T")

STATUS_SUCCESS = 1
STATUS_FAILURE = 0


class Envelope(BaseModel, Generic[T]):
    """Standard API envelope: ``status`` is 1 on success and 0 on failure."""
    status: int
    message: str
    data: Optional[T] = None

    @classmethod
    def ok(cls, message: str, data: Optional[T] = None) -> "Envelope[T]":
        return cls(status=STATUS_SUCCESS, message=message, data=data)

    @classmethod
    def fail(cls, message: str) -> "Envelope[T]":
        return cls(status=STATUS_FAILURE, message=message)
