from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path
from typing import BinaryIO, Optional
from uuid import uuid4

from app.core.config import settings


logger = logging.getLogger(__name__)


class StorageError(RuntimeError):
    """Raised when file storage operations fail."""


class FileStorage:
    """Abstract storage backend interface keyed by relative storage keys."""

    def save_file(
        self,
        file_obj: BinaryIO,
        *,
        filename: str | None = None,
        directory: str | None = None,
    ) -> str:
        raise NotImplementedError

    def delete_file(self, storage_key: str) -> None:
        raise NotImplementedError

    def resolve_path(self, storage_key: str) -> Path:
        raise NotImplementedError

    def exists(self, storage_key: str) -> bool:
        try:
            return self.resolve_path(storage_key).is_file()
        except StorageError:
            return False


def _safe_relative(value: str, error: str) -> Path:
    candidate = Path(value.strip("/"))
    if candidate.is_absolute() or ".." in candidate.parts:
        raise StorageError(error)
    return candidate


class LocalFileStorage(FileStorage):
    """Stores files below ``base_path`` under random names keeping the suffix."""

    def __init__(self, base_path: str | Path) -> None:
        self.base_path = Path(base_path).expanduser().resolve()
        self.base_path.mkdir(parents=True, exist_ok=True)

    def save_file(
        self,
        file_obj: BinaryIO,
        *,
        filename: str | None = None,
        directory: str | None = None,
    ) -> str:
        subdir = _safe_relative(directory, "invalid_directory") if directory else Path()
        suffix = Path(filename).suffix.lower() if filename else ""
        storage_key = (subdir / f"{uuid4().hex}{suffix}").as_posix()
        target_path = self.base_path / storage_key
        target_path.parent.mkdir(parents=True, exist_ok=True)

        file_obj.seek(0)
        try:
            with open(target_path, "wb") as target:
                shutil.copyfileobj(file_obj, target)
        except OSError as exc:
            logger.exception("Failed to store file", extra={"storage_key": storage_key})
            raise StorageError("write_failed") from exc
        return storage_key

    def delete_file(self, storage_key: str) -> None:
        path = self.resolve_path(storage_key)
        try:
            path.unlink(missing_ok=True)
        except OSError:
            logger.warning("Failed to delete file %s", storage_key, exc_info=True)

    def resolve_path(self, storage_key: str) -> Path:
        if not storage_key:
            raise StorageError("invalid_storage_key")
        return self.base_path / _safe_relative(storage_key, "invalid_storage_key")


_storage_instance: Optional[FileStorage] = None


def get_storage() -> FileStorage:
    """Return configured storage backend instance (singleton)."""

    global _storage_instance
    if _storage_instance is not None:
        return _storage_instance

    backend = (settings.STORAGE_BACKEND or "local").lower()
    if backend == "local":
        base_dir = settings.LOCAL_STORAGE_PATH or os.getcwd()
        _storage_instance = LocalFileStorage(base_dir)
    else:
        raise StorageError(f"unsupported_backend:{backend}")
    return _storage_instance


__all__ = ["FileStorage", "LocalFileStorage", "StorageError", "get_storage"]
