from __future__ import annotations

import logging
from io import BytesIO
from typing import BinaryIO, List, Optional

from fastapi import HTTPException
from sqlalchemy import func, or_
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from app.core.config import settings
from app.core.security import hash_password, verify_password
from app.db.models import User
from app.schemas.user_schemas import UploadResult, UserCreateForm, UserListPage, UserResponse
from app.storage import StorageError, get_storage


logger = logging.getLogger(__name__)

AVATAR_DIRECTORY = "avatars"

# largest value a 64-bit INTEGER primary key can hold
MAX_USER_ID = 2**63 - 1


def get_user(db: Session, user_id: int) -> Optional[User]:
    if not 0 < user_id <= MAX_USER_ID:
        return None
    return db.get(User, user_id)


def _like_pattern(phrase: str) -> str:
    escaped = phrase.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == email).first()


def get_user_by_username(db: Session, username: str) -> Optional[User]:
    return db.query(User).filter(User.username == username).first()


def validate_user_create_form(db: Session, form: UserCreateForm) -> List[str]:
    """Check the cross-field and uniqueness rules of a create form.

    Returns a list of error codes; an empty list means the form is valid.
    """
    errors: List[str] = []
    if form.password != form.password_repeated:
        errors.append("password.no_match")
    if get_user_by_username(db, form.username) is not None:
        errors.append("username.exists")
    if form.email and get_user_by_email(db, form.email) is not None:
        errors.append("email.exists")
    return errors


def create_user(db: Session, form: UserCreateForm) -> User:
    """Persist a new user with a hashed password.

    Re-raises IntegrityError after rolling back when a unique constraint fails.
    """
    user = User(
        username=form.username,
        email=form.email,
        password_hash=hash_password(form.password),
    )
    try:
        db.add(user)
        db.commit()
    except IntegrityError:
        db.rollback()
        raise
    db.refresh(user)
    logger.info("User created", extra={"user_id": user.id, "username": user.username})
    return user


def authenticate_user(db: Session, username: str, password: str) -> Optional[User]:
    """Authenticate by username and password, returning the User or None."""
    user = get_user_by_username(db, username)
    if user is None or not user.password_hash:
        return None
    if not verify_password(password, user.password_hash):
        return None
    if not user.enabled:
        logger.info("Login attempt for disabled user", extra={"user_id": user.id})
        return None
    return user


def _read_limited(file_obj: BinaryIO, limit: int) -> bytes:
    data = file_obj.read(limit + 1)
    if len(data) > limit:
        raise HTTPException(status_code=413, detail="file_too_large")
    return data


def upload_image(
    db: Session,
    user: User,
    file_obj: BinaryIO,
    *,
    filename: str | None,
    content_type: str | None,
) -> UploadResult:
    """Store an avatar image for ``user`` and record its storage key.

    The previous avatar file, if any, is removed after the new one is saved.
    """
    if not content_type or content_type.lower() not in settings.AVATAR_CONTENT_TYPES:
        raise HTTPException(status_code=400, detail="unsupported_media_type")

    data = _read_limited(file_obj, settings.AVATAR_MAX_BYTES)
    if not data:
        raise HTTPException(status_code=400, detail="empty_file")

    storage = get_storage()
    try:
        storage_key = storage.save_file(
            BytesIO(data),
            filename=filename,
            directory=f"{AVATAR_DIRECTORY}/{user.id}",
        )
    except StorageError as exc:
        raise HTTPException(status_code=500, detail="storage_error") from exc

    previous = user.avatar
    user.avatar = storage_key
    try:
        db.add(user)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        storage.delete_file(storage_key)
        logger.exception("Failed to record avatar", extra={"user_id": user.id})
        raise
    db.refresh(user)
    if previous and previous != storage_key:
        storage.delete_file(previous)

    logger.info(
        "Avatar uploaded",
        extra={"user_id": user.id, "storage_key": storage_key, "size": len(data)},
    )
    return UploadResult(
        filename=filename,
        storage_key=storage_key,
        url=f"/api/v1/i/user/{user.id}/avatar",
        content_type=content_type,
        size=len(data),
    )


def get_user_list(
    db: Session,
    current: int | None = None,
    row_count: int | None = None,
    search_phrase: str | None = None,
) -> UserListPage:
    """Return one page of users, optionally filtered by a search phrase.

    ``row_count <= 0`` returns every matching row on a single page.
    """
    current = max(current or 1, 1)
    if row_count is None:
        row_count = settings.USER_LIST_DEFAULT_ROWS
    elif row_count > 0:
        row_count = min(row_count, settings.USER_LIST_MAX_ROWS)

    query = db.query(User)
    phrase = (search_phrase or "").strip()
    if phrase:
        pattern = _like_pattern(phrase.lower())
        query = query.filter(
            or_(
                func.lower(User.username).like(pattern, escape="\\"),
                func.lower(User.email).like(pattern, escape="\\"),
            )
        )

    total = query.count()
    query = query.order_by(User.id.asc())
    if row_count > 0:
        query = query.offset((current - 1) * row_count).limit(row_count)
    else:
        current = 1
        row_count = -1
    rows = [UserResponse.model_validate(u) for u in query.all()]
    return UserListPage(current=current, row_count=row_count, rows=rows, total=total)
