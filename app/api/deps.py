from __future__ import annotations

import logging
from typing import Optional

from fastapi import Depends, HTTPException, Request
from jose import JWTError
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.db.models import User
from app.core.security import decode_basic_credentials, parse_authorization, verify_token
from app.services.user_service import authenticate_user, get_user


logger = logging.getLogger(__name__)


def _user_from_bearer(db: Session, token: str) -> Optional[User]:
    try:
        payload = verify_token(token)
    except JWTError:
        logger.debug("Rejected bearer token")
        return None
    sub = payload.get("sub")
    if sub is None or not str(sub).isdigit():
        return None
    user = get_user(db, int(sub))
    if user is None or not user.enabled:
        return None
    return user


def get_optional_user(request: Request, db: Session = Depends(get_db)) -> Optional[User]:
    """Resolve the caller from a Bearer token or HTTP Basic credentials.

    Returns None when no usable credentials are present.
    """
    parsed = parse_authorization(request.headers.get("Authorization"))
    if parsed is None:
        return None
    scheme, credentials = parsed
    if scheme == "bearer":
        return _user_from_bearer(db, credentials)
    if scheme == "basic":
        pair = decode_basic_credentials(credentials)
        if pair is None:
            return None
        return authenticate_user(db, *pair)
    return None


def get_current_user(user: Optional[User] = Depends(get_optional_user)) -> User:
    """Same as get_optional_user but answers 401 when nobody is logged in."""
    if user is None:
        raise HTTPException(
            status_code=401,
            detail="not_authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user
