from __future__ import annotations

import binascii
from base64 import b64decode
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Tuple, cast

from passlib.context import CryptContext
from jose import JWTError, jwt

from app.core.config import settings

# 密码哈希
_pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    """使用bcrypt对明文密码进行哈希处理。"""
    hashed = _pwd_context.hash(password)
    return cast(str, hashed)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """验证明文密码与存储的bcrypt哈希是否匹配。"""
    try:
        return bool(_pwd_context.verify(plain_password, hashed_password))
    except (ValueError, TypeError):
        # malformed or legacy hash
        return False


# JWT工具
_ALGORITHM = "HS256"


def create_access_token(data: Dict[str, Any], expires_minutes: int | None = None) -> str:
    """创建带有过期时间的JWT访问令牌。"""
    minutes = expires_minutes if expires_minutes is not None else settings.ACCESS_TOKEN_EXPIRE_MINUTES
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + timedelta(minutes=minutes)
    to_encode.update({"exp": expire})
    token = jwt.encode(to_encode, settings.SECRET_KEY, algorithm=_ALGORITHM)
    return cast(str, token)


def verify_token(token: str) -> Dict[str, Any]:
    """解码并验证JWT令牌，返回其载荷。

    在无效签名/过期令牌时抛出JWTError。
    """
    payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[_ALGORITHM])
    return cast(Dict[str, Any], payload)


def parse_authorization(header: str | None) -> Tuple[str, str] | None:
    """Split an Authorization header into ``(scheme, credentials)``.

    The scheme is lower-cased; returns None for an empty or malformed header.
    """
    if not header:
        return None
    scheme, _, credentials = header.strip().partition(" ")
    credentials = credentials.strip()
    if not scheme or not credentials:
        return None
    return scheme.lower(), credentials


def decode_basic_credentials(credentials: str) -> Optional[Tuple[str, str]]:
    """Decode the base64 ``username:password`` part of a Basic header."""
    try:
        decoded = b64decode(credentials, validate=True).decode("utf-8")
    except (binascii.Error, ValueError, UnicodeDecodeError):
        return None
    username, sep, password = decoded.partition(":")
    if not sep or not username:
        return None
    return username, password
