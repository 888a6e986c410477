from __future__ import annotations

import enum
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Boolean, Column, DateTime, Enum, Integer, String, Text
from sqlalchemy.orm import declarative_base


Base = declarative_base()


class RoleEnum(str, enum.Enum):
    user = "ROLE_USER"
    admin = "ROLE_ADMIN"


class User(Base):
    __tablename__ = "users"

    id: int = Column(Integer, primary_key=True)
    username: str = Column(String(64), unique=True, nullable=False)
    email: Optional[str] = Column(String(255), unique=True, index=True, nullable=True)
    password_hash: str = Column(Text, nullable=False)
    role: RoleEnum = Column(
        Enum(RoleEnum, name="role_enum", values_callable=lambda e: [m.value for m in e]),
        default=RoleEnum.user,
        nullable=False,
    )
    enabled: bool = Column(Boolean, default=True, nullable=False)
    avatar: Optional[str] = Column(String(255))
    created_at: datetime = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    def __repr__(self) -> str:
        return f"<User id={self.id} username={self.username!r}>"
