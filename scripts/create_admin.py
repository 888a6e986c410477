from __future__ import annotations

import argparse
import getpass
import sys
from typing import Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

# 从仓库根目录运行：`python scripts/create_admin.py admin`
from app.db.models import Base, RoleEnum, User
from app.db.session import SessionLocal, engine
from app.core.security import hash_password
from app.services.user_service import get_user_by_username


def ensure_admin(db: Session, username: str, password: str) -> tuple[User, bool]:
    """Create ``username`` as an administrator, or promote an existing user.

    Returns the user and whether it was newly created.
    """
    user = get_user_by_username(db, username)
    created = user is None
    if user is None:
        user = User(username=username, password_hash=hash_password(password))
    user.role = RoleEnum.admin
    user.enabled = True
    db.add(user)
    db.commit()
    db.refresh(user)
    return user, created


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="创建表并初始化管理员账号")
    parser.add_argument("username")
    parser.add_argument("--password", help="省略时交互式输入")
    args = parser.parse_args(argv)

    password = args.password or getpass.getpass("Password: ")
    try:
        Base.metadata.create_all(bind=engine)
        with SessionLocal() as db:
            user, created = ensure_admin(db, args.username, password)
    except SQLAlchemyError as e:
        print(f"创建管理员时出错：{e}", file=sys.stderr)
        return 1
    print(f"{'已创建' if created else '已更新'}管理员 {user.username} (id={user.id})")
    return 0


if __name__ == "__main__":
    sys.exit(main())
