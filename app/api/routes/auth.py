from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from pydantic import BaseModel

from app.schemas.common import Envelope
from app.schemas.user_schemas import UserResponse
from app.db.session import get_db
from app.services.user_service import authenticate_user
from app.core.security import create_access_token

router = APIRouter(prefix="/auth", tags=["auth"])


class LoginRequest(BaseModel):
    username: str
    password: str


@router.post("/login", response_model=Envelope[dict[str, Any]])
def login(req: LoginRequest, db: Session = Depends(get_db)) -> Envelope[dict[str, Any]]:
    """通过用户名和密码进行身份验证，返回JWT令牌。"""
    if not req.username or not req.password:
        raise HTTPException(status_code=400, detail="invalid_login_payload")

    user = authenticate_user(db, req.username, req.password)
    if not user:
        raise HTTPException(status_code=401, detail="invalid_credentials")
    token = create_access_token({"sub": str(user.id), "username": user.username})
    data = {"user": UserResponse.model_validate(user).model_dump(mode="json"), "token": token}
    return Envelope.ok("ok", data)
