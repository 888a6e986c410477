from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile
from fastapi.responses import FileResponse, JSONResponse
from pydantic import BaseModel, Field, ValidationError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.api.deps import get_current_user, get_optional_user
from app.db.models import User
from app.db.session import get_db
from app.schemas.common import Envelope
from app.schemas.user_schemas import UploadResult, UserCreateForm, UserListPage, UserResponse
from app.services import user_service
from app.storage import StorageError, get_storage


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1", tags=["users"])

MAX_PAGE = 1_000_000_000


@router.post("/i/userLogin", response_model=Envelope[UserResponse])
def user_login(user: Optional[User] = Depends(get_optional_user)) -> Envelope[UserResponse]:
    """APP登录用接口：凭Bearer令牌或HTTP Basic认证返回当前用户。"""
    if user is None:
        return Envelope.fail("user login failed")
    return Envelope.ok("user login success", UserResponse.model_validate(user))


async def raw_json_body(request: Request) -> Any:
    """Decode the request body as JSON, or None when it is not valid JSON."""
    try:
        return await request.json()
    except ValueError:
        return None


@router.post(
    "/create",
    response_model=Envelope[None],
    openapi_extra={
        "requestBody": {
            "required": True,
            "content": {"application/json": {"schema": UserCreateForm.model_json_schema()}},
        }
    },
)
def handle_user_create_form(
    payload: Any = Depends(raw_json_body),
    db: Session = Depends(get_db),
) -> Envelope[None]:
    """创建用户接口。

    Validation failures and duplicate usernames are reported in the envelope
    with HTTP 200, including bodies that are not a JSON object.
    """
    if not isinstance(payload, dict):
        logger.debug("User create body is not a JSON object", extra={"body_type": type(payload).__name__})
        return Envelope.fail("user_create error: failed validation")
    try:
        form = UserCreateForm.model_validate(payload)
    except ValidationError as exc:
        logger.debug("User create form rejected", extra={"errors": exc.errors(include_input=False)})
        return Envelope.fail("user_create error: failed validation")

    errors = user_service.validate_user_create_form(db, form)
    logger.debug("Processing user create form=%r, errors=%s", form, errors)
    if errors:
        return Envelope.fail("user_create error: failed validation")

    try:
        user_service.create_user(db, form)
    except IntegrityError:
        logger.warning(
            "Exception occurred when trying to save the user, assuming duplicate username",
            exc_info=True,
        )
        return Envelope.fail("user create failed: username already exists")
    return Envelope.ok("create user success")


@router.get("/i/user/{user_id}", response_model=Envelope[UserResponse])
def find_by_user_id(user_id: int, db: Session = Depends(get_db)) -> Any:
    user = user_service.get_user(db, user_id)
    if user is None:
        body = Envelope[UserResponse].fail("user not found")
        return JSONResponse(status_code=404, content=body.model_dump(mode="json"))
    return Envelope.ok("user info", UserResponse.model_validate(user))


@router.get("/i/user/{user_id}/avatar")
def get_user_avatar(user_id: int, db: Session = Depends(get_db)) -> FileResponse:
    user = user_service.get_user(db, user_id)
    if user is None or not user.avatar:
        raise HTTPException(status_code=404, detail="avatar_not_found")
    storage = get_storage()
    try:
        path = storage.resolve_path(user.avatar)
    except StorageError as exc:
        raise HTTPException(status_code=404, detail="avatar_not_found") from exc
    if not path.is_file():
        raise HTTPException(status_code=404, detail="avatar_not_found")
    return FileResponse(path)


@router.post("/i/uploadImage", response_model=Envelope[UploadResult])
def upload_image(
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Envelope[UploadResult]:
    """上传用户头像"""
    result = user_service.upload_image(
        db,
        current_user,
        file.file,
        filename=file.filename,
        content_type=file.content_type,
    )
    return Envelope.ok("avatar upload success", result)


class UserListParams(BaseModel):
    # upper bounds keep the computed OFFSET inside a 64-bit integer
    current: Optional[int] = Field(None, le=MAX_PAGE)
    rowCount: Optional[int] = Field(None, le=MAX_PAGE)
    searchPhrase: Optional[str] = None


async def user_list_params(request: Request) -> UserListParams:
    """Collect list parameters from form fields, falling back to the query string."""
    values: Dict[str, Any] = {}
    content_type = request.headers.get("content-type", "")
    if content_type.startswith(("application/x-www-form-urlencoded", "multipart/form-data")):
        form = await request.form()
        values.update({k: v for k, v in form.items() if isinstance(v, str)})
    for key, value in request.query_params.items():
        values.setdefault(key, value)
    # bootgrid posts empty strings for unset fields
    values = {k: v for k, v in values.items() if k in UserListParams.model_fields and v != ""}
    try:
        return UserListParams.model_validate(values)
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail="invalid_list_parameters") from exc


@router.post("/getUserList", response_model=UserListPage)
def get_user_list(
    params: UserListParams = Depends(user_list_params),
    db: Session = Depends(get_db),
) -> UserListPage:
    """获取用户列表"""
    return user_service.get_user_list(
        db,
        current=params.current,
        row_count=params.rowCount,
        search_phrase=params.searchPhrase,
    )
