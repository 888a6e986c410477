from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from app.core.config import settings
from app.core.logging import setup_logging
from app.middleware.errors import register_exception_handlers
from app.middleware.request_id import RequestIdMiddleware
from app.api.routes.health import router as health_router
from app.api.routes.auth import router as auth_router
from app.api.routes.users import router as users_router
from app.db.session import init_db


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    try:
        await init_db()
    except SQLAlchemyError:
        logging.getLogger(__name__).warning("数据库初始化跳过（错误）", exc_info=True)
    yield

setup_logging(level=settings.LOG_LEVEL)

app = FastAPI(
    title="Sectong User API",
    version="0.1.0",
    description="用户API：登录、创建用户、查询、头像上传与分页列表",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# 请求ID中间件用于追踪
app.add_middleware(RequestIdMiddleware)

# 路由器
app.include_router(health_router, prefix="/api")
app.include_router(auth_router, prefix="/api")
app.include_router(users_router, prefix="/api")


@app.get("/", tags=["root"])
async def root() -> dict[str, str]:
    return {"message": "用户服务正在运行"}


def run() -> None:
    """以uvicorn启动服务，监听WEB_HOST:WEB_PORT。"""
    uvicorn.run("app.main:app", host=settings.WEB_HOST, port=settings.WEB_PORT)


if __name__ == "__main__":
    run()
