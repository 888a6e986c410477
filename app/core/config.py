from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """应用程序设置，从环境变量加载。

    提供整个应用程序使用的类型化配置。
    """

    # 数据库配置
    DATABASE_URL: str = "sqlite:///./sectong.db"

    # Redis配置（仅用于健康检查，可选）
    REDIS_URL: str | None = None

    # Web服务配置
    WEB_HOST: str = "0.0.0.0"
    WEB_PORT: int = 8000
    CORS_ALLOW_ORIGINS: list[str] = ["*"]

    # 认证
    SECRET_KEY: str = "dev-secret-key"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    LOG_LEVEL: str = "info"

    # 日志文件记录和轮转
    LOG_TO_FILE: bool = False
    LOG_FILE_PATH: str = "logs/app.log"
    LOG_ROTATION_POLICY: str = "time"  # 可选: "time", "size"
    LOG_ROTATION_WHEN: str = "D"  # 用于 TimedRotatingFileHandler
    LOG_ROTATION_INTERVAL: int = 1
    LOG_BACKUP_COUNT: int = 7
    LOG_MAX_BYTES: int = 10 * 1024 * 1024  # 用于基于大小的轮转

    # 文件存储
    STORAGE_BACKEND: str = "local"
    LOCAL_STORAGE_PATH: str = "storage"

    # 用户头像
    AVATAR_MAX_BYTES: int = 2 * 1024 * 1024
    AVATAR_CONTENT_TYPES: list[str] = ["image/png", "image/jpeg", "image/gif", "image/webp"]

    # 用户列表分页
    USER_LIST_DEFAULT_ROWS: int = 10
    USER_LIST_MAX_ROWS: int = 100

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)


settings = Settings()
