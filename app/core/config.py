from functools import lru_cache
from typing import Optional
import os

from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv

load_dotenv()

class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore"
    )

    # 应用配置
    APP_NAME: str = "Bug Tracker API"
    APP_DESCRIPTION: str = "缺陷跟踪系统后端API"
    VERSION: str = "1.0.0"
    DEBUG: bool = False
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
    API_PREFIX: str = "/api"

    # 服务器配置
    SERVER_HOST: str = "127.0.0.1"
    SERVER_PORT: int = 5000

    # 数据库配置
    DATABASE_URL: str = "sqlite:///./bug_tracker.db"
    DATABASE_ECHO: bool = False  # 是否显示SQLAlchemy的SQL日志
    CREATE_TABLES_ON_STARTUP: bool = True

    # 雪花算法机器ID
    MACHINE_ID: int = 1

    # 分页配置
    DEFAULT_PAGE_SIZE: int = 10
    MAX_PAGE_SIZE: int = 100

    # 日志配置
    LOG_LEVEL: str = "INFO"
    LOG_ENABLE_COLORS: bool = True
    LOG_FILE: Optional[str] = None
    LOG_MAX_SIZE: int = 10 * 1024 * 1024  # 10 MB
    LOG_BACKUP_COUNT: int = 5
    SLOW_REQUEST_THRESHOLD: float = 2.0  # 秒

    # CORS配置
    CORS_ORIGINS: list[str] = ["*"]  # 允许所有来源，生产环境请修改
    CORS_ALLOW_CREDENTIALS: bool = True
    CORS_ALLOW_METHODS: list[str] = ["*"]
    CORS_ALLOW_HEADERS: list[str] = ["*"]

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT == "development"


@lru_cache
def get_settings() -> Settings:
    """获取全局设置实例"""
    return Settings()
