"""应用入口

create_app() 组装配置、数据库句柄、中间件、异常处理器和路由；
模块级 app 供 uvicorn 使用（run.py 中的 "app.main:app"）。
"""
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI

from app.api.api import api_router
from app.core.config import Settings, get_settings
from app.core.database import Database
from app.core.exceptions import setup_exception_handlers
from app.core.logging import get_logger, init_logging
from app.core.middleware import setup_middleware
from app.core.snowflake import init_snowflake

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """启动时初始化日志、ID生成器和数据表，关闭时释放数据库连接"""
    settings: Settings = app.state.settings

    init_logging(settings)
    init_snowflake(settings.MACHINE_ID)

    # 未注入数据库句柄时按配置创建
    database: Optional[Database] = getattr(app.state, "database", None)
    if database is None:
        database = Database.from_settings(settings)
        app.state.database = database

    try:
        if settings.CREATE_TABLES_ON_STARTUP:
            database.create_tables()
        logger.info("%s %s started (environment=%s)", settings.APP_NAME, settings.VERSION, settings.ENVIRONMENT)
        yield
    finally:
        database.dispose()
        logger.info("%s stopped", settings.APP_NAME)


def _add_service_routes(app: FastAPI, settings: Settings) -> None:
    @app.get("/", include_in_schema=False)
    async def root():
        return {
            "success": True,
            "message": f"{settings.APP_NAME} is running",
            "data": {
                "version": settings.VERSION,
                "api": settings.API_PREFIX,
                "timestamp": datetime.now(timezone.utc).isoformat()
            }
        }

    @app.get("/health", tags=["系统"])
    async def health_check():
        """健康检查"""
        return {
            "status": "healthy",
            "app_name": settings.APP_NAME,
            "version": settings.VERSION,
            "environment": settings.ENVIRONMENT
        }


def create_app(settings: Optional[Settings] = None, database: Optional[Database] = None) -> FastAPI:
    """创建应用实例

    Args:
        settings: 应用配置，默认读取环境变量
        database: 预先创建的数据库句柄，测试中用于注入内存数据库
    """
    settings = settings or get_settings()
    docs_enabled = not settings.is_production

    app = FastAPI(
        title=settings.APP_NAME,
        description=settings.APP_DESCRIPTION,
        version=settings.VERSION,
        docs_url="/docs" if docs_enabled else None,
        redoc_url="/redoc" if docs_enabled else None,
        lifespan=lifespan
    )
    app.state.settings = settings
    if database is not None:
        app.state.database = database

    setup_middleware(app, settings)
    setup_exception_handlers(app)

    app.include_router(api_router, prefix=settings.API_PREFIX)
    _add_service_routes(app, settings)

    return app


app = create_app()
