#!/usr/bin/env python3
"""
项目启动脚本
"""

import uvicorn

from app.core.config import get_settings


def main():
    """启动FastAPI应用"""
    settings = get_settings()

    print(f"启动服务器...")
    print(f"地址: http://{settings.SERVER_HOST}:{settings.SERVER_PORT}")
    print(f"调试模式: {settings.DEBUG}")
    print(f"API文档: http://{settings.SERVER_HOST}:{settings.SERVER_PORT}/docs")

    uvicorn.run(
        "app.main:app",
        host=settings.SERVER_HOST,
        port=settings.SERVER_PORT,
        reload=settings.DEBUG,
        log_level="debug" if settings.DEBUG else "info"
    )

if __name__ == "__main__":
    main()
