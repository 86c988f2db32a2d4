from fastapi import APIRouter

from app.api.endpoints import bugs

api_router = APIRouter()

# 缺陷管理路由
api_router.include_router(bugs.router, prefix="/bugs", tags=["缺陷管理"])
