from fastapi import APIRouter, Body, Depends, Query, Request, status
from sqlalchemy.orm import Session
from typing import Any, Dict, Optional

from app.core.config import Settings
from app.core.database import get_db
from app.repositories.bug_repository import total_pages
from app.schemas.base import BaseResponse, Pagination, PaginatedResponse
from app.schemas.bug import BugListQuery, BugResponse, BugStatistics
from app.services.bug_service import BugService

router = APIRouter()

# 页码上限，避免偏移量超出数据库整数范围
MAX_PAGE_NUMBER = 1_000_000

# 依赖注入：获取缺陷服务实例
def get_bug_service(db: Session = Depends(get_db)) -> BugService:
    """获取缺陷服务实例"""
    return BugService(db)

def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings

@router.get("", response_model=PaginatedResponse[BugResponse])
def get_bugs(
    status_filter: Optional[str] = Query(None, alias="status", description="状态筛选"),
    priority: Optional[str] = Query(None, description="优先级筛选"),
    page: int = Query(1, ge=1, le=MAX_PAGE_NUMBER, description="页码"),
    limit: Optional[int] = Query(None, ge=1, description="每页数量"),
    sort_by: str = Query("createdAt", alias="sortBy", description="排序字段"),
    order: str = Query("desc", description="排序方向 asc/desc"),
    bug_service: BugService = Depends(get_bug_service),
    settings: Settings = Depends(get_app_settings)
):
    """获取缺陷列表，支持筛选、排序和分页"""
    query = BugListQuery(
        status=status_filter,
        priority=priority,
        page=page,
        limit=min(limit or settings.DEFAULT_PAGE_SIZE, settings.MAX_PAGE_SIZE),
        sort_by=sort_by,
        order=order.lower()
    )

    total, bugs = bug_service.list_bugs(query)

    return PaginatedResponse[BugResponse](
        data=[BugResponse.model_validate(bug) for bug in bugs],
        pagination=Pagination(
            page=query.page,
            limit=query.limit,
            total=total,
            pages=total_pages(total, query.limit)
        )
    )

@router.get("/statistics", response_model=BaseResponse[BugStatistics])
def get_bug_statistics(bug_service: BugService = Depends(get_bug_service)):
    """获取缺陷统计信息：总数、状态分布、优先级分布"""
    return BaseResponse[BugStatistics](data=bug_service.get_statistics())

@router.get("/{bug_id}", response_model=BaseResponse[BugResponse])
def get_bug(bug_id: str, bug_service: BugService = Depends(get_bug_service)):
    """获取缺陷详情"""
    bug = bug_service.get_bug(bug_id)
    return BaseResponse[BugResponse](data=BugResponse.model_validate(bug))

@router.post("", response_model=BaseResponse[BugResponse], status_code=status.HTTP_201_CREATED)
def create_bug(
    payload: Dict[str, Any] = Body(...),
    bug_service: BugService = Depends(get_bug_service)
):
    """创建新的缺陷"""
    bug = bug_service.create_bug(payload)
    return BaseResponse[BugResponse](
        data=BugResponse.model_validate(bug),
        message="Bug created successfully"
    )

@router.put("/{bug_id}", response_model=BaseResponse[BugResponse])
def update_bug(
    bug_id: str,
    payload: Dict[str, Any] = Body(...),
    bug_service: BugService = Depends(get_bug_service)
):
    """更新缺陷信息（支持部分更新）"""
    bug = bug_service.update_bug(bug_id, payload)
    return BaseResponse[BugResponse](
        data=BugResponse.model_validate(bug),
        message="Bug updated successfully"
    )

@router.patch("/{bug_id}/status", response_model=BaseResponse[BugResponse])
def update_bug_status(
    bug_id: str,
    payload: Optional[Dict[str, Any]] = Body(None),
    bug_service: BugService = Depends(get_bug_service)
):
    """变更缺陷状态"""
    bug = bug_service.update_status(bug_id, payload or {})
    return BaseResponse[BugResponse](
        data=BugResponse.model_validate(bug),
        message="Bug status updated successfully"
    )

@router.delete("/{bug_id}", response_model=BaseResponse[BugResponse])
def delete_bug(bug_id: str, bug_service: BugService = Depends(get_bug_service)):
    """删除缺陷"""
    bug = bug_service.delete_bug(bug_id)
    return BaseResponse[BugResponse](
        data=BugResponse.model_validate(bug),
        message="Bug deleted successfully"
    )
