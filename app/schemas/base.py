from pydantic import BaseModel
from typing import Optional, Generic, TypeVar

DataT = TypeVar('DataT')

class BaseResponse(BaseModel, Generic[DataT]):
    """统一响应格式"""
    success: bool = True
    data: Optional[DataT] = None
    message: Optional[str] = None

class Pagination(BaseModel):
    """分页信息"""
    page: int
    limit: int
    total: int
    pages: int

class PaginatedResponse(BaseModel, Generic[DataT]):
    """分页响应"""
    success: bool = True
    data: list[DataT]
    pagination: Pagination
