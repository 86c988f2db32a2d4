from .base import BaseResponse, Pagination, PaginatedResponse
from .bug import (
    BugStatus, BugPriority, BugSortField, BugResponse, BugListQuery, BugStatistics,
    WRITABLE_FIELDS
)

__all__ = [
    "BaseResponse", "Pagination", "PaginatedResponse",
    "BugStatus", "BugPriority", "BugSortField", "BugResponse", "BugListQuery", "BugStatistics",
    "WRITABLE_FIELDS",
]
