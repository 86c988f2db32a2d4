from pydantic import BaseModel, ConfigDict, field_serializer, field_validator
from pydantic.alias_generators import to_camel
from typing import Optional, List
from datetime import datetime, timezone
from enum import Enum

class BugStatus(str, Enum):
    OPEN = "open"
    IN_PROGRESS = "in-progress"
    RESOLVED = "resolved"
    CLOSED = "closed"

class BugPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

class BugSortField(str, Enum):
    CREATED_AT = "createdAt"
    UPDATED_AT = "updatedAt"
    TITLE = "title"
    STATUS = "status"
    PRIORITY = "priority"
    REPORTER = "reporter"

# 请求体中可写字段：接受驼峰和下划线两种写法
WRITABLE_FIELDS = {
    "title": "title",
    "description": "description",
    "status": "status",
    "priority": "priority",
    "reporter": "reporter",
    "assignedTo": "assigned_to",
    "assigned_to": "assigned_to",
    "tags": "tags",
    "stepsToReproduce": "steps_to_reproduce",
    "steps_to_reproduce": "steps_to_reproduce",
    "expectedBehavior": "expected_behavior",
    "expected_behavior": "expected_behavior",
    "actualBehavior": "actual_behavior",
    "actual_behavior": "actual_behavior",
    "environment": "environment",
    "attachments": "attachments",
}

class BugResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)

    id: str
    title: str
    description: str
    status: str
    priority: str
    reporter: str
    assigned_to: str = ""
    tags: List[str] = []
    steps_to_reproduce: Optional[str] = None
    expected_behavior: Optional[str] = None
    actual_behavior: Optional[str] = None
    environment: Optional[str] = None
    attachments: List[str] = []
    created_at: datetime
    updated_at: datetime

    @field_validator("tags", "attachments", mode="before")
    @classmethod
    def _none_as_empty(cls, v):
        return v or []

    @field_validator("assigned_to", mode="before")
    @classmethod
    def _none_as_blank(cls, v):
        return v or ""

    @field_serializer("created_at", "updated_at")
    def _serialize_timestamp(self, value: datetime) -> str:
        # 数据库中存储的是不带时区的UTC时间
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value.isoformat(timespec="milliseconds") + "Z"

class BugListQuery(BaseModel):
    """缺陷列表查询参数"""
    status: Optional[str] = None
    priority: Optional[str] = None
    page: int = 1
    limit: int = 10
    sort_by: str = BugSortField.CREATED_AT.value
    order: str = "desc"

class BugStatistics(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    total: int
    by_status: dict[str, int]
    by_priority: dict[str, int]
