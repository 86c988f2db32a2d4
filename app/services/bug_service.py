"""缺陷服务模块

包含缺陷相关的业务逻辑处理：数据验证、规范化，以及存储层错误到API错误的转换
"""
from contextlib import contextmanager
from typing import Any, Dict, List, Mapping, Optional, Tuple

from sqlalchemy.orm import Session

from app.core.exceptions import (
    BugNotFoundException, ConstraintError, ConstraintViolationException, FormatError,
    InvalidBugIdException, StatusRequiredException, ValidationException
)
from app.core.logging import app_logger
from app.models.bug import Bug
from app.repositories.bug_repository import BugRepository
from app.schemas.bug import BugListQuery, BugPriority, BugStatistics, BugStatus, WRITABLE_FIELDS
from app.services.validation import (
    BugValidation, validate_bug, validate_bug_update, validate_status
)

# 存储前需要去除首尾空白的文本列
TEXT_COLUMNS = {
    "title", "description", "reporter", "assigned_to",
    "steps_to_reproduce", "expected_behavior", "actual_behavior", "environment",
}
LIST_COLUMNS = {"tags", "attachments"}
ENUM_COLUMNS = {"status", "priority"}


def _normalize_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        value = [value]
    items = []
    for item in value:
        text = str(item).strip()
        if text and text not in items:
            items.append(text)
    return items


def normalize_bug_data(data: Mapping[str, Any]) -> Dict[str, Any]:
    """将请求数据转换为存储列

    忽略未知字段和只读字段（id、时间戳），文本去除首尾空白，状态和优先级转小写。
    """
    values: Dict[str, Any] = {}
    for key, raw in data.items():
        column = WRITABLE_FIELDS.get(key)
        if column is None:
            continue

        if column in ENUM_COLUMNS:
            # 空值不写入，由存储层使用默认值或保留原值
            if not raw:
                continue
            values[column] = raw.lower() if isinstance(raw, str) else raw
        elif column in LIST_COLUMNS:
            values[column] = _normalize_list(raw)
        elif column in TEXT_COLUMNS:
            if raw is None:
                values[column] = "" if column == "assigned_to" else None
            else:
                values[column] = str(raw).strip()
        else:
            values[column] = raw
    return values


class BugService:
    """缺陷服务类"""

    def __init__(self, db: Session):
        self.db = db
        self.repository = BugRepository(db)

    # ==================== 验证方法 ====================

    @staticmethod
    def _raise_for_validation(validation: BugValidation) -> None:
        if not validation.is_valid:
            app_logger.business_logger.info(
                "Bug validation failed",
                event_type="validation_failed",
                errors=validation.errors
            )
            raise ValidationException(validation.errors)

    @contextmanager
    def _store_errors(self, bug_id: Optional[str] = None):
        """将存储层异常转换为API异常"""
        try:
            yield
        except FormatError as e:
            raise InvalidBugIdException(bug_id) from e
        except ConstraintError as e:
            raise ConstraintViolationException(e.messages) from e

    # ==================== 查询方法 ====================

    def list_bugs(self, query: BugListQuery) -> Tuple[int, List[Bug]]:
        """分页获取缺陷列表"""
        return self.repository.find_many(query)

    def get_bug(self, bug_id: str) -> Bug:
        """获取缺陷详情"""
        with self._store_errors(bug_id):
            bug = self.repository.find_by_id(bug_id)

        if bug is None:
            raise BugNotFoundException(bug_id)
        return bug

    def get_statistics(self) -> BugStatistics:
        """获取缺陷统计信息，包含所有状态和优先级（计数可为0）"""
        by_status = self.repository.count_by("status")
        by_priority = self.repository.count_by("priority")

        return BugStatistics(
            total=self.repository.count(),
            by_status={status.value: by_status.get(status.value, 0) for status in BugStatus},
            by_priority={priority.value: by_priority.get(priority.value, 0) for priority in BugPriority},
        )

    # ==================== 变更方法 ====================

    def create_bug(self, data: Mapping[str, Any]) -> Bug:
        """创建新的缺陷"""
        self._raise_for_validation(validate_bug(data))

        with self._store_errors():
            bug = self.repository.create(normalize_bug_data(data))

        app_logger.log_business_event("bug_created", bug_id=bug.id, details=bug.title)
        return bug

    def update_bug(self, bug_id: str, data: Mapping[str, Any]) -> Bug:
        """更新缺陷信息，只验证请求中出现的字段"""
        self._raise_for_validation(validate_bug_update(data))

        with self._store_errors(bug_id):
            bug = self.repository.update_by_id(bug_id, normalize_bug_data(data))

        if bug is None:
            raise BugNotFoundException(bug_id)

        app_logger.log_business_event("bug_updated", bug_id=bug.id)
        return bug

    def update_status(self, bug_id: str, data: Mapping[str, Any]) -> Bug:
        """变更缺陷状态"""
        status = data.get("status")
        if not status:
            raise StatusRequiredException()

        result = validate_status(status)
        if not result.is_valid:
            self._raise_for_validation(BugValidation(is_valid=False, errors=[result.error]))

        with self._store_errors(bug_id):
            bug = self.repository.update_by_id(bug_id, {"status": status.lower()})

        if bug is None:
            raise BugNotFoundException(bug_id)

        app_logger.log_business_event("bug_status_changed", bug_id=bug.id, details=bug.status)
        return bug

    def delete_bug(self, bug_id: str) -> Bug:
        """删除缺陷（物理删除）"""
        with self._store_errors(bug_id):
            bug = self.repository.delete_by_id(bug_id)

        if bug is None:
            raise BugNotFoundException(bug_id)

        app_logger.log_business_event("bug_deleted", bug_id=bug_id)
        return bug
