"""缺陷记录存储模块

按唯一ID存取缺陷记录，提供创建、按ID查询、分页查询、更新、删除五种操作。
存储层信任上层已验证的数据，只保证自身的最小约束（必填列、ID格式）。
"""
from typing import Any, Dict, List, Optional, Tuple
import math

from sqlalchemy import asc, desc, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.exceptions import ConstraintError, FormatError
from app.core.logging import app_logger
from app.core.snowflake import is_valid_bug_id
from app.models.bug import Bug, utcnow
from app.schemas.bug import BugListQuery, BugSortField

# 必填列及其约束消息
REQUIRED_COLUMNS = (
    ("title", "Title is required"),
    ("description", "Description is required"),
    ("reporter", "Reporter name is required"),
)

SORT_COLUMNS = {
    BugSortField.CREATED_AT.value: Bug.created_at,
    BugSortField.UPDATED_AT.value: Bug.updated_at,
    BugSortField.TITLE.value: Bug.title,
    BugSortField.STATUS.value: Bug.status,
    BugSortField.PRIORITY.value: Bug.priority,
    BugSortField.REPORTER.value: Bug.reporter,
}


def total_pages(total: int, limit: int) -> int:
    return math.ceil(total / limit) if limit > 0 else 0


class BugRepository:
    """缺陷记录存储"""

    def __init__(self, db: Session):
        self.db = db

    # ==================== 约束检查 ====================

    @staticmethod
    def _check_id(bug_id: Any) -> str:
        if not is_valid_bug_id(bug_id):
            raise FormatError(bug_id)
        return bug_id

    @staticmethod
    def _check_required(values: Dict[str, Any], partial: bool = False) -> None:
        messages = []
        for column, message in REQUIRED_COLUMNS:
            if partial and column not in values:
                continue
            value = values.get(column)
            if not isinstance(value, str) or not value.strip():
                messages.append(message)
        if messages:
            raise ConstraintError(messages)

    def _commit(self, operation: str) -> None:
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            app_logger.db_logger.warning(
                f"Constraint violation during {operation}: {e.orig}",
                operation=operation,
                table=Bug.__tablename__
            )
            raise ConstraintError([f"Constraint violation during {operation}"]) from e

    # ==================== 基础操作 ====================

    def create(self, values: Dict[str, Any]) -> Bug:
        """创建缺陷记录，生成ID和时间戳"""
        self._check_required(values)

        bug = Bug(**values)
        self.db.add(bug)
        self._commit("create")
        self.db.refresh(bug)

        app_logger.log_database_operation("insert", Bug.__tablename__, record_id=bug.id)
        return bug

    def find_by_id(self, bug_id: str) -> Optional[Bug]:
        """按ID查询缺陷，不存在时返回None"""
        self._check_id(bug_id)
        return self.db.query(Bug).filter(Bug.id == bug_id).first()

    def find_many(self, query: BugListQuery) -> Tuple[int, List[Bug]]:
        """分页查询缺陷列表

        Returns:
            Tuple[总数, 当前页数据列表]
        """
        db_query = self.db.query(Bug)

        # 状态筛选
        if query.status:
            db_query = db_query.filter(Bug.status == query.status.lower())

        # 优先级筛选
        if query.priority:
            db_query = db_query.filter(Bug.priority == query.priority.lower())

        total = db_query.count()

        # 排序，未知字段按创建时间排序，相同值按ID排序
        sort_column = SORT_COLUMNS.get(query.sort_by, Bug.created_at)
        direction = asc if query.order == "asc" else desc
        db_query = db_query.order_by(direction(sort_column), direction(Bug.id))

        offset = (query.page - 1) * query.limit
        bugs = db_query.offset(offset).limit(query.limit).all()

        return total, bugs

    def update_by_id(self, bug_id: str, values: Dict[str, Any]) -> Optional[Bug]:
        """更新缺陷记录，不存在时返回None"""
        bug = self.find_by_id(bug_id)
        if bug is None:
            return None

        self._check_required(values, partial=True)

        for column, value in values.items():
            setattr(bug, column, value)
        # 值未变化时 onupdate 不会触发，每次更新都显式刷新
        bug.updated_at = utcnow()
        self._commit("update")
        self.db.refresh(bug)

        app_logger.log_database_operation("update", Bug.__tablename__, record_id=bug.id)
        return bug

    def delete_by_id(self, bug_id: str) -> Optional[Bug]:
        """删除缺陷记录，返回被删除的记录"""
        bug = self.find_by_id(bug_id)
        if bug is None:
            return None

        self.db.delete(bug)
        self._commit("delete")

        app_logger.log_database_operation("delete", Bug.__tablename__, record_id=bug_id)
        return bug

    # ==================== 统计 ====================

    def count(self, status: Optional[str] = None, priority: Optional[str] = None) -> int:
        db_query = self.db.query(func.count(Bug.id))
        if status:
            db_query = db_query.filter(Bug.status == status.lower())
        if priority:
            db_query = db_query.filter(Bug.priority == priority.lower())
        return db_query.scalar() or 0

    def count_by(self, column_name: str) -> Dict[str, int]:
        """按列分组计数"""
        column = getattr(Bug, column_name)
        rows = self.db.query(column, func.count(Bug.id)).group_by(column).all()
        return {value: count for value, count in rows}
