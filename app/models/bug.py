"""
缺陷模型模块
包含缺陷记录的数据模型定义
"""
from datetime import datetime, timezone

from sqlalchemy import Column, String, DateTime, Text, JSON, Index

from app.core.database import Base
from app.core.snowflake import generate_bug_id


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Bug(Base):
    """缺陷表模型"""
    __tablename__ = "bugs"

    id = Column(String(25), primary_key=True, default=generate_bug_id, comment='缺陷ID，格式：B + 雪花算法ID')
    title = Column(String(200), nullable=False, comment='缺陷标题')
    description = Column(Text, nullable=False, comment='缺陷描述')
    status = Column(String(20), nullable=False, default="open", comment='缺陷状态')
    priority = Column(String(20), nullable=False, default="medium", comment='缺陷优先级')
    reporter = Column(String(100), nullable=False, comment='报告人')
    assigned_to = Column(String(100), nullable=False, default="", comment='负责人')
    tags = Column(JSON, nullable=False, default=list, comment='缺陷标签')
    steps_to_reproduce = Column(Text, nullable=True, comment='复现步骤')
    expected_behavior = Column(Text, nullable=True, comment='预期结果')
    actual_behavior = Column(Text, nullable=True, comment='实际结果')
    environment = Column(String(200), nullable=True, comment='缺陷所属环境')
    attachments = Column(JSON, nullable=False, default=list, comment='附件地址')
    created_at = Column(DateTime, nullable=False, default=utcnow, comment='创建时间')
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow, comment='更新时间')

    __table_args__ = (
        Index("ix_bugs_status", "status"),
        Index("ix_bugs_priority", "priority"),
        Index("ix_bugs_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Bug {self.id} status={self.status!r} title={self.title!r}>"
