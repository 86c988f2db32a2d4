"""缺陷数据验证模块

字段验证函数只检查单个值，不修改输入；聚合验证函数按固定顺序收集所有错误消息，
不会在第一个错误处中断。
"""
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional

from app.schemas.bug import BugPriority, BugStatus

TITLE_MAX_LENGTH = 200
REPORTER_MAX_LENGTH = 100
ASSIGNED_TO_MAX_LENGTH = 100
ENVIRONMENT_MAX_LENGTH = 200

VALID_STATUSES = [status.value for status in BugStatus]
VALID_PRIORITIES = [priority.value for priority in BugPriority]


@dataclass(frozen=True)
class FieldValidation:
    """单个字段的验证结果"""
    is_valid: bool
    error: Optional[str] = None

    @classmethod
    def ok(cls) -> "FieldValidation":
        return cls(True)

    @classmethod
    def fail(cls, error: str) -> "FieldValidation":
        return cls(False, error)


@dataclass(frozen=True)
class BugValidation:
    """缺陷数据的聚合验证结果"""
    is_valid: bool
    errors: List[str] = field(default_factory=list)


def _is_text(value: Any) -> bool:
    return isinstance(value, str)


def validate_title(title: Any) -> FieldValidation:
    """验证缺陷标题"""
    if not title or not _is_text(title):
        return FieldValidation.fail("Title is required and must be a string")

    trimmed = title.strip()
    if not trimmed:
        return FieldValidation.fail("Title cannot be empty")

    if len(trimmed) > TITLE_MAX_LENGTH:
        return FieldValidation.fail(f"Title cannot exceed {TITLE_MAX_LENGTH} characters")

    return FieldValidation.ok()


def validate_description(description: Any) -> FieldValidation:
    """验证缺陷描述"""
    if not description or not _is_text(description):
        return FieldValidation.fail("Description is required and must be a string")

    if not description.strip():
        return FieldValidation.fail("Description cannot be empty")

    return FieldValidation.ok()


def validate_status(status: Any) -> FieldValidation:
    """验证缺陷状态，大小写不敏感"""
    if not status or not _is_text(status):
        return FieldValidation.fail("Status is required and must be a string")

    if status.lower() not in VALID_STATUSES:
        return FieldValidation.fail(f"Status must be one of: {', '.join(VALID_STATUSES)}")

    return FieldValidation.ok()


def validate_priority(priority: Any) -> FieldValidation:
    """验证缺陷优先级（可选字段）"""
    # 假值（None、""、0、False）视为未提供，存储时使用默认值
    if not priority:
        return FieldValidation.ok()

    if not _is_text(priority):
        return FieldValidation.fail("Priority must be a string")

    if priority.lower() not in VALID_PRIORITIES:
        return FieldValidation.fail(f"Priority must be one of: {', '.join(VALID_PRIORITIES)}")

    return FieldValidation.ok()


def validate_reporter(reporter: Any) -> FieldValidation:
    """验证报告人"""
    if not reporter or not _is_text(reporter):
        return FieldValidation.fail("Reporter is required and must be a string")

    trimmed = reporter.strip()
    if not trimmed:
        return FieldValidation.fail("Reporter name cannot be empty")

    if len(trimmed) > REPORTER_MAX_LENGTH:
        return FieldValidation.fail(f"Reporter name cannot exceed {REPORTER_MAX_LENGTH} characters")

    return FieldValidation.ok()


def validate_optional_text(value: Any, label: str, max_length: Optional[int] = None) -> FieldValidation:
    """验证可选文本字段，None 视为未填写"""
    if value is None:
        return FieldValidation.ok()

    if not _is_text(value):
        return FieldValidation.fail(f"{label} must be a string")

    if max_length is not None and len(value.strip()) > max_length:
        return FieldValidation.fail(f"{label} cannot exceed {max_length} characters")

    return FieldValidation.ok()


def validate_string_list(value: Any, label: str) -> FieldValidation:
    """验证字符串列表字段，单个字符串按一个元素处理"""
    if value is None or _is_text(value):
        return FieldValidation.ok()

    if not isinstance(value, list) or not all(_is_text(item) for item in value):
        return FieldValidation.fail(f"{label} must be a list of strings")

    return FieldValidation.ok()


# 可选文本字段：(请求中的字段名, 消息中的名称, 最大长度)
OPTIONAL_TEXT_FIELDS = (
    (("assignedTo", "assigned_to"), "Assigned to", ASSIGNED_TO_MAX_LENGTH),
    (("stepsToReproduce", "steps_to_reproduce"), "Steps to reproduce", None),
    (("expectedBehavior", "expected_behavior"), "Expected behavior", None),
    (("actualBehavior", "actual_behavior"), "Actual behavior", None),
    (("environment",), "Environment", ENVIRONMENT_MAX_LENGTH),
)
LIST_FIELDS = (("tags", "Tags"), ("attachments", "Attachments"))


def _optional_field_results(data: Mapping[str, Any]) -> List[FieldValidation]:
    results = [
        validate_optional_text(data[key], label, max_length)
        for keys, label, max_length in OPTIONAL_TEXT_FIELDS
        for key in keys
        if key in data
    ]
    results.extend(
        validate_string_list(data[key], label) for key, label in LIST_FIELDS if key in data
    )
    return results


def _collect(results) -> BugValidation:
    errors = [result.error for result in results if not result.is_valid]
    return BugValidation(is_valid=not errors, errors=errors)


def validate_bug(data: Mapping[str, Any]) -> BugValidation:
    """验证完整的缺陷数据（创建时使用）

    标题和描述总是检查；状态、优先级、报告人仅在提供了真值时检查；
    负责人、环境等可选字段出现时检查类型和长度。
    """
    results = [
        validate_title(data.get("title")),
        validate_description(data.get("description")),
    ]

    if data.get("status"):
        results.append(validate_status(data["status"]))

    if data.get("priority"):
        results.append(validate_priority(data["priority"]))

    if data.get("reporter"):
        results.append(validate_reporter(data["reporter"]))

    results.extend(_optional_field_results(data))
    return _collect(results)


def validate_bug_update(data: Mapping[str, Any]) -> BugValidation:
    """验证部分更新数据

    只检查请求中出现的字段，未提供的字段保持原值，不视为缺失。
    """
    validators = (
        ("title", validate_title),
        ("description", validate_description),
        ("status", validate_status),
        ("priority", validate_priority),
        ("reporter", validate_reporter),
    )

    results = [validator(data[name]) for name, validator in validators if name in data]
    results.extend(_optional_field_results(data))
    return _collect(results)
