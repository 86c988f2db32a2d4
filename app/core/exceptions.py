from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from sqlalchemy.exc import SQLAlchemyError
from typing import Any, Dict, List, Optional
from enum import Enum

from app.core.logging import app_logger

class ErrorCode(str, Enum):
    """错误代码枚举"""

    # 通用错误
    INTERNAL_SERVER_ERROR = "INTERNAL_SERVER_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    BAD_REQUEST = "BAD_REQUEST"
    METHOD_NOT_ALLOWED = "METHOD_NOT_ALLOWED"

    # 缺陷相关错误
    BUG_NOT_FOUND = "BUG_NOT_FOUND"
    INVALID_BUG_ID = "INVALID_BUG_ID"
    STATUS_REQUIRED = "STATUS_REQUIRED"

    # 数据库相关错误
    DATABASE_ERROR = "DATABASE_ERROR"
    CONSTRAINT_VIOLATION = "CONSTRAINT_VIOLATION"


# ==================== 存储层异常 ====================

class StoreError(Exception):
    """存储层异常基类，与HTTP无关"""


class FormatError(StoreError):
    """记录ID格式不正确"""

    def __init__(self, record_id: Any):
        self.record_id = record_id
        super().__init__(f"Malformed identifier: {record_id!r}")


class ConstraintError(StoreError):
    """记录违反存储层约束"""

    def __init__(self, messages: List[str]):
        self.messages = list(messages)
        super().__init__("; ".join(self.messages) or "Constraint violation")


# ==================== API异常 ====================

class BaseAPIException(HTTPException):
    """基础API异常类"""

    def __init__(
        self,
        status_code: int,
        error_code: ErrorCode,
        message: str,
        errors: Optional[List[str]] = None,
        headers: Optional[Dict[str, str]] = None
    ):
        self.error_code = error_code
        self.message = message
        self.errors = errors

        detail = {
            "success": False,
            "error": message,
            "error_code": error_code.value,
        }
        if errors is not None:
            detail["errors"] = list(errors)

        super().__init__(status_code=status_code, detail=detail, headers=headers)

class ResourceNotFoundException(BaseAPIException):
    """资源不存在异常"""

    def __init__(self, error_code: ErrorCode = ErrorCode.NOT_FOUND, message: str = "Resource not found"):
        super().__init__(404, error_code, message)

class BugNotFoundException(ResourceNotFoundException):
    """缺陷不存在异常"""

    def __init__(self, bug_id: str = None):
        self.bug_id = bug_id
        super().__init__(ErrorCode.BUG_NOT_FOUND, "Bug not found")

class InvalidBugIdException(BaseAPIException):
    """缺陷ID格式错误异常"""

    def __init__(self, bug_id: str = None):
        self.bug_id = bug_id
        super().__init__(400, ErrorCode.INVALID_BUG_ID, "Invalid bug ID format")

class ValidationException(BaseAPIException):
    """验证异常"""

    def __init__(self, errors: List[str], message: str = "Validation failed"):
        super().__init__(400, ErrorCode.VALIDATION_ERROR, message, errors)

class StatusRequiredException(BaseAPIException):
    """缺少状态字段异常"""

    def __init__(self):
        super().__init__(400, ErrorCode.STATUS_REQUIRED, "Status is required")

class ConstraintViolationException(BaseAPIException):
    """存储约束违反异常"""

    def __init__(self, errors: List[str]):
        super().__init__(400, ErrorCode.CONSTRAINT_VIOLATION, "Validation failed", errors)


# 非 BaseAPIException 的 HTTP 异常按状态码给出错误代码
_STATUS_ERROR_CODES = {
    400: ErrorCode.BAD_REQUEST,
    404: ErrorCode.NOT_FOUND,
    405: ErrorCode.METHOD_NOT_ALLOWED,
    500: ErrorCode.INTERNAL_SERVER_ERROR,
}


def _request_fields(request: Request) -> Dict[str, Any]:
    return {
        "request_id": getattr(request.state, "request_id", "unknown"),
        "method": request.method,
        "url": request.url.path,
    }


def _error_body(request: Request, message: str, error_code: ErrorCode, errors: Optional[List[str]] = None) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": False, "error": message, "error_code": error_code.value}
    if errors is not None:
        body["errors"] = errors
    body["request_id"] = getattr(request.state, "request_id", "unknown")
    return body


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """HTTP异常：业务异常直接使用其 detail，其余按状态码包装"""
    app_logger.api_logger.info(
        f"HTTP {exc.status_code}: {exc.detail}",
        status_code=exc.status_code,
        **_request_fields(request)
    )

    if isinstance(exc, BaseAPIException):
        content = dict(exc.detail, request_id=getattr(request.state, "request_id", "unknown"))
    else:
        error_code = _STATUS_ERROR_CODES.get(exc.status_code, ErrorCode.BAD_REQUEST)
        content = _error_body(request, str(exc.detail), error_code)

    return JSONResponse(status_code=exc.status_code, content=content, headers=exc.headers)


def format_validation_errors(exc: RequestValidationError) -> List[str]:
    """将请求参数校验错误转换为 "字段: 原因" 形式的消息"""
    messages = []
    for error in exc.errors():
        # loc 第一项是 body/query/path
        field = ".".join(str(part) for part in error.get("loc", ())[1:])
        messages.append(f"{field}: {error['msg']}" if field else error["msg"])
    return messages


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """请求参数校验失败统一返回400"""
    errors = format_validation_errors(exc)
    app_logger.api_logger.info("Request validation failed", errors=errors, **_request_fields(request))

    return JSONResponse(
        status_code=400,
        content=_error_body(request, "Validation failed", ErrorCode.VALIDATION_ERROR, errors)
    )


async def sqlalchemy_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    app_logger.db_logger.error(
        f"Database error: {exc}",
        exc_info=True,
        error_type=type(exc).__name__,
        **_request_fields(request)
    )

    return JSONResponse(
        status_code=500,
        content=_error_body(request, "Database operation failed", ErrorCode.DATABASE_ERROR)
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """未处理异常不向客户端暴露细节"""
    app_logger.api_logger.error(
        f"Unhandled exception: {exc}",
        exc_info=True,
        error_type=type(exc).__name__,
        **_request_fields(request)
    )

    return JSONResponse(
        status_code=500,
        content=_error_body(request, "An unexpected error occurred", ErrorCode.INTERNAL_SERVER_ERROR)
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """注册全局异常处理器"""
    for exc_class, handler in (
        (StarletteHTTPException, http_exception_handler),
        (RequestValidationError, validation_exception_handler),
        (SQLAlchemyError, sqlalchemy_exception_handler),
        (Exception, general_exception_handler),
    ):
        app.add_exception_handler(exc_class, handler)
