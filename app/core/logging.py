"""日志模块

控制台输出文本日志（开发环境带颜色），可选的轮转文件日志在生产环境输出JSON。
业务代码通过 app_logger 的 api / database / business 三个通道记录结构化日志。
"""
import json
import logging
import logging.handlers
import re
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from app.core.config import Settings, get_settings

LOG_FORMAT = "[%(asctime)s] %(levelname)-8s %(name)s:%(lineno)d - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# LogRecord 自带的属性，其余属性视为 extra 字段
_RECORD_ATTRIBUTES = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))
) | {"message", "asctime"}


def record_extras(record: logging.LogRecord) -> Dict[str, Any]:
    """取出通过 extra 传入的字段"""
    return {
        key: value for key, value in vars(record).items()
        if key not in _RECORD_ATTRIBUTES and not key.startswith("_")
    }


class JSONFormatter(logging.Formatter):
    """JSON格式的日志格式化器"""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}.{record.funcName}:{record.lineno}",
        }
        entry.update(record_extras(record))

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, ensure_ascii=False, default=str)


class ColoredFormatter(logging.Formatter):
    """按日志级别着色的控制台格式化器"""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)
        color = self.COLORS.get(record.levelname)
        return f"{color}{text}{self.RESET}" if color else text


class SensitiveDataFilter(logging.Filter):
    """屏蔽日志消息中 key=value 形式的凭据"""

    SENSITIVE_FIELDS = ("password", "token", "secret", "authorization", "cookie", "api_key")
    PATTERN = re.compile(
        r"(?i)\b(" + "|".join(SENSITIVE_FIELDS) + r")(\s*[=:]\s*)([^\s,;&]+)"
    )

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        masked = self.PATTERN.sub(r"\1\2***", message)
        if masked != message:
            record.msg = masked
            record.args = ()
        return True


def _attach(root: logging.Logger, handler: logging.Handler, formatter: logging.Formatter, level: int):
    handler.setLevel(level)
    handler.setFormatter(formatter)
    handler.addFilter(SensitiveDataFilter())
    root.addHandler(handler)


def setup_logging(
    settings: Optional[Settings] = None,
    enable_json: bool = False,
    enable_colors: bool = True
) -> None:
    """配置根日志记录器，重复调用会替换已有的处理器"""
    settings = settings or get_settings()
    level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    console_formatter_class = ColoredFormatter if enable_colors and sys.stdout.isatty() else logging.Formatter
    _attach(
        root,
        logging.StreamHandler(sys.stdout),
        console_formatter_class(LOG_FORMAT, datefmt=DATE_FORMAT),
        level
    )

    if settings.LOG_FILE:
        log_path = Path(settings.LOG_FILE)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        _attach(
            root,
            logging.handlers.RotatingFileHandler(
                log_path,
                maxBytes=settings.LOG_MAX_SIZE,
                backupCount=settings.LOG_BACKUP_COUNT,
                encoding="utf-8"
            ),
            JSONFormatter() if enable_json else logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT),
            level
        )

    # 第三方库日志级别
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    sql_level = logging.INFO if settings.is_development and settings.DATABASE_ECHO else logging.WARNING
    logging.getLogger("sqlalchemy.engine").setLevel(sql_level)
    logging.getLogger("sqlalchemy.pool").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


class StructuredLogger:
    """结构化日志记录器，关键字参数作为 extra 字段写入日志记录"""

    def __init__(self, name: str):
        self.logger = logging.getLogger(name)

    def log(self, level: int, message: str, exc_info: bool = False, **fields):
        # 值为None的字段不写入
        extra = {key: value for key, value in fields.items() if value is not None}
        self.logger.log(level, message, exc_info=exc_info, extra=extra)

    def debug(self, message: str, **fields):
        self.log(logging.DEBUG, message, **fields)

    def info(self, message: str, **fields):
        self.log(logging.INFO, message, **fields)

    def warning(self, message: str, **fields):
        self.log(logging.WARNING, message, **fields)

    def error(self, message: str, **fields):
        self.log(logging.ERROR, message, **fields)


class AppLogger:
    """应用程序日志记录器"""

    def __init__(self):
        self.api_logger = StructuredLogger("app.api")
        self.db_logger = StructuredLogger("app.database")
        self.business_logger = StructuredLogger("app.business")

    def log_request(self, status_code: int, response_time: float, method: str, url: str, **fields):
        """记录一次请求，4xx 为 WARNING，5xx 为 ERROR"""
        if status_code >= 500:
            level = logging.ERROR
        elif status_code >= 400:
            level = logging.WARNING
        else:
            level = logging.INFO

        self.api_logger.log(
            level,
            f"{method} {url} -> {status_code} ({response_time * 1000:.1f}ms)",
            method=method,
            url=url,
            status_code=status_code,
            response_time=response_time,
            **fields
        )

    def log_request_failed(self, error: Exception, response_time: float, method: str, url: str, **fields):
        """记录处理过程中抛出未处理异常的请求"""
        self.api_logger.error(
            f"{method} {url} failed: {error}",
            exc_info=True,
            method=method,
            url=url,
            response_time=response_time,
            error_type=type(error).__name__,
            **fields
        )

    def log_database_operation(self, operation: str, table: str, record_id: Optional[str] = None):
        """记录数据库写操作"""
        self.db_logger.debug(
            f"{operation} {table} {record_id or ''}".rstrip(),
            operation=operation,
            table=table,
            bug_id=record_id
        )

    def log_business_event(self, event_type: str, bug_id: Optional[str] = None, details: Optional[str] = None):
        """记录业务事件，如缺陷创建、状态变更"""
        message = f"Business event: {event_type}"
        if details:
            message = f"{message} ({details})"

        self.business_logger.info(message, event_type=event_type, bug_id=bug_id)


app_logger = AppLogger()


class PerformanceLogger:
    """慢请求日志"""

    def __init__(self):
        self.logger = StructuredLogger("app.performance")

    def log_response_time(self, endpoint: str, response_time: float, threshold: float = 2.0):
        if response_time > threshold:
            self.logger.warning(
                f"Slow response: {endpoint} took {response_time:.3f}s",
                endpoint=endpoint,
                response_time=response_time,
                threshold=threshold
            )


performance_logger = PerformanceLogger()


def init_logging(settings: Optional[Settings] = None):
    """初始化日志系统：生产环境文件日志用JSON，开发环境控制台着色"""
    settings = settings or get_settings()
    setup_logging(
        settings,
        enable_json=settings.is_production,
        enable_colors=settings.LOG_ENABLE_COLORS and settings.is_development
    )

    get_logger(__name__).info(
        "Logging initialized - level=%s environment=%s", settings.LOG_LEVEL, settings.ENVIRONMENT
    )
