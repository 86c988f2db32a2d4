"""请求上下文与访问日志中间件"""
import re
import time
import uuid
from typing import Callable, Dict, Iterable, Optional

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from app.core.config import Settings
from app.core.logging import app_logger, performance_logger

REQUEST_ID_HEADER = "X-Request-ID"
PROCESS_TIME_HEADER = "X-Process-Time"

# 访问日志中记录路径上的缺陷ID
BUG_PATH_PATTERN = re.compile(r"/bugs/(B[0-9]+)")


class RequestIDMiddleware(BaseHTTPMiddleware):
    """为每个请求分配ID，沿用客户端传入的 X-Request-ID"""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        request.state.request_id = request_id

        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response


class AccessLogMiddleware(BaseHTTPMiddleware):
    """访问日志中间件

    每个请求记录一条日志，包含方法、路径、状态码和耗时；
    耗时超过阈值时额外记录慢请求。
    """

    def __init__(
        self,
        app,
        slow_request_threshold: float = 2.0,
        skip_paths: Iterable[str] = ("/health", "/favicon.ico")
    ):
        super().__init__(app)
        self.slow_request_threshold = slow_request_threshold
        self.skip_paths = frozenset(skip_paths)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.url.path in self.skip_paths:
            return await call_next(request)

        context = self._request_context(request)
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as e:
            app_logger.log_request_failed(e, time.perf_counter() - started, **context)
            raise

        elapsed = time.perf_counter() - started
        app_logger.log_request(response.status_code, elapsed, **context)
        performance_logger.log_response_time(
            endpoint=f"{context['method']} {context['url']}",
            response_time=elapsed,
            threshold=self.slow_request_threshold
        )

        response.headers[PROCESS_TIME_HEADER] = f"{elapsed:.6f}"
        return response

    @staticmethod
    def _request_context(request: Request) -> Dict[str, Optional[str]]:
        match = BUG_PATH_PATTERN.search(request.url.path)
        return {
            "request_id": getattr(request.state, "request_id", "unknown"),
            "method": request.method,
            "url": request.url.path,
            "ip_address": client_ip(request),
            "bug_id": match.group(1) if match else None,
        }


def client_ip(request: Request) -> str:
    """客户端IP，优先取代理转发的第一个地址"""
    forwarded_for = request.headers.get("X-Forwarded-For", "")
    first_hop = forwarded_for.split(",")[0].strip()
    if first_hop:
        return first_hop
    return request.client.host if request.client else "unknown"


def setup_middleware(app: FastAPI, settings: Settings) -> None:
    """设置中间件

    后添加的中间件位于外层，RequestIDMiddleware 需要最先执行。
    """
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
        allow_methods=settings.CORS_ALLOW_METHODS,
        allow_headers=settings.CORS_ALLOW_HEADERS,
        expose_headers=[REQUEST_ID_HEADER, PROCESS_TIME_HEADER],
    )
    app.add_middleware(AccessLogMiddleware, slow_request_threshold=settings.SLOW_REQUEST_THRESHOLD)
    app.add_middleware(RequestIDMiddleware)
