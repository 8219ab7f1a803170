"""
日志中间件

记录所有HTTP请求和响应：
- 请求方法、路径、参数
- 响应状态码、处理时间
- 请求ID、操作人、客户端IP
"""

import time
import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from dcim.core.logging_config import get_logger, request_id_var

logger = get_logger(__name__)


class LoggingMiddleware(BaseHTTPMiddleware):
    """HTTP请求/响应日志中间件"""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.time()

        # 没有上游请求ID时生成一个，便于串联扫码连接的多步操作日志
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
        request.state.request_id = request_id
        token = request_id_var.set(request_id)
        client_host = request.client.host if request.client else "unknown"
        operator = request.headers.get("X-Operator", "")
        method = request.method
        path = request.url.path
        query_params = str(request.query_params) if request.query_params else ""

        extra = {
            "client_ip": client_host,
            "query": query_params,
            "requestId": request_id,
            "operator": operator or "system",
        }

        try:
            response = await call_next(request)
        except Exception as e:
            logger.exception("HTTP %s %s failed: %s", method, path, str(e), extra=extra)
            # 重新抛出异常，让FastAPI的异常处理器处理
            raise
        finally:
            request_id_var.reset(token)

        process_time = time.time() - start_time
        response.headers["X-Process-Time"] = f"{process_time:.3f}"
        response.headers["X-Request-ID"] = request_id

        log_func = logger.warning if response.status_code >= 400 else logger.info
        log_func(
            "HTTP %s %s -> %s (%.3fs)",
            method,
            path,
            response.status_code,
            process_time,
            extra=extra,
        )
        return response
