"""中间件模块

提供统一的错误处理和按操作分类的访问日志中间件。
"""

import logging
import time
from typing import Callable
from datetime import datetime

from fastapi import Request, Response, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from textops.errors import TextOpsError
from textops.models import ErrorResponse
from textops.security import sanitize_error_message


logger = logging.getLogger(__name__)


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """统一错误处理中间件

    捕获路由未处理的异常并返回格式化的错误响应。
    类型化错误使用自身的状态码，其他异常返回 500 且错误信息经过清理。
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)

        except TextOpsError as exc:
            logger.warning(
                f"Unhandled operation error: {exc}",
                extra={
                    "path": request.url.path,
                    "method": request.method,
                    "error_type": exc.error_type
                }
            )
            error_response = ErrorResponse(
                error=exc.error_type,
                detail=str(exc),
                timestamp=datetime.now()
            )
            return JSONResponse(
                status_code=exc.status_code,
                content=error_response.model_dump(mode='json')
            )

        except Exception as exc:
            logger.error(
                f"Unhandled exception: {exc}",
                exc_info=True,
                extra={
                    "path": request.url.path,
                    "method": request.method,
                    "client": request.client.host if request.client else None
                }
            )
            error_response = ErrorResponse(
                error="Internal Server Error",
                detail=sanitize_error_message(str(exc)),
                timestamp=datetime.now()
            )
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content=error_response.model_dump(mode='json')
            )


# 路由路径到操作名的映射，未列出的路径记为 "other"
OPERATIONS = {
    "/health": "health",
    "/search/content": "search_content",
    "/search/files": "search_files",
    "/files/read-range": "read_range",
    "/files/insert": "insert",
    "/files/replace": "replace",
    "/files/apply-diff": "apply_diff",
    "/files/hash": "file_hash",
    "/files/line-count": "line_count",
}

# 会修改目标文件的操作
MUTATING_OPERATIONS = frozenset({"insert", "replace", "apply_diff"})


def operation_name(path: str) -> str:
    return OPERATIONS.get(path, "other")


class AccessLoggingMiddleware(BaseHTTPMiddleware):
    """访问日志中间件

    记录每个请求对应的操作名、目标文件、状态码和耗时，并在响应头中返回处理时间。
    修改文件的操作完成后额外记录一条写入日志。
    目标文件只从查询参数 path 中读取，POST 请求体不在这里解析。
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.time()
        client_host = request.client.host if request.client else "unknown"
        operation = operation_name(request.url.path)
        target = request.query_params.get("path")
        context = {
            "method": request.method,
            "path": request.url.path,
            "operation": operation,
            "target": target,
            "client": client_host,
        }
        target_suffix = f" ({target})" if target else ""

        logger.info(
            f"Request started: {request.method} {request.url.path} "
            f"[{operation}]{target_suffix}",
            extra=context
        )

        try:
            response = await call_next(request)
        except Exception as exc:
            process_time = time.time() - start_time
            logger.error(
                f"Request failed: {request.method} {request.url.path} [{operation}] - "
                f"Error: {exc} - Duration: {process_time:.3f}s",
                exc_info=True,
                extra={**context, "duration": process_time}
            )
            # 重新抛出异常，让 ErrorHandlingMiddleware 处理
            raise

        process_time = time.time() - start_time
        logger.info(
            f"Request completed: {request.method} {request.url.path} - "
            f"Status: {response.status_code} - Duration: {process_time:.3f}s",
            extra={**context, "status_code": response.status_code, "duration": process_time}
        )
        if operation in MUTATING_OPERATIONS and response.status_code < 400:
            logger.info(f"File modified by {operation}", extra=context)

        response.headers["X-Process-Time"] = str(process_time)
        response.headers["X-Operation"] = operation
        return response
