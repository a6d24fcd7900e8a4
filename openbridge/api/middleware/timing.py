"""请求ID与计时中间件"""

import time
from collections.abc import Callable

from fastapi import FastAPI, Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from openbridge.common.logging import (
    REQUEST_ID_HEADER,
    generate_request_id,
    get_logger_with_request_id,
)


class RequestTimingMiddleware(BaseHTTPMiddleware):
    """为每个请求生成请求ID并记录处理时间"""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.time()

        # 调用方传入的请求ID优先
        request_id = request.headers.get(REQUEST_ID_HEADER) or await generate_request_id()
        request.state.request_id = request_id

        bound_logger = get_logger_with_request_id(request_id)
        bound_logger.debug(f"收到请求 - {request.method} {request.url.path}")

        try:
            response = await call_next(request)
        except Exception as exc:
            response_time_ms = round((time.time() - start_time) * 1000, 2)
            bound_logger.opt(exception=exc).error(
                f"请求处理错误 - {request.method} {request.url.path}, "
                f"Type: {type(exc).__name__}, Time: {response_time_ms}ms"
            )
            response = Response(
                content="服务器内部错误",
                status_code=500,
                media_type="text/plain",
            )
            response.headers[REQUEST_ID_HEADER] = request_id
            return response

        response_time = time.time() - start_time
        bound_logger.info(
            f"请求完成 - Status: {response.status_code}, "
            f"Time: {round(response_time * 1000, 2)}ms"
        )
        response.headers["X-Process-Time"] = f"{response_time:.3f}s"
        response.headers[REQUEST_ID_HEADER] = request_id
        return response


def setup_middlewares(app: FastAPI) -> None:
    """设置所有中间件"""
    app.add_middleware(RequestTimingMiddleware)
