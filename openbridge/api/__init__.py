"""
API模块

提供FastAPI应用的路由、处理器和中间件。

子模块:
- handlers: /v1/messages 请求处理器
- routes: 健康检查与首页
- middleware: 中间件实现
"""

from .handlers import CallState, MessagesHandler, messages_endpoint
from .handlers import router as handlers_router
from .middleware import RequestTimingMiddleware, setup_middlewares
from .routes import health_check
from .routes import router as routes_router

__all__ = [
    # 路由
    "routes_router",
    "handlers_router",
    "health_check",
    # 处理器
    "CallState",
    "MessagesHandler",
    "messages_endpoint",
    # 中间件
    "RequestTimingMiddleware",
    "setup_middlewares",
]
