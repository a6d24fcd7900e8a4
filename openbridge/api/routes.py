"""健康检查与首页路由"""

from fastapi import APIRouter, Request

router = APIRouter()


@router.get("/health")
async def health_check(request: Request):
    """健康检查，返回当前使用的默认模型"""
    handler = getattr(request.app.state, "messages_handler", None)
    model = handler.config.model if handler is not None else None
    return {"status": "healthy", "model": model}


@router.get("/")
async def root():
    return {"message": "Welcome to the OpenBridge Server"}
