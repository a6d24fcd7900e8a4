from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from loguru import logger

from openbridge.api.handlers import MessagesHandler
from openbridge.api.handlers import router as messages_router
from openbridge.api.middleware.timing import setup_middlewares
from openbridge.api.routes import router as health_router
from openbridge.common.logging import (
    DEFAULT_LOG_FILE,
    configure_logging,
    get_logger_with_request_id,
    get_request_id_from_request,
)
from openbridge.config.settings import Config, load_config, reload_config
from openbridge.config.watcher import ConfigWatcher


def _log_startup_tips(config: Config) -> None:
    if not config.api_key:
        logger.warning("未配置API密钥，请设置 OPENAI_API_KEY 或 ~/.huggingface/token")
    if config.is_using_defaults():
        logger.info(
            f"正在使用默认上游 {config.base_url} 与默认模型 {config.model}，"
            "可通过 OPENAI_BASE_URL / OPENAI_MODEL 修改"
        )


def create_app(
    config: Config | None = None,
    handler: MessagesHandler | None = None,
    log_file: str | None = DEFAULT_LOG_FILE,
) -> FastAPI:
    """
    创建FastAPI应用

    Args:
        config: 应用配置，为 None 时按默认规则加载
        handler: 预先构建的消息处理器，测试时注入
        log_file: 文件日志路径，为 None 时只输出到控制台
    """
    app_config = config or (handler.config if handler is not None else load_config())

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """应用生命周期管理"""
        configure_logging(app_config.log_level, log_file)
        _log_startup_tips(app_config)

        app.state.messages_handler = handler or await MessagesHandler.create(app_config)
        app.state.retired_handlers = []

        async def on_config_reload():
            """配置重载时重新创建消息处理器"""
            try:
                new_config = await reload_config(str(app_config.source_path))
                configure_logging(new_config.log_level, log_file)
                new_handler = await MessagesHandler.create(new_config)
            except Exception as e:
                logger.error(f"配置热重载失败: {e}")
                return

            # 旧处理器可能仍有进行中的请求，关闭时再统一释放
            app.state.retired_handlers.append(app.state.messages_handler)
            app.state.messages_handler = new_handler
            logger.info("配置热重载完成，服务已更新")

        config_watcher = None
        if app_config.source_path is not None:
            config_watcher = ConfigWatcher(app_config.source_path)
            config_watcher.add_reload_callback(on_config_reload)
            await config_watcher.start_watching()

        logger.info(
            f"启动 OpenBridge 服务器 - Host: {app_config.host}, Port: {app_config.port}, "
            f"Upstream: {app_config.base_url}, LogLevel: {app_config.log_level}"
        )

        yield

        if config_watcher is not None:
            config_watcher.stop_watching()
        for old_handler in [*app.state.retired_handlers, app.state.messages_handler]:
            await old_handler.close()
        logger.info("服务器已停止")

    app = FastAPI(
        title="OpenBridge Server",
        version="0.1.0",
        description="Anthropic Messages API to OpenAI chat completions bridge.",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    setup_middlewares(app)

    app.include_router(health_router)
    app.include_router(messages_router)

    @app.exception_handler(Exception)
    async def global_exception_handler(request, exc):
        """全局异常处理，统一返回纯文本500"""
        request_id = get_request_id_from_request(request)
        bound_logger = get_logger_with_request_id(request_id)
        bound_logger.opt(exception=exc).error(
            f"捕获未处理的服务器异常 - Type: {type(exc).__name__}, "
            f"Path: {request.url.path}"
        )
        return PlainTextResponse("服务器内部错误", status_code=500)

    return app


app = create_app()
