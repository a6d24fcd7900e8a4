"""配置文件监听和热重载模块

监听配置文件的变化，文件被修改且内容是合法JSON时，在应用的事件循环中
依次执行重载回调。使用 watchdog 库监听文件系统事件。
"""

import asyncio
import json
import threading
from collections.abc import Awaitable, Callable
from pathlib import Path

import aiofiles
from loguru import logger
from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

ReloadCallback = Callable[[], Awaitable[None]]

# 文件修改后等待写入完成的秒数
RELOAD_DELAY = 0.1


class ConfigFileHandler(FileSystemEventHandler):
    """配置文件变化事件处理器"""

    def __init__(self, config_path: Path, callback: Callable[[], None]):
        """
        初始化配置文件处理器

        Args:
            config_path: 要监听的配置文件路径
            callback: 配置文件变化时的回调函数（在 watchdog 线程中调用）
        """
        self.config_path = config_path.resolve()
        self.callback = callback
        self._last_modified = 0.0

    def on_modified(self, event) -> None:
        """处理文件修改事件"""
        if event.is_directory:
            return

        if Path(event.src_path).resolve() != self.config_path:
            return

        # 同一次写入可能触发多个事件
        try:
            current_modified = self.config_path.stat().st_mtime
        except OSError:
            return
        if current_modified == self._last_modified:
            return
        self._last_modified = current_modified

        logger.info(f"配置文件已修改: {self.config_path}")
        threading.Timer(RELOAD_DELAY, self.callback).start()


class ConfigWatcher:
    """配置文件监听器"""

    def __init__(self, config_path: str | Path):
        self.config_path = Path(config_path).resolve()
        self.observer: Observer | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._reload_callbacks: list[ReloadCallback] = []

    def add_reload_callback(self, callback: ReloadCallback) -> None:
        """添加异步配置重载回调函数"""
        self._reload_callbacks.append(callback)

    async def start_watching(self) -> None:
        """开始监听配置文件变化，必须在应用的事件循环中调用"""
        if self.observer is not None:
            logger.warning("配置监听器已在运行")
            return

        if not self.config_path.exists():
            logger.warning(f"配置文件不存在，跳过监听: {self.config_path}")
            return

        self._loop = asyncio.get_running_loop()
        handler = ConfigFileHandler(self.config_path, self._on_config_changed)
        self.observer = Observer()
        self.observer.schedule(handler, str(self.config_path.parent), recursive=False)
        self.observer.start()

        logger.info(f"开始监听配置文件: {self.config_path}")

    def stop_watching(self) -> None:
        """停止监听配置文件变化"""
        if self.observer is None:
            return

        logger.info("停止配置文件监听")
        self.observer.stop()
        self.observer.join()
        self.observer = None
        self._loop = None

    def _on_config_changed(self) -> None:
        """在 watchdog 线程中被调用，把重载投递回应用的事件循环"""
        loop = self._loop
        if loop is None or loop.is_closed():
            logger.error("事件循环不可用，跳过配置重载")
            return
        asyncio.run_coroutine_threadsafe(self.process_config_change(), loop)

    async def process_config_change(self) -> None:
        """校验配置文件并执行重载回调"""
        if not await self.validate_config_file():
            logger.error("配置文件格式无效，跳过重载")
            return

        for callback in self._reload_callbacks:
            try:
                await callback()
            except Exception as e:
                logger.error(f"配置重载回调执行失败 {getattr(callback, '__name__', callback)}: {e}")

        logger.info("配置重载完成")

    async def validate_config_file(self) -> bool:
        """验证配置文件是否为合法的JSON对象"""
        try:
            async with aiofiles.open(self.config_path, encoding="utf-8") as f:
                data = json.loads(await f.read())
        except (json.JSONDecodeError, OSError) as e:
            logger.error(f"配置文件验证失败: {e}")
            return False
        return isinstance(data, dict)
