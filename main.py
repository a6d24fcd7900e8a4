#!/usr/bin/env python3
"""
OpenBridge 启动脚本

配置优先级（低 -> 高）：
1. 内置默认值
2. JSON 配置文件（--config、CONFIG_PATH、./openbridge.json、~/.openbridge.json、
   ~/.config/openbridge/config.json 中第一个存在的）
3. 环境变量
4. 命令行 --host / --port
"""

import argparse
import os
import sys

import uvicorn

from openbridge.config.settings import Config


def main():
    """主启动函数"""
    parser = argparse.ArgumentParser(description="启动 OpenBridge")
    parser.add_argument("--config", type=str, help="JSON 配置文件路径")
    parser.add_argument("--host", type=str, help="监听地址，覆盖配置")
    parser.add_argument("--port", type=int, help="监听端口，覆盖配置")
    args = parser.parse_args()

    if args.config:
        # 让应用模块加载同一个配置文件
        os.environ["CONFIG_PATH"] = args.config

    try:
        config = Config.from_file_sync(args.config)
    except Exception as e:
        print(f"❌ 启动失败: {e}")
        sys.exit(1)

    host = args.host or config.host
    port = args.port or config.port

    print("🚀 启动 OpenBridge Server...")
    print(f"   配置文件: {config.source_path or '未使用'}")
    print(f"   上游地址: {config.base_url}")
    print(f"   监听地址: {host}:{port}")
    print()
    print("📋 重要端点:")
    print(f"   消息接口: http://{host}:{port}/v1/messages")
    print(f"   健康检查: http://{host}:{port}/health")
    print()

    uvicorn.run(
        "openbridge.main:app",
        host=host,
        port=port,
        timeout_keep_alive=60,
        log_level=config.log_level.lower(),
    )


if __name__ == "__main__":
    main()
