"""
上游客户端模块

提供OpenAI兼容接口的HTTP客户端封装。
"""

from .openai_client import OpenAIServiceClient, UpstreamReply, mask_api_key

__all__ = ["OpenAIServiceClient", "UpstreamReply", "mask_api_key"]
