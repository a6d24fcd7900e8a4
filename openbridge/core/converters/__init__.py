"""
转换器模块

提供Anthropic和OpenAI API格式之间的数据转换功能。
"""

from .request_converter import AnthropicToOpenAIConverter
from .response_converter import OpenAIToAnthropicConverter

__all__ = ["AnthropicToOpenAIConverter", "OpenAIToAnthropicConverter"]
