"""LLM provider interface and vendor adapters."""

from hh_vibe.providers.llm.base import (
    CompletionRequest,
    LLMMessage,
    LLMProvider,
    LLMResponse,
    SDKProvider,
    TaskType,
)
from hh_vibe.providers.llm.claude_adapter import ClaudeAdapter
from hh_vibe.providers.llm.gemini_adapter import GeminiAdapter
from hh_vibe.providers.llm.mock_adapter import MockLLMProvider
from hh_vibe.providers.llm.openai_adapter import OpenAIAdapter

__all__ = [
    "CompletionRequest",
    "LLMMessage",
    "LLMProvider",
    "LLMResponse",
    "SDKProvider",
    "TaskType",
    "ClaudeAdapter",
    "GeminiAdapter",
    "MockLLMProvider",
    "OpenAIAdapter",
]
