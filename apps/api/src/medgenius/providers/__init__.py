"""Chat providers - Adapters for chat-completion APIs."""

from medgenius.providers.base import (
    ChatProvider,
    CompletionRequest,
    CompletionResponse,
    ProviderDownError,
    ProviderError,
    RateLimitError,
)
from medgenius.providers.openai import OpenAIProvider

__all__ = [
    "ChatProvider",
    "CompletionRequest",
    "CompletionResponse",
    "OpenAIProvider",
    "ProviderDownError",
    "ProviderError",
    "RateLimitError",
]
