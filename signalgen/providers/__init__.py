"""Completion provider abstractions for multi-provider support."""

from .base import BaseLLMProvider, ProviderConfig, ProviderError, ModelResponse
from .openrouter import OpenRouterProvider
from .custom_openai import CustomOpenAIProvider
from .registry import ProviderRegistry

__all__ = [
    "BaseLLMProvider",
    "ProviderConfig",
    "ProviderError",
    "ModelResponse",
    "OpenRouterProvider",
    "CustomOpenAIProvider",
    "ProviderRegistry",
]
