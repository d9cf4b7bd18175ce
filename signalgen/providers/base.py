"""Base abstract class for completion providers."""

from abc import ABC, abstractmethod
from typing import Dict, List, Optional
from dataclasses import dataclass


class ProviderError(Exception):
    """Transport or protocol failure talking to a completion provider."""


@dataclass
class ProviderConfig:
    """Configuration for a provider."""

    provider_id: str
    api_key: Optional[str] = None
    base_url: Optional[str] = None
    timeout: float = 60.0
    enabled: bool = True


@dataclass
class ModelResponse:
    """Response from an LLM model."""

    content: Optional[str]
    model: Optional[str] = None
    prompt_tokens: Optional[int] = None
    completion_tokens: Optional[int] = None
    total_tokens: Optional[int] = None


class BaseLLMProvider(ABC):
    """Abstract base class for completion providers."""

    def __init__(self, config: ProviderConfig):
        self.config = config

    @abstractmethod
    async def query(
        self,
        messages: List[Dict[str, str]],
        model: str,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        **kwargs,
    ) -> ModelResponse:
        """
        Query an LLM model for exactly one completion.

        Args:
            messages: List of message dicts with 'role' and 'content'
            model: Model identifier
            temperature: Sampling temperature (0-2)
            max_tokens: Maximum tokens to generate
            **kwargs: Additional provider-specific parameters

        Returns:
            ModelResponse with content and metadata

        Raises:
            ProviderError: on HTTP, timeout or malformed envelope errors
        """
        pass

    def validate_key(self) -> bool:
        """
        Validate that the API key is configured.

        Returns:
            True if valid, False otherwise
        """
        return self.config.api_key is not None and len(self.config.api_key) > 0
