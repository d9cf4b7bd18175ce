"""Custom OpenAI-compatible endpoint provider."""

from openai import AsyncOpenAI, OpenAIError
from typing import List, Dict, Optional
from .base import BaseLLMProvider, ProviderConfig, ProviderError, ModelResponse


class CustomOpenAIProvider(BaseLLMProvider):
    """Provider for any OpenAI-compatible API endpoint."""

    def __init__(self, config: ProviderConfig):
        super().__init__(config)
        self.client = AsyncOpenAI(
            api_key=config.api_key or "dummy-key",
            base_url=config.base_url,
            timeout=config.timeout,
            max_retries=0,
        )

    async def query(
        self,
        messages: List[Dict[str, str]],
        model: str,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        **kwargs,
    ) -> ModelResponse:
        """
        Query custom OpenAI-compatible endpoint.

        Args:
            messages: List of message dicts with 'role' and 'content'
            model: Model identifier
            temperature: Sampling temperature (0-2)
            max_tokens: Maximum tokens to generate
            **kwargs: Additional parameters

        Returns:
            ModelResponse with content and metadata
        """
        try:
            response = await self.client.chat.completions.create(
                model=model,
                messages=messages,
                temperature=temperature if temperature is not None else 0.7,
                max_tokens=max_tokens if max_tokens is not None else 4096,
                **kwargs,
            )
        except OpenAIError as e:
            raise ProviderError(f"Custom OpenAI endpoint query failed: {e}") from e

        if not response.choices:
            return ModelResponse(content=None, model=response.model)

        usage = response.usage
        return ModelResponse(
            content=response.choices[0].message.content,
            model=response.model,
            prompt_tokens=usage.prompt_tokens if usage else None,
            completion_tokens=usage.completion_tokens if usage else None,
            total_tokens=usage.total_tokens if usage else None,
        )

    def validate_key(self) -> bool:
        """Local endpoints often need no key; a base URL is enough."""
        return bool(self.config.base_url)
