"""OpenRouter provider implementation."""

import httpx
from typing import List, Dict, Optional
from .base import BaseLLMProvider, ProviderConfig, ProviderError, ModelResponse


OPENROUTER_API_URL = "https://openrouter.ai/api/v1/chat/completions"


class OpenRouterProvider(BaseLLMProvider):
    """OpenRouter API provider for multi-model access."""

    def __init__(self, config: ProviderConfig, transport: httpx.AsyncBaseTransport | None = None):
        super().__init__(config)
        self.api_url = config.base_url or OPENROUTER_API_URL
        self._transport = transport

    async def query(
        self,
        messages: List[Dict[str, str]],
        model: str,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        **kwargs,
    ) -> ModelResponse:
        """
        Query a model via OpenRouter API.

        Args:
            messages: List of message dicts with 'role' and 'content'
            model: OpenRouter model identifier (e.g., "google/gemini-2.5-flash")
            temperature: Sampling temperature (0-2)
            max_tokens: Maximum tokens to generate
            **kwargs: Additional parameters (e.g., response_format)

        Returns:
            ModelResponse with content and metadata
        """
        headers = {
            "Authorization": f"Bearer {self.config.api_key}",
            "Content-Type": "application/json",
        }

        payload = {
            "model": model,
            "messages": messages,
        }

        if temperature is not None:
            payload["temperature"] = temperature

        if max_tokens is not None:
            payload["max_tokens"] = max_tokens

        payload.update(kwargs)

        try:
            async with httpx.AsyncClient(
                timeout=self.config.timeout, transport=self._transport
            ) as client:
                response = await client.post(
                    self.api_url, headers=headers, json=payload
                )
                response.raise_for_status()

                data = response.json()
                choices = data.get("choices") or []
                if not choices:
                    return ModelResponse(content=None, model=data.get("model"))
                message = choices[0].get("message") or {}
                usage = data.get("usage") or {}

                return ModelResponse(
                    content=message.get("content"),
                    model=data.get("model"),
                    prompt_tokens=usage.get("prompt_tokens"),
                    completion_tokens=usage.get("completion_tokens"),
                    total_tokens=usage.get("total_tokens"),
                )

        except httpx.HTTPStatusError as e:
            raise ProviderError(
                f"OpenRouter HTTP error: {e.response.status_code} - {e.response.text}"
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            raise ProviderError(f"OpenRouter query failed: {e!r}") from e
