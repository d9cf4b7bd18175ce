"""Provider registry for dynamic provider loading."""

import logging
import os
from typing import Dict, Mapping, Optional, Tuple
from .base import BaseLLMProvider, ProviderConfig
from .openrouter import OpenRouterProvider
from .custom_openai import CustomOpenAIProvider

logger = logging.getLogger(__name__)


PROVIDER_CLASSES = {
    "openrouter": OpenRouterProvider,
    "custom_openai": CustomOpenAIProvider,
}


class ProviderRegistry:
    """Registry for managing completion providers."""

    def __init__(self, default_provider: str = "openrouter"):
        self.default_provider = default_provider
        self._providers: Dict[str, BaseLLMProvider] = {}

    def load_providers(self, settings: Mapping[str, object]) -> None:
        """
        Create providers from ProviderSettings entries.

        Args:
            settings: provider_id -> ProviderSettings (from config/signals.yaml)
        """
        for provider_id, item in settings.items():
            if not item.enabled:
                continue

            config = ProviderConfig(
                provider_id=provider_id,
                api_key=os.getenv(item.api_key_env) if item.api_key_env else None,
                base_url=item.resolve_base_url(),
                timeout=item.timeout,
                enabled=item.enabled,
            )

            provider = self._create_provider(provider_id, config)
            if provider.validate_key():
                self._providers[provider_id] = provider
                logger.info(f"Loaded provider: {provider_id}")
            else:
                logger.warning(f"Provider {provider_id} failed validation (skipping)")

    def _create_provider(
        self, provider_id: str, config: ProviderConfig
    ) -> BaseLLMProvider:
        provider_class = PROVIDER_CLASSES.get(provider_id)
        if not provider_class:
            raise ValueError(f"Unknown provider: {provider_id}")

        return provider_class(config)

    def register(self, provider_id: str, provider: BaseLLMProvider) -> None:
        self._providers[provider_id] = provider

    def get_provider(self, provider_id: str) -> Optional[BaseLLMProvider]:
        return self._providers.get(provider_id)

    def parse_model_id(self, model_id: str) -> Tuple[str, str]:
        """
        Parse prefixed model ID into (provider_id, model_name).

        Args:
            model_id: Model ID with prefix (e.g., "openrouter:google/gemini-2.5-flash")

        Returns:
            Tuple of (provider_id, model_name)

        Raises:
            ValueError if model ID is invalid
        """
        if ":" not in model_id:
            return self.default_provider, model_id

        provider_id, model_name = model_id.split(":", 1)
        if not provider_id or not model_name:
            raise ValueError(f"Invalid model ID format: {model_id}")

        return provider_id, model_name

    def resolve(self, model_id: str) -> Tuple[BaseLLMProvider, str]:
        provider_id, model_name = self.parse_model_id(model_id)
        provider = self.get_provider(provider_id)

        if not provider:
            raise ValueError(f"Provider not loaded: {provider_id}")

        return provider, model_name
