import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, Tuple

import yaml

from .pipeline.schemas import DEFAULT_TIMEFRAMES, GENERATE, SUMMARIZE, VALIDATE
from .pipeline.signal_pipeline import PipelineVariant

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "openrouter:google/gemini-2.5-flash"


class ConfigError(ValueError):
    """Raised when config/signals.yaml is malformed."""


@dataclass(frozen=True)
class StageSettings:
    model: str = DEFAULT_MODEL
    temperature: float = 0.7
    max_tokens: int = 1200


@dataclass(frozen=True)
class ProviderSettings:
    provider_id: str
    api_key_env: str = ""
    base_url: str | None = None
    base_url_env: str | None = None
    timeout: float = 60.0
    enabled: bool = True

    def resolve_base_url(self) -> str | None:
        if self.base_url_env and os.getenv(self.base_url_env):
            return os.getenv(self.base_url_env)
        return self.base_url


@dataclass(frozen=True)
class SignalsConfig:
    timeframes: Tuple[str, ...] = DEFAULT_TIMEFRAMES
    variant: PipelineVariant = field(default_factory=PipelineVariant)
    stages: Dict[str, StageSettings] = field(
        default_factory=lambda: {
            GENERATE: StageSettings(temperature=0.7),
            VALIDATE: StageSettings(temperature=0.2),
            SUMMARIZE: StageSettings(temperature=0.3, max_tokens=300),
        }
    )
    providers: Dict[str, ProviderSettings] = field(
        default_factory=lambda: {
            "openrouter": ProviderSettings("openrouter", api_key_env="OPENROUTER_API_KEY"),
        }
    )
    notification_timeout: float = 10.0


def _default_config_path() -> str:
    project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
    return os.path.join(project_root, "config", "signals.yaml")


def _parse_timeframes(data: Any) -> Tuple[str, ...]:
    if data is None:
        return DEFAULT_TIMEFRAMES
    if not isinstance(data, list) or not data:
        raise ConfigError("timeframes must be a non-empty list")
    if not all(isinstance(item, str) and item for item in data):
        raise ConfigError("timeframes must be non-empty strings")
    return tuple(data)


def _parse_flag(data: Dict[str, Any], key: str, default: bool) -> bool:
    value = data.get(key, default)
    if not isinstance(value, bool):
        raise ConfigError(f"{key} must be true or false, got {value!r}")
    return value


def _parse_variant(data: Dict[str, Any]) -> PipelineVariant:
    return PipelineVariant(
        include_summary=_parse_flag(data, "include_summary", True),
        expose_validation=_parse_flag(data, "expose_validation", True),
    )


def _parse_stages(data: Dict[str, Dict[str, Any]]) -> Dict[str, StageSettings]:
    defaults = SignalsConfig().stages
    stages = dict(defaults)
    for name, item in data.items():
        if name not in defaults:
            raise ConfigError(f"Unknown stage in config: {name}")
        base = defaults[name]
        stages[name] = StageSettings(
            model=item.get("model", base.model),
            temperature=float(item.get("temperature", base.temperature)),
            max_tokens=int(item.get("max_tokens", base.max_tokens)),
        )
    return stages


def _parse_providers(data: Dict[str, Dict[str, Any]]) -> Dict[str, ProviderSettings]:
    return {
        key: ProviderSettings(
            provider_id=key,
            api_key_env=value.get("api_key_env", ""),
            base_url=value.get("base_url"),
            base_url_env=value.get("base_url_env"),
            timeout=float(value.get("timeout", 60.0)),
            enabled=_parse_flag(value, "enabled", True),
        )
        for key, value in data.items()
    }


def parse_signals_config(data: Dict[str, Any] | None) -> SignalsConfig:
    data = data or {}
    defaults = SignalsConfig()
    notifications = data.get("notifications", {}) or {}

    return SignalsConfig(
        timeframes=_parse_timeframes(data.get("timeframes")),
        variant=_parse_variant(data.get("pipeline", {}) or {}),
        stages=_parse_stages(data.get("stages", {}) or {}),
        providers=_parse_providers(data["providers"])
        if data.get("providers")
        else defaults.providers,
        notification_timeout=float(
            notifications.get("timeout", defaults.notification_timeout)
        ),
    )


def load_signals_config(path: str | None = None) -> SignalsConfig:
    """
    Load pipeline configuration from YAML.

    Resolution order: explicit path, SIGNALGEN_CONFIG, config/signals.yaml.
    A missing file yields the built-in defaults.
    """
    config_path = path or os.getenv("SIGNALGEN_CONFIG") or _default_config_path()

    if not os.path.exists(config_path):
        logger.warning(f"Config file {config_path} not found, using defaults")
        return SignalsConfig()

    with open(config_path) as f:
        data = yaml.safe_load(f)

    if data is not None and not isinstance(data, dict):
        raise ConfigError(f"{config_path} must contain a mapping")

    return parse_signals_config(data)
