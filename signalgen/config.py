"""Environment configuration for the signal generator."""

import logging
import os
from dotenv import load_dotenv

load_dotenv()

# ============================================================================
# Completion Provider Configuration
# ============================================================================

# Provider used when a stage model id has no "provider:" prefix
COMPLETION_PROVIDER = os.getenv("COMPLETION_PROVIDER", "openrouter")

# OpenRouter API key
OPENROUTER_API_KEY = os.getenv("OPENROUTER_API_KEY")

# Any OpenAI-compatible endpoint (vLLM, LM Studio, Azure proxy, ...)
CUSTOM_OPENAI_API_KEY = os.getenv("CUSTOM_OPENAI_API_KEY")
CUSTOM_OPENAI_BASE_URL = os.getenv("CUSTOM_OPENAI_BASE_URL")

# ============================================================================
# Notification Configuration
# ============================================================================

# Discord webhook; unset means notifications are skipped
DISCORD_WEBHOOK_URL = os.getenv("DISCORD_WEBHOOK_URL")

# ============================================================================
# Pipeline Configuration
# ============================================================================

# Optional override for config/signals.yaml
SIGNALGEN_CONFIG = os.getenv("SIGNALGEN_CONFIG")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# ============================================================================
# Port Configuration
# ============================================================================

def get_port(env_var: str, default: int) -> int:
    """Get port from environment or return default."""
    try:
        return int(os.getenv(env_var, default))
    except ValueError:
        logging.getLogger(__name__).warning(
            f"Invalid {env_var}, using default {default}"
        )
        return default

# Backend API server port
BACKEND_PORT = get_port("PORT_BACKEND", 8200)

# Frontend dev server port
FRONTEND_PORT = get_port("PORT_FRONTEND", 9002)

def get_cors_origins():
    """Generate CORS allowed origins based on port configuration."""
    extra = os.getenv("CORS_EXTRA_ORIGINS", "")
    origins = [
        f"http://localhost:{FRONTEND_PORT}",
        f"http://127.0.0.1:{FRONTEND_PORT}",
    ]
    origins.extend(o.strip() for o in extra.split(",") if o.strip())
    return origins

# ============================================================================
# Logging
# ============================================================================

def configure_logging(level: str | None = None) -> None:
    """Configure root logging once for CLI and server entry points."""
    logging.basicConfig(
        level=(level or LOG_LEVEL).upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
