"""Pytest configuration and shared fixtures for signal generator tests.

This module provides:
- Basic pytest configuration
- Scripted completion clients and sample stage payloads
- Setup/teardown for test isolation
"""

import sys
from pathlib import Path
from typing import Dict

import pytest

# Add project root to Python path to allow imports from signalgen
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from signalgen.pipeline import CompletionStageRunner, PipelineVariant, SignalPipeline
from signalgen.pipeline.schemas import SignalRequest
from tests.fixtures.sample_signals import (
    get_generation_output,
    get_summary_output,
    get_validation_output,
)
from tests.fixtures.helpers import RecordingNotifier, ScriptedCompletionClient


# ==================== Environment Fixtures ====================

@pytest.fixture(scope="function", autouse=True)
def isolate_environment(monkeypatch):
    """Keep real webhooks and API keys out of every test."""
    for key in ("DISCORD_WEBHOOK_URL", "OPENROUTER_API_KEY", "SIGNALGEN_CONFIG"):
        monkeypatch.delenv(key, raising=False)
    yield


@pytest.fixture
def mock_env_vars(monkeypatch) -> Dict[str, str]:
    """Provide mock environment variables for testing."""
    env_vars = {
        "OPENROUTER_API_KEY": "test-openrouter-key",
        "DISCORD_WEBHOOK_URL": "https://discord.test/api/webhooks/1/abc",
        "LOG_LEVEL": "ERROR",
    }

    for key, value in env_vars.items():
        monkeypatch.setenv(key, value)

    return env_vars


# ==================== Pipeline Fixtures ====================

@pytest.fixture
def aapl_request() -> SignalRequest:
    return SignalRequest(asset="AAPL", approximate_timestamp="2024-01-01T00:00:00Z")


@pytest.fixture
def scripted_client() -> ScriptedCompletionClient:
    """Completion client answering every stage with a valid payload."""
    return ScriptedCompletionClient(
        {
            "generate": get_generation_output(),
            "validate": get_validation_output(),
            "summarize": get_summary_output(),
        }
    )


@pytest.fixture
def runner(scripted_client) -> CompletionStageRunner:
    return CompletionStageRunner(scripted_client)


@pytest.fixture
def pipeline(runner) -> SignalPipeline:
    return SignalPipeline(runner, PipelineVariant())


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()
