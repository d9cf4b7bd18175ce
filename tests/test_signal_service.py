"""Tests for SignalService request handling and notification hand-off."""

import pytest

from signalgen.config_loader import SignalsConfig
from signalgen.notifications import DiscordNotifier, NotificationDispatcher, NotificationFailed
from signalgen.pipeline import CompletionStageRunner, PipelineVariant, SignalPipeline
from signalgen.providers import ProviderError
from signalgen.services import SignalService, build_signal_service
from signalgen.services.signal_service import SCHEMA_ERROR_MESSAGE
from tests.fixtures.helpers import RecordingNotifier, ScriptedCompletionClient
from tests.fixtures.sample_signals import (
    get_generation_output,
    get_proposed_signal,
    get_summary_output,
    get_validation_output,
)

AAPL_PAYLOAD = {"asset": "AAPL", "approximateTimestamp": "2024-01-01T00:00:00Z"}


def make_service(notifier=None, variant=None, **script_overrides):
    script = {
        "generate": get_generation_output(),
        "validate": get_validation_output(),
        "summarize": get_summary_output(),
    }
    script.update(script_overrides)
    client = ScriptedCompletionClient(script)
    pipeline = SignalPipeline(CompletionStageRunner(client), variant)
    notifier = notifier or RecordingNotifier()
    return SignalService(pipeline, NotificationDispatcher(notifier)), client, notifier


class TestProposeAndValidate:
    @pytest.mark.asyncio
    async def test_success(self):
        service, _, notifier = make_service()

        result = await service.propose_and_validate(AAPL_PAYLOAD)

        assert result["success"] is True
        assert result["data"]["proposedSignal"]["asset"] == "AAPL"
        assert result["data"]["isValid"] is True
        assert result["data"]["summary"]["shortMessage"].startswith("AAPL-Test")

        await service.close()
        assert len(notifier.calls) == 1

    @pytest.mark.asyncio
    async def test_returns_before_notification_runs(self):
        service, _, notifier = make_service()

        await service.propose_and_validate(AAPL_PAYLOAD)

        assert notifier.calls == []
        assert service.dispatcher.pending == 1
        await service.close()

    @pytest.mark.asyncio
    async def test_notification_failure_does_not_change_result(self):
        notifier = RecordingNotifier(error=NotificationFailed("Discord webhook returned 500"))
        service, _, _ = make_service(notifier=notifier)

        result = await service.propose_and_validate(AAPL_PAYLOAD)
        await service.close()

        assert result["success"] is True
        assert len(notifier.calls) == 1

    @pytest.mark.asyncio
    async def test_not_valid_signal_is_not_notified(self):
        service, _, notifier = make_service(
            validate=get_validation_output(confidenceLevel="Low", isValid=False)
        )

        result = await service.propose_and_validate(AAPL_PAYLOAD)
        await service.close()

        assert result["success"] is True
        assert result["data"]["isValid"] is False
        assert notifier.calls == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "payload,field",
        [
            ({"asset": "", "approximateTimestamp": "2024-01-01T00:00:00Z"}, "asset"),
            ({"asset": "AAPL"}, "approximateTimestamp"),
            ({"asset": "AAPL", "approximateTimestamp": "soon"}, "approximateTimestamp"),
            ({"asset": 42, "approximateTimestamp": "2024-01-01T00:00:00Z"}, "asset"),
        ],
    )
    async def test_invalid_request(self, payload, field):
        service, client, _ = make_service()

        result = await service.propose_and_validate(payload)

        assert result["success"] is False
        assert result["error_type"] == "invalid_request"
        assert result["error"].startswith(f"Invalid signal request: {field}:")
        assert client.instructions == []

    @pytest.mark.asyncio
    async def test_schema_violation_gives_friendly_message(self):
        service, client, notifier = make_service(
            generate=get_generation_output(tradeDirection="HOLD")
        )

        result = await service.propose_and_validate(AAPL_PAYLOAD)

        assert result == {
            "success": False,
            "error": SCHEMA_ERROR_MESSAGE,
            "error_type": "pipeline",
            "stage": "generate",
        }
        assert client.stages_called == ["generate"]
        await service.close()
        assert notifier.calls == []

    @pytest.mark.asyncio
    async def test_transport_failure_names_stage(self):
        service, _, _ = make_service(summarize=ProviderError("timeout"))

        result = await service.propose_and_validate(AAPL_PAYLOAD)

        assert result["success"] is False
        assert result["stage"] == "summarize"
        assert "AI failed to generate the signal summary." in result["error"]
        assert "data" not in result

    @pytest.mark.asyncio
    async def test_gate_only_variant(self):
        service, _, _ = make_service(variant=PipelineVariant.gate_only())

        result = await service.propose_and_validate(AAPL_PAYLOAD)
        await service.close()

        assert set(result["data"]) == {"proposedSignal", "isValid"}


class TestValidateSignal:
    @pytest.mark.asyncio
    async def test_success(self):
        service, client, notifier = make_service(
            validate=get_validation_output(confidenceLevel="Medium")
        )

        result = await service.validate_signal(get_proposed_signal())

        assert result == {
            "success": True,
            "data": {"confidenceLevel": "Medium", "reasoning": "ok", "isValid": True},
        }
        assert client.stages_called == ["validate"]
        assert notifier.calls == []

    @pytest.mark.asyncio
    async def test_invalid_signal(self):
        service, client, _ = make_service()

        result = await service.validate_signal(get_proposed_signal(tradeDirection="HOLD"))

        assert result["success"] is False
        assert result["error_type"] == "invalid_request"
        assert result["error"].startswith("Invalid trading signal: tradeDirection:")
        assert client.instructions == []

    @pytest.mark.asyncio
    async def test_pipeline_failure(self):
        service, _, _ = make_service(validate="not json")

        result = await service.validate_signal(get_proposed_signal())

        assert result["success"] is False
        assert result["stage"] == "validate"
        assert result["error"] == SCHEMA_ERROR_MESSAGE


class TestBuildSignalService:
    def test_wires_configuration(self):
        signals_config = SignalsConfig(
            timeframes=("1H", "4H"), variant=PipelineVariant.gate_only()
        )

        service = build_signal_service(
            signals_config, webhook_url="https://discord.test/api/webhooks/1/abc"
        )

        assert service.timeframes == ("1H", "4H")
        assert service.pipeline.variant == PipelineVariant.gate_only()
        assert isinstance(service.dispatcher.notifier, DiscordNotifier)
        assert service.dispatcher.notifier.webhook_url == "https://discord.test/api/webhooks/1/abc"
        assert service.dispatcher.notifier.timeout == 10.0

    @pytest.mark.asyncio
    async def test_missing_provider_key_fails_generation(self):
        # OPENROUTER_API_KEY is cleared by the isolate_environment fixture
        service = build_signal_service(SignalsConfig())

        result = await service.propose_and_validate(AAPL_PAYLOAD)

        assert result["success"] is False
        assert result["stage"] == "generate"
        assert "Provider not loaded: openrouter" in result["error"]
