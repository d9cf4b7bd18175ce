"""Integration tests for the signal pipeline.

This module tests the end-to-end signal workflow:
1. Generate (signal parameters bound to the requested asset)
2. Validate (confidence assessment and isValid gate)
3. Summarize (optional one-line message)

Tests cover stage ordering, abort-on-first-failure, pipeline variants,
re-derivation of isValid, standalone validation and concurrent runs.
"""

import asyncio

import pytest

from signalgen.pipeline import (
    CompletionStageRunner,
    GenerationFailed,
    PipelineContext,
    PipelineVariant,
    SchemaViolation,
    SignalPipeline,
    SummarizationFailed,
    ValidationFailed,
)
from signalgen.pipeline.context import PROPOSED_SIGNAL, SIGNAL_REQUEST
from signalgen.pipeline.schemas import PipelineResult, SignalRequest, get_stage_schema
from signalgen.providers import ProviderError
from tests.fixtures.helpers import ScriptedCompletionClient
from tests.fixtures.sample_signals import (
    get_generation_output,
    get_proposed_signal,
    get_summary_output,
    get_validation_output,
)


def make_pipeline(script, variant=None, timeframes=None):
    client = ScriptedCompletionClient(script)
    runner = (
        CompletionStageRunner(client, timeframes)
        if timeframes
        else CompletionStageRunner(client)
    )
    return SignalPipeline(runner, variant), client


def full_script(**overrides):
    script = {
        "generate": get_generation_output(),
        "validate": get_validation_output(),
        "summarize": get_summary_output(),
    }
    script.update(overrides)
    return script


class TestSignalPipelineRun:
    """Test suite for the full generate -> validate -> summarize flow."""

    @pytest.mark.asyncio
    @pytest.mark.integration
    async def test_aapl_signal_end_to_end(self, pipeline, scripted_client, aapl_request):
        result = await pipeline.run(aapl_request)

        assert isinstance(result, PipelineResult)
        assert result.proposed_signal.asset == "AAPL"
        assert result.proposed_signal.trade_direction == "BUY"
        assert result.is_valid is True
        assert result.validation_outcome.confidence_level == "High"
        assert result.summary.short_message.startswith("AAPL-Test")
        assert scripted_client.stages_called == ["generate", "validate", "summarize"]

        data = result.to_dict()
        assert data["proposedSignal"] == {
            "signalIdentifier": "AAPL-Test",
            "timeframe": "1H",
            "tradeDirection": "BUY",
            "entryPrice": 175.0,
            "takeProfit1": 180.0,
            "stopLoss": 172.0,
            "reason": "test",
            "exactTimestamp": "2024-01-01T01:00:00Z",
            "asset": "AAPL",
        }
        assert data["isValid"] is True

    @pytest.mark.asyncio
    async def test_validate_stage_sees_proposed_signal(self, pipeline, scripted_client, aapl_request):
        await pipeline.run(aapl_request)

        validate_prompt = scripted_client.calls("validate")[0].messages[1]["content"]
        assert "Asset: AAPL" in validate_prompt
        assert "Entry Price: 175.0" in validate_prompt
        assert "Take Profit 2" not in validate_prompt

    @pytest.mark.asyncio
    async def test_asset_comes_from_request(self, aapl_request):
        pipeline, _ = make_pipeline(
            full_script(generate=get_generation_output(asset="MSFT"))
        )

        result = await pipeline.run(aapl_request)

        assert result.proposed_signal.asset == "AAPL"

    @pytest.mark.asyncio
    async def test_take_profit_2_carried_through(self, aapl_request):
        pipeline, client = make_pipeline(
            full_script(generate=get_generation_output(takeProfit2=185))
        )

        result = await pipeline.run(aapl_request)

        assert result.to_dict()["proposedSignal"]["takeProfit2"] == 185.0
        assert "Take Profit 2: 185.0" in client.calls("validate")[0].messages[1]["content"]

    @pytest.mark.asyncio
    async def test_low_confidence_is_not_valid(self, aapl_request):
        pipeline, client = make_pipeline(
            full_script(validate=get_validation_output(confidenceLevel="Low", isValid=False))
        )

        result = await pipeline.run(aapl_request)

        assert result.is_valid is False
        assert result.validation_outcome.confidence_level == "Low"
        assert result.summary is not None
        assert client.stages_called[-1] == "summarize"

    @pytest.mark.asyncio
    async def test_is_valid_re_derived_from_confidence(self, aapl_request):
        pipeline, _ = make_pipeline(
            full_script(validate=get_validation_output(confidenceLevel="Low", isValid=True))
        )

        result = await pipeline.run(aapl_request)

        assert result.is_valid is False
        assert result.validation_outcome.is_valid is False

    @pytest.mark.asyncio
    async def test_medium_confidence_is_valid(self, aapl_request):
        pipeline, _ = make_pipeline(
            full_script(validate=get_validation_output(confidenceLevel="Medium", isValid=False))
        )

        result = await pipeline.run(aapl_request)

        assert result.is_valid is True


class TestSignalPipelineFailures:
    """Every failure aborts with exactly one stage error and no partial result."""

    @pytest.mark.asyncio
    async def test_hold_direction_fails_generation(self, aapl_request):
        pipeline, client = make_pipeline(
            full_script(generate=get_generation_output(tradeDirection="HOLD"))
        )

        with pytest.raises(GenerationFailed) as exc_info:
            await pipeline.run(aapl_request)

        assert exc_info.value.stage == "generate"
        assert exc_info.value.failure.is_schema_violation
        assert client.stages_called == ["generate"]

    @pytest.mark.asyncio
    async def test_non_finite_prices_fail_generation(self, aapl_request):
        raw = (
            '{"signalIdentifier": "AAPL-Test", "timeframe": "1H", "tradeDirection": "BUY", '
            '"entryPrice": NaN, "takeProfit1": Infinity, "stopLoss": 172, "reason": "test", '
            '"exactTimestamp": "2024-01-01T01:00:00Z"}'
        )
        pipeline, client = make_pipeline(full_script(generate=raw))

        with pytest.raises(GenerationFailed) as exc_info:
            await pipeline.run(aapl_request)

        assert exc_info.value.failure.is_schema_violation
        assert exc_info.value.failure.cause.field_path == "entryPrice"
        assert client.stages_called == ["generate"]

    @pytest.mark.asyncio
    async def test_empty_generation_fails(self, aapl_request):
        pipeline, client = make_pipeline(full_script(generate=None))

        with pytest.raises(GenerationFailed) as exc_info:
            await pipeline.run(aapl_request)

        assert not exc_info.value.failure.is_schema_violation
        assert client.stages_called == ["generate"]

    @pytest.mark.asyncio
    async def test_validation_transport_error(self, aapl_request):
        pipeline, client = make_pipeline(
            full_script(validate=ProviderError("OpenRouter HTTP error: 500"))
        )

        with pytest.raises(ValidationFailed) as exc_info:
            await pipeline.run(aapl_request)

        assert exc_info.value.stage == "validate"
        assert "summarize" not in client.stages_called

    @pytest.mark.asyncio
    async def test_free_text_confidence_fails_validation(self, aapl_request):
        pipeline, _ = make_pipeline(
            full_script(validate=get_validation_output(confidenceLevel="Very High"))
        )

        with pytest.raises(ValidationFailed) as exc_info:
            await pipeline.run(aapl_request)

        assert exc_info.value.failure.cause.field_path == "confidenceLevel"

    @pytest.mark.asyncio
    async def test_summary_failure_discards_result(self, aapl_request):
        pipeline, client = make_pipeline(full_script(summarize={"shortMessage": ""}))

        with pytest.raises(SummarizationFailed) as exc_info:
            await pipeline.run(aapl_request)

        assert exc_info.value.stage == "summarize"
        assert client.stages_called == ["generate", "validate", "summarize"]


class TestPipelineVariants:
    @pytest.mark.asyncio
    async def test_gate_only_variant(self, aapl_request):
        pipeline, client = make_pipeline(full_script(), PipelineVariant.gate_only())

        result = await pipeline.run(aapl_request)

        assert result.is_valid is True
        assert result.validation_outcome is None
        assert result.summary is None
        assert set(result.to_dict()) == {"proposedSignal", "isValid"}
        assert client.stages_called == ["generate", "validate"]

    @pytest.mark.asyncio
    async def test_gate_only_still_aborts_on_validation_failure(self, aapl_request):
        pipeline, _ = make_pipeline(
            full_script(validate="no json here"), PipelineVariant.gate_only()
        )

        with pytest.raises(ValidationFailed):
            await pipeline.run(aapl_request)

    @pytest.mark.asyncio
    async def test_without_summary(self, aapl_request):
        pipeline, client = make_pipeline(
            full_script(), PipelineVariant(include_summary=False)
        )

        result = await pipeline.run(aapl_request)

        assert result.summary is None
        assert result.validation_outcome is not None
        assert "summarize" not in client.stages_called

    def test_stage_composition(self, runner):
        full = SignalPipeline(runner)
        gate = SignalPipeline(runner, PipelineVariant.gate_only())

        assert full.pipeline.stage_names == [
            "GenerateSignalStage",
            "ValidateSignalStage",
            "SummarizeSignalStage",
        ]
        assert gate.pipeline.stage_names == ["GenerateSignalStage", "ValidateSignalStage"]
        assert repr(gate.pipeline) == "Pipeline(GenerateSignalStage -> ValidateSignalStage)"


class TestStandaloneValidation:
    @pytest.mark.asyncio
    async def test_validate_existing_signal(self):
        pipeline, client = make_pipeline(
            {"validate": get_validation_output(confidenceLevel="Medium")}
        )
        signal = get_stage_schema("validate").validate_input(get_proposed_signal())

        outcome = await pipeline.validate_signal(signal)

        assert outcome.confidence_level == "Medium"
        assert outcome.is_valid is True
        assert client.stages_called == ["validate"]
        prompt = client.calls("validate")[0].messages[1]["content"]
        assert "Asset: EUR/USD" in prompt
        assert "Take Profit 2: 1.085" in prompt

    @pytest.mark.asyncio
    async def test_unconfigured_timeframe_rejected_before_call(self):
        pipeline, client = make_pipeline(
            {"validate": get_validation_output()}, timeframes=["1H", "1D"]
        )
        signal = get_stage_schema("validate").validate_input(get_proposed_signal())

        with pytest.raises(SchemaViolation) as exc_info:
            await pipeline.validate_signal(signal)

        assert exc_info.value.field_path == "timeframe"
        assert client.instructions == []


class TestConcurrentRuns:
    @pytest.mark.asyncio
    async def test_runs_do_not_share_state(self):
        class YieldingClient(ScriptedCompletionClient):
            async def complete(self, instruction):
                await asyncio.sleep(0)
                return await super().complete(instruction)

        client = YieldingClient(full_script())
        pipeline = SignalPipeline(CompletionStageRunner(client))
        requests = [
            SignalRequest(asset=asset, approximate_timestamp="2024-01-01T00:00:00Z")
            for asset in ("AAPL", "EUR/USD", "BTC")
        ]

        results = await asyncio.gather(*(pipeline.run(r) for r in requests))

        assert [r.proposed_signal.asset for r in results] == ["AAPL", "EUR/USD", "BTC"]
        assert client.stages_called.count("generate") == 3


class TestPipelineContext:
    def test_set_returns_new_context(self, aapl_request):
        empty = PipelineContext()
        with_request = empty.with_request(aapl_request)

        assert with_request.require(SIGNAL_REQUEST) is aapl_request
        with pytest.raises(KeyError):
            empty.require(SIGNAL_REQUEST)

    def test_require_missing_key(self):
        with pytest.raises(KeyError):
            PipelineContext().require(PROPOSED_SIGNAL)
