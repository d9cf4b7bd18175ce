"""Signal pipeline orchestration.

Pipeline flow:
1. Generate (propose signal parameters for the requested asset)
2. Validate (confidence assessment, isValid gate)
3. Summarize (optional, one-line message)

Every stage failure aborts the run with exactly one SignalPipelineError;
there are no retries across stages and no partial results.
"""

import logging
import time
from dataclasses import dataclass

from .base import Pipeline
from .context import (
    PipelineContext,
    PROPOSED_SIGNAL,
    SIGNAL_SUMMARY,
    VALIDATION_OUTCOME,
)
from .errors import SignalPipelineError
from .runner import CompletionStageRunner
from .schemas import (
    VALIDATE,
    PipelineResult,
    ProposedSignal,
    SignalRequest,
    ValidationOutcome,
    get_stage_schema,
    is_valid_confidence,
)
from .stages import GenerateSignalStage, SummarizeSignalStage, ValidateSignalStage

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PipelineVariant:
    """Which optional stages and fields a pipeline run produces."""

    include_summary: bool = True
    expose_validation: bool = True

    @classmethod
    def gate_only(cls) -> "PipelineVariant":
        """Validation still runs, but only the isValid gate is returned."""
        return cls(include_summary=False, expose_validation=False)


class SignalPipeline:
    """One orchestrator for every pipeline variant."""

    def __init__(
        self,
        runner: CompletionStageRunner,
        variant: PipelineVariant | None = None,
    ):
        self.runner = runner
        self.variant = variant or PipelineVariant()
        self._validate_stage = ValidateSignalStage(runner)

        stages = [GenerateSignalStage(runner), self._validate_stage]
        if self.variant.include_summary:
            stages.append(SummarizeSignalStage(runner))
        self.pipeline = Pipeline(stages)

    @property
    def timeframes(self) -> tuple:
        return self.runner.timeframes

    async def run(self, request: SignalRequest) -> PipelineResult:
        """
        Run the full pipeline for one request.

        Args:
            request: Validated SignalRequest

        Returns:
            PipelineResult with every artifact the variant declares

        Raises:
            GenerationFailed, ValidationFailed, SummarizationFailed
        """
        logger.info(
            f"Signal pipeline started for {request.asset} @ {request.approximate_timestamp} "
            f"({self.pipeline})"
        )
        started = time.monotonic()

        context = PipelineContext().with_request(request)
        try:
            result_context = await self.pipeline.execute(context)
        except SignalPipelineError as e:
            logger.error(f"Signal pipeline aborted at stage '{e.stage}': {e}")
            raise

        result = self._assemble(result_context)
        logger.info(
            f"Signal pipeline complete for {request.asset}: valid={result.is_valid} "
            f"in {time.monotonic() - started:.2f}s"
        )
        return result

    async def validate_signal(self, signal: ProposedSignal) -> ValidationOutcome:
        """
        Run only the validation stage on a caller-supplied signal.

        Raises:
            SchemaViolation: if the signal's timeframe is not configured
            ValidationFailed: if the validation stage fails
        """
        checked = get_stage_schema(VALIDATE).validate_input(
            signal, context={"timeframes": self.timeframes}
        )
        return await self._validate_stage.assess(checked)

    def _assemble(self, context: PipelineContext) -> PipelineResult:
        outcome = context.require(VALIDATION_OUTCOME)

        return PipelineResult(
            proposed_signal=context.require(PROPOSED_SIGNAL),
            is_valid=is_valid_confidence(outcome.confidence_level),
            validation_outcome=outcome if self.variant.expose_validation else None,
            summary=context.require(SIGNAL_SUMMARY) if self.variant.include_summary else None,
        )
