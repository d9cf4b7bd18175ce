"""Summarization stage: one-line message for a validated signal."""

from ..base import Stage
from ..context import (
    PipelineContext,
    PROPOSED_SIGNAL,
    SIGNAL_SUMMARY,
    VALIDATION_OUTCOME,
)
from ..errors import StageFailure, SummarizationFailed
from ..runner import CompletionStageRunner
from ..schemas import SUMMARIZE, SummarizeInput


class SummarizeSignalStage(Stage):
    def __init__(self, runner: CompletionStageRunner):
        self.runner = runner

    @property
    def name(self) -> str:
        return "SummarizeSignalStage"

    async def execute(self, context: PipelineContext) -> PipelineContext:
        payload = SummarizeInput(
            proposed_signal=context.require(PROPOSED_SIGNAL),
            validation_outcome=context.require(VALIDATION_OUTCOME),
        )

        try:
            summary = await self.runner.run(SUMMARIZE, payload)
        except StageFailure as e:
            raise SummarizationFailed(e) from e

        return context.set(SIGNAL_SUMMARY, summary)
