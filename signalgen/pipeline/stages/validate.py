"""Validation stage: assess confidence of a proposed signal."""

import logging

from ..base import Stage
from ..context import PipelineContext, PROPOSED_SIGNAL, VALIDATION_OUTCOME
from ..errors import StageFailure, ValidationFailed
from ..runner import CompletionStageRunner
from ..schemas import VALIDATE, ValidationOutcome

logger = logging.getLogger(__name__)


class ValidateSignalStage(Stage):
    """Scores a ProposedSignal High/Medium/Low and derives isValid from that score."""

    def __init__(self, runner: CompletionStageRunner):
        self.runner = runner

    @property
    def name(self) -> str:
        return "ValidateSignalStage"

    async def execute(self, context: PipelineContext) -> PipelineContext:
        signal = context.require(PROPOSED_SIGNAL)
        outcome = await self.assess(signal)
        return context.set(VALIDATION_OUTCOME, outcome)

    async def assess(self, signal) -> ValidationOutcome:
        try:
            outcome = await self.runner.run(VALIDATE, signal)
        except StageFailure as e:
            raise ValidationFailed(e) from e

        if not outcome.is_consistent:
            logger.warning(
                f"Model reported isValid={outcome.is_valid} with "
                f"{outcome.confidence_level} confidence; re-deriving"
            )
        outcome = outcome.with_derived_validity()

        logger.info(
            f"Validation: {outcome.confidence_level} confidence, valid={outcome.is_valid}"
        )
        return outcome
