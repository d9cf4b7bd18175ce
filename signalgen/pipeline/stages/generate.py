"""Generation stage: propose signal parameters for the requested asset."""

import logging

from ..base import Stage
from ..context import PipelineContext, PROPOSED_SIGNAL, SIGNAL_REQUEST
from ..errors import GenerationFailed, StageFailure
from ..runner import CompletionStageRunner
from ..schemas import GENERATE, ProposedSignal

logger = logging.getLogger(__name__)


class GenerateSignalStage(Stage):
    """
    Asks the completion service for signal parameters and binds them to the request.

    The asset on the resulting ProposedSignal always comes from the request,
    never from whatever the model echoed back.
    """

    def __init__(self, runner: CompletionStageRunner):
        self.runner = runner

    @property
    def name(self) -> str:
        return "GenerateSignalStage"

    async def execute(self, context: PipelineContext) -> PipelineContext:
        request = context.require(SIGNAL_REQUEST)

        try:
            params = await self.runner.run(GENERATE, request)
        except StageFailure as e:
            raise GenerationFailed(e) from e

        signal = ProposedSignal.from_generation(request, params)
        logger.info(
            f"Proposed {signal.trade_direction} {signal.asset} ({signal.timeframe}) "
            f"as '{signal.signal_identifier}'"
        )
        return context.set(PROPOSED_SIGNAL, signal)
