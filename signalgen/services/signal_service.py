"""Signal service for propose/validate request handling."""

import logging
from typing import Any, Dict, Mapping, Optional

from .. import config as app_config
from ..config_loader import SignalsConfig, load_signals_config
from ..notifications import DiscordNotifier, NotificationDispatcher
from ..pipeline import (
    CompletionService,
    CompletionStageRunner,
    PipelineVariant,
    SchemaViolation,
    SignalPipeline,
    SignalPipelineError,
)
from ..pipeline.schemas import (
    GENERATE,
    VALIDATE,
    ProposedSignal,
    SignalRequest,
    get_stage_schema,
)
from ..providers import ProviderRegistry

logger = logging.getLogger(__name__)

SCHEMA_ERROR_MESSAGE = (
    "The AI's response was not in the expected format. "
    "Please try adjusting your input or try again later."
)


def _failure(error: str, error_type: str, stage: Optional[str] = None) -> Dict[str, Any]:
    response = {"success": False, "error": error, "error_type": error_type}
    if stage:
        response["stage"] = stage
    return response


class SignalService:
    """
    Service class for the signal proposal workflow.

    Bridges API routes / CLI and the pipeline:
    - Validates inbound payloads into typed requests
    - Runs the pipeline and converts aborts into a single error message
    - Hands valid results to the notification dispatcher without waiting on it
    """

    def __init__(
        self,
        pipeline: SignalPipeline,
        dispatcher: Optional[NotificationDispatcher] = None,
    ):
        self.pipeline = pipeline
        self.dispatcher = dispatcher

    @property
    def timeframes(self) -> tuple:
        return self.pipeline.timeframes

    async def propose_and_validate(
        self, payload: Mapping[str, Any] | SignalRequest
    ) -> Dict[str, Any]:
        """
        Propose, validate and (optionally) summarize a trading signal.

        Args:
            payload: SignalRequest or mapping with asset / approximateTimestamp

        Returns:
            Dict containing:
                - success: True if a complete PipelineResult was produced
                - data: PipelineResult as JSON (only on success)
                - error: Error message (only on failure)
                - error_type: 'invalid_request' or 'pipeline' (only on failure)
                - stage: Failed stage name (only on pipeline failure)
        """
        try:
            request = (
                payload
                if isinstance(payload, SignalRequest)
                else get_stage_schema(GENERATE).validate_input(payload)
            )
        except SchemaViolation as e:
            logger.warning(f"Rejected signal request: {e}")
            return _failure(
                f"Invalid signal request: {e.field_path}: {e.expected}", "invalid_request"
            )

        try:
            result = await self.pipeline.run(request)
        except SignalPipelineError as e:
            logger.error(f"Error proposing and validating signal: {e}", exc_info=True)
            message = SCHEMA_ERROR_MESSAGE if e.failure.is_schema_violation else str(e)
            return _failure(message, "pipeline", stage=e.stage)

        if self.dispatcher is not None:
            self.dispatcher.maybe_notify(request, result)

        return {"success": True, "data": result.to_dict()}

    async def validate_signal(
        self, payload: Mapping[str, Any] | ProposedSignal
    ) -> Dict[str, Any]:
        """
        Validate an existing signal without generating one.

        Returns:
            Dict with success and either data (ValidationOutcome JSON) or error
        """
        try:
            signal = get_stage_schema(VALIDATE).validate_input(
                payload, context={"timeframes": self.timeframes}
            )
        except SchemaViolation as e:
            logger.warning(f"Rejected signal for validation: {e}")
            return _failure(
                f"Invalid trading signal: {e.field_path}: {e.expected}", "invalid_request"
            )

        try:
            outcome = await self.pipeline.validate_signal(signal)
        except SignalPipelineError as e:
            logger.error(f"Error validating signal: {e}", exc_info=True)
            message = SCHEMA_ERROR_MESSAGE if e.failure.is_schema_violation else str(e)
            return _failure(message, "pipeline", stage=e.stage)

        return {"success": True, "data": outcome.to_dict()}

    async def close(self) -> None:
        if self.dispatcher is not None:
            await self.dispatcher.drain()


def build_signal_service(
    signals_config: SignalsConfig | None = None,
    variant: PipelineVariant | None = None,
    webhook_url: str | None = None,
) -> SignalService:
    """
    Wire providers, runner, pipeline and notifier from configuration.

    Args:
        signals_config: Parsed config (default: load_signals_config())
        variant: Override of the configured pipeline variant
        webhook_url: Override of DISCORD_WEBHOOK_URL
    """
    signals_config = signals_config or load_signals_config()

    registry = ProviderRegistry(default_provider=app_config.COMPLETION_PROVIDER)
    registry.load_providers(signals_config.providers)

    runner = CompletionStageRunner(
        CompletionService(registry, signals_config.stages),
        timeframes=signals_config.timeframes,
    )
    pipeline = SignalPipeline(runner, variant or signals_config.variant)

    notifier = DiscordNotifier(
        webhook_url or app_config.DISCORD_WEBHOOK_URL,
        timeout=signals_config.notification_timeout,
    )
    return SignalService(pipeline, NotificationDispatcher(notifier))
