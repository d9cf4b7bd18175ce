"""Notifier boundary."""

from abc import ABC, abstractmethod

from ..pipeline.schemas import PipelineResult, SignalRequest


class NotificationFailed(Exception):
    """A notification could not be delivered. Logged only, never propagated to callers."""


class Notifier(ABC):
    @abstractmethod
    async def notify(self, request: SignalRequest, result: PipelineResult) -> bool:
        """
        Deliver one alert for a pipeline result.

        Returns:
            True if delivered, False if skipped (e.g. no endpoint configured)

        Raises:
            NotificationFailed: on delivery errors
        """
        pass
