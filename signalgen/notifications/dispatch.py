"""Gate & dispatch: detached notification of valid pipeline results."""

import asyncio
import logging
from typing import Optional, Set

from ..pipeline.schemas import PipelineResult, SignalRequest
from .base import Notifier

logger = logging.getLogger(__name__)


class NotificationDispatcher:
    """
    Starts one detached notification per valid result.

    The caller's result is never awaited on, altered or failed by delivery:
    each notification runs in its own asyncio task and any failure is only
    logged from the task's done-callback.
    """

    def __init__(self, notifier: Notifier):
        self.notifier = notifier
        self._pending: Set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._pending)

    def maybe_notify(
        self, request: SignalRequest, result: PipelineResult
    ) -> Optional[asyncio.Task]:
        """
        Dispatch a notification if the result passed the gate.

        Must be called from a running event loop, after the pipeline returned.

        Returns:
            The detached task, or None when the result is not valid
        """
        if not result.is_valid:
            logger.info(f"{request.asset} signal not valid; no notification dispatched")
            return None

        task = asyncio.create_task(
            self._deliver(request, result), name=f"notify-{request.asset}"
        )
        self._pending.add(task)
        task.add_done_callback(self._on_done)
        return task

    async def _deliver(self, request: SignalRequest, result: PipelineResult) -> bool:
        return await self.notifier.notify(request, result)

    def _on_done(self, task: asyncio.Task) -> None:
        self._pending.discard(task)

        if task.cancelled():
            logger.warning(f"Notification task {task.get_name()} was cancelled")
            return

        error = task.exception()
        if error is not None:
            logger.error(
                f"Notification failed (non-blocking) for {task.get_name()}: {error}",
                exc_info=error,
            )

    async def drain(self) -> None:
        """Wait for outstanding notifications (shutdown, tests)."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
