"""Test helper utilities for signal generator tests.

This module provides:
- A scripted completion client that records every instruction
- A recording notifier
"""

import json
from typing import Any, Dict, List

from signalgen.notifications import Notifier
from signalgen.pipeline import StageInstruction


class ScriptedCompletionClient:
    """Answers each stage from a script.

    Script values may be a dict (sent as JSON text), a raw string, None, or an
    exception instance to raise.
    """

    def __init__(self, script: Dict[str, Any]):
        self.script = dict(script)
        self.instructions: List[StageInstruction] = []

    async def complete(self, instruction: StageInstruction) -> Any:
        self.instructions.append(instruction)
        response = self.script[instruction.stage]
        if isinstance(response, BaseException):
            raise response
        if isinstance(response, dict):
            return json.dumps(response)
        return response

    def calls(self, stage: str) -> List[StageInstruction]:
        return [i for i in self.instructions if i.stage == stage]

    @property
    def stages_called(self) -> List[str]:
        return [i.stage for i in self.instructions]


class RecordingNotifier(Notifier):
    """Records deliveries; optionally raises on every call."""

    def __init__(self, error: Exception | None = None):
        self.error = error
        self.calls: List[tuple] = []

    async def notify(self, request, result) -> bool:
        self.calls.append((request, result))
        if self.error is not None:
            raise self.error
        return True
