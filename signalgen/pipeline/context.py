"""Pipeline context for carrying signal artifacts between stages."""

from typing import Any, Dict
from dataclasses import dataclass, field


@dataclass(frozen=True)
class ContextKey:
    """Named slot in the pipeline context."""

    name: str

    def __str__(self) -> str:
        return self.name


SIGNAL_REQUEST = ContextKey("signal_request")
PROPOSED_SIGNAL = ContextKey("proposed_signal")
VALIDATION_OUTCOME = ContextKey("validation_outcome")
SIGNAL_SUMMARY = ContextKey("signal_summary")


@dataclass(frozen=True)
class PipelineContext:
    """
    Immutable artifacts of one pipeline run.

    Each stage reads what earlier stages produced and returns a copy with its
    own artifact added. Concurrent runs never share a context.
    """

    _data: Dict[str, Any] = field(default_factory=dict)

    def require(self, key: ContextKey) -> Any:
        """Get an artifact a stage cannot run without."""
        if str(key) not in self._data:
            raise KeyError(f"Pipeline context is missing '{key}'")
        return self._data[str(key)]

    def set(self, key: ContextKey, value: Any) -> "PipelineContext":
        """Return a new context with the artifact stored under key."""
        return PipelineContext(_data={**self._data, str(key): value})

    def with_request(self, request: Any) -> "PipelineContext":
        return self.set(SIGNAL_REQUEST, request)
