"""Error taxonomy for the signal pipeline."""

from typing import Any


class SchemaViolation(ValueError):
    """Raised when a candidate does not satisfy a stage schema."""

    def __init__(self, stage: str, field_path: str, expected: str, value: Any = None):
        self.stage = stage
        self.field_path = field_path
        self.expected = expected
        self.value = value
        super().__init__(
            f"Output failed schema validation for stage '{stage}': "
            f"{field_path or '<root>'}: {expected}"
        )


class StageFailure(Exception):
    """A single completion stage could not produce a schema-conformant output."""

    def __init__(self, stage: str, cause: BaseException | str):
        self.stage = stage
        self.cause = cause
        super().__init__(f"Stage '{stage}' failed: {cause}")

    @property
    def is_schema_violation(self) -> bool:
        return isinstance(self.cause, SchemaViolation)


class SignalPipelineError(Exception):
    """Base class for orchestrator aborts. Exactly one is raised per failed run."""

    stage: str = ""
    message: str = "Signal pipeline failed."

    def __init__(self, failure: StageFailure):
        self.failure = failure
        super().__init__(f"{self.message} {failure}")


class GenerationFailed(SignalPipelineError):
    stage = "generate"
    message = "AI failed to generate trading signal parameters."


class ValidationFailed(SignalPipelineError):
    stage = "validate"
    message = "AI failed to validate the generated trading signal."


class SummarizationFailed(SignalPipelineError):
    stage = "summarize"
    message = "AI failed to generate the signal summary."
