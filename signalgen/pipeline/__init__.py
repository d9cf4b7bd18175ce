"""Staged completion pipeline for trading-signal proposals.

This module provides a pipeline abstraction where:
- Each Stage is independent with a declared input/output schema pair
- PipelineContext carries immutable state between stages
- SignalPipeline sequences generate -> validate -> (summarize)
"""

from .base import Stage, Pipeline
from .context import PipelineContext, ContextKey
from .errors import (
    SchemaViolation,
    StageFailure,
    SignalPipelineError,
    GenerationFailed,
    ValidationFailed,
    SummarizationFailed,
)
from .runner import CompletionService, CompletionStageRunner, StageInstruction
from .signal_pipeline import PipelineVariant, SignalPipeline

__all__ = [
    "Stage",
    "Pipeline",
    "PipelineContext",
    "ContextKey",
    "SchemaViolation",
    "StageFailure",
    "SignalPipelineError",
    "GenerationFailed",
    "ValidationFailed",
    "SummarizationFailed",
    "CompletionService",
    "CompletionStageRunner",
    "StageInstruction",
    "PipelineVariant",
    "SignalPipeline",
]
