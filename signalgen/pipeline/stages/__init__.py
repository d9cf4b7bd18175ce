"""Completion stages of the signal pipeline."""

from .generate import GenerateSignalStage
from .validate import ValidateSignalStage
from .summarize import SummarizeSignalStage

__all__ = [
    "GenerateSignalStage",
    "ValidateSignalStage",
    "SummarizeSignalStage",
]
