"""Stage and Pipeline primitives for the signal workflow."""

from abc import ABC, abstractmethod
from typing import List, Sequence

from .context import PipelineContext


class Stage(ABC):
    """One completion step. Receives a context and returns a new one."""

    @property
    @abstractmethod
    def name(self) -> str:
        pass

    @abstractmethod
    async def execute(self, context: PipelineContext) -> PipelineContext:
        """
        Run the step.

        Raises:
            SignalPipelineError: subclass naming this stage, on any failure
        """
        pass


class Pipeline:
    """Runs stages in order; the first raised error ends the run."""

    def __init__(self, stages: Sequence[Stage]):
        self.stages = tuple(stages)

    async def execute(self, context: PipelineContext) -> PipelineContext:
        for stage in self.stages:
            context = await stage.execute(context)
        return context

    @property
    def stage_names(self) -> List[str]:
        return [stage.name for stage in self.stages]

    def __repr__(self) -> str:
        return f"Pipeline({' -> '.join(self.stage_names)})"
