"""Completion stage runner.

Sends one rendered instruction per stage to the completion service and
validates the raw response against the stage's output schema. There are no
retries and no caching: every call is a fresh request, and any failure is
reported as a single StageFailure.
"""

import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence

from ..providers.base import ModelResponse
from ..providers.registry import ProviderRegistry
from .errors import SchemaViolation, StageFailure
from .prompts import RENDERERS
from .schemas import DEFAULT_TIMEFRAMES, SignalModel, get_stage_schema

logger = logging.getLogger(__name__)

_FENCED_JSON = re.compile(r"```(?:json)?\s*(\{.*\})\s*```", re.DOTALL)
_BARE_JSON = re.compile(r"\{.*\}", re.DOTALL)


@dataclass(frozen=True)
class StageInstruction:
    """Everything the completion service needs for one stage call."""

    stage: str
    messages: List[Dict[str, str]]
    output_schema: Dict[str, Any]


class CompletionClient(Protocol):
    async def complete(self, instruction: StageInstruction) -> Any:
        """Return the raw response (text or mapping), or None/"" for no content."""
        ...


class CompletionService:
    """Routes stage instructions to the configured provider/model."""

    def __init__(self, registry: ProviderRegistry, stages: Mapping[str, Any]):
        self.registry = registry
        self.stages = stages

    async def query(self, instruction: StageInstruction) -> ModelResponse:
        settings = self.stages[instruction.stage]
        provider, model_name = self.registry.resolve(settings.model)

        response = await provider.query(
            messages=instruction.messages,
            model=model_name,
            temperature=settings.temperature,
            max_tokens=settings.max_tokens,
            response_format={"type": "json_object"},
        )

        if response.total_tokens is not None:
            logger.debug(
                f"Stage {instruction.stage} used {response.total_tokens} tokens ({response.model})"
            )
        return response

    async def complete(self, instruction: StageInstruction) -> Optional[str]:
        response = await self.query(instruction)
        return response.content


def extract_json(stage: str, content: str) -> str:
    """
    Pull the JSON object out of a completion.

    Accepts a fenced ```json block or the outermost {...}; nothing is repaired.

    Raises:
        SchemaViolation: if no JSON object is present
    """
    fenced = _FENCED_JSON.search(content)
    if fenced:
        return fenced.group(1)

    bare = _BARE_JSON.search(content)
    if bare:
        return bare.group(0)

    raise SchemaViolation(stage, "", "a JSON object", value=content[:200])


class CompletionStageRunner:
    """Runs a single named stage against the completion service."""

    def __init__(
        self,
        client: CompletionClient,
        timeframes: Sequence[str] = DEFAULT_TIMEFRAMES,
    ):
        self.client = client
        self.timeframes = tuple(timeframes)

    def build_instruction(self, stage: str, payload: SignalModel) -> StageInstruction:
        schema = get_stage_schema(stage)
        output_schema = schema.output_json_schema()
        messages = RENDERERS[stage](payload, output_schema, self.timeframes)
        return StageInstruction(stage=stage, messages=messages, output_schema=output_schema)

    async def run(self, stage: str, payload: SignalModel) -> SignalModel:
        """
        Run one stage.

        Args:
            stage: Stage name (generate, validate, summarize)
            payload: Input already conforming to the stage's input schema

        Returns:
            Typed output model

        Raises:
            StageFailure: on transport errors, empty content or schema violations
        """
        schema = get_stage_schema(stage)
        instruction = self.build_instruction(stage, payload)

        logger.info(f"Running stage: {stage}")
        try:
            raw = await self.client.complete(instruction)
        except Exception as e:
            logger.error(f"Stage {stage} completion call failed: {e}")
            raise StageFailure(stage, e) from e

        if raw is None or (isinstance(raw, str) and not raw.strip()):
            logger.error(f"Stage {stage} returned no content")
            raise StageFailure(stage, "completion service returned no content")

        try:
            candidate = extract_json(stage, raw) if isinstance(raw, str) else raw
            output = schema.validate(candidate, context={"timeframes": self.timeframes})
        except SchemaViolation as e:
            logger.error(f"Stage {stage} output rejected: {e}")
            raise StageFailure(stage, e) from e

        logger.info(f"Stage {stage} complete")
        return output
