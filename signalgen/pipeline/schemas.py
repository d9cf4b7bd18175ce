"""Structured contracts for every completion stage.

Each stage (``generate``, ``validate``, ``summarize``) is governed by an
input/output model pair. Completion output is untrusted: it must pass
``StageSchema.validate`` before the pipeline may use it.

Field names on the wire are camelCase; Python attributes are snake_case.
"""

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Annotated, Any, Dict, Literal, Mapping, Optional, Sequence

from pydantic import (
    AfterValidator,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    StrictBool,
    StrictStr,
    StringConstraints,
    ValidationError,
    ValidationInfo,
    field_validator,
)

from .errors import SchemaViolation


DEFAULT_TIMEFRAMES = ("1m", "5m", "15m", "30m", "1H", "2H", "4H", "1D", "1W")

TRADE_DIRECTIONS = ("BUY", "SELL")
CONFIDENCE_LEVELS = ("High", "Medium", "Low")
VALID_CONFIDENCE_LEVELS = ("High", "Medium")

TradeDirection = Literal["BUY", "SELL"]
ConfidenceLevel = Literal["High", "Medium", "Low"]


def _require_number(value: Any) -> Any:
    # bool is an int subclass; neither it nor numeric strings are accepted
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError("must be a number")
    # NaN and Infinity parse from completion JSON but have no JSON encoding
    if isinstance(value, float) and not math.isfinite(value):
        raise ValueError("must be a finite number")
    return value


def _require_iso_timestamp(value: str) -> str:
    try:
        datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        raise ValueError("must be an ISO-8601 timestamp")
    return value


Number = Annotated[float, BeforeValidator(_require_number)]
NonEmptyStr = Annotated[StrictStr, StringConstraints(strip_whitespace=True, min_length=1)]
IsoTimestamp = Annotated[StrictStr, AfterValidator(_require_iso_timestamp)]


def is_valid_confidence(confidence_level: str) -> bool:
    """The gate: only Medium and High confidence signals are valid."""
    return confidence_level in VALID_CONFIDENCE_LEVELS


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 string accepted by the schemas."""
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


class SignalModel(BaseModel):
    """Immutable base for every stage artifact."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    def to_dict(self) -> Dict[str, Any]:
        """JSON-compatible dict with camelCase keys; absent optionals are omitted."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


# ============================================================================
# generate
# ============================================================================


class SignalRequest(SignalModel):
    """Caller-supplied request for one pipeline run."""

    asset: NonEmptyStr = Field(
        description="The asset for the trading signal (e.g., AAPL or EUR/USD)."
    )
    approximate_timestamp: IsoTimestamp = Field(
        alias="approximateTimestamp",
        description="The approximate date/timestamp for the signal (UTC).",
    )


class GeneratedSignalParameters(SignalModel):
    """Signal parameters produced by the generation stage."""

    signal_identifier: StrictStr = Field(
        alias="signalIdentifier",
        description='A concise identifier for the signal (e.g., "AAPL - Momentum Surge").',
    )
    timeframe: StrictStr = Field(description="Timeframe of the trading signal.")
    trade_direction: TradeDirection = Field(
        alias="tradeDirection",
        description="BUY or SELL; BUY when TP1 is above entry, SELL when below.",
    )
    entry_price: Number = Field(alias="entryPrice", description="Entry price.")
    take_profit_1: Number = Field(alias="takeProfit1", description="First take profit price.")
    take_profit_2: Optional[Number] = Field(
        default=None,
        alias="takeProfit2",
        description="Second take profit price. Omit the field when not applicable.",
    )
    stop_loss: Number = Field(alias="stopLoss", description="Stop loss price.")
    reason: NonEmptyStr = Field(
        description="Concise reason for the signal (technical/fundamental indicators)."
    )
    exact_timestamp: IsoTimestamp = Field(
        alias="exactTimestamp",
        description="Exact signal timestamp (UTC ISO format) around the requested time.",
    )

    @field_validator("timeframe")
    @classmethod
    def _check_timeframe(cls, value: str, info: ValidationInfo) -> str:
        allowed: Sequence[str] = DEFAULT_TIMEFRAMES
        if info.context and "timeframes" in info.context:
            allowed = info.context["timeframes"]
        if value not in allowed:
            raise ValueError(f"must be one of: {', '.join(allowed)}")
        return value

    @field_validator("take_profit_2", mode="before")
    @classmethod
    def _reject_null(cls, value: Any) -> Any:
        if value is None:
            raise ValueError("must be omitted or a number, not null")
        return value


class ProposedSignal(GeneratedSignalParameters):
    """Generated parameters bound to the asset of the request that caused them."""

    asset: NonEmptyStr = Field(description="The asset for the trading signal.")

    @classmethod
    def from_generation(
        cls, request: SignalRequest, params: GeneratedSignalParameters
    ) -> "ProposedSignal":
        data = params.model_dump(exclude_unset=True)
        data["asset"] = request.asset
        return cls.model_construct(_fields_set=set(data), **data)


# ============================================================================
# validate
# ============================================================================


class ValidationOutcome(SignalModel):
    """Confidence assessment of a proposed signal."""

    confidence_level: ConfidenceLevel = Field(
        alias="confidenceLevel",
        description="High, Medium or Low, based on historical success under similar conditions.",
    )
    reasoning: StrictStr = Field(
        description="Reasoning for the assigned confidence level."
    )
    is_valid: StrictBool = Field(
        alias="isValid",
        description="True only when the confidence level is Medium or High.",
    )

    @property
    def is_consistent(self) -> bool:
        return self.is_valid == is_valid_confidence(self.confidence_level)

    def with_derived_validity(self) -> "ValidationOutcome":
        """Return an outcome whose isValid is re-derived from the confidence level."""
        if self.is_consistent:
            return self
        return self.model_copy(
            update={"is_valid": is_valid_confidence(self.confidence_level)}
        )


# ============================================================================
# summarize
# ============================================================================


class SummarizeInput(SignalModel):
    proposed_signal: ProposedSignal = Field(alias="proposedSignal")
    validation_outcome: ValidationOutcome = Field(alias="validationOutcome")


class SignalSummary(SignalModel):
    short_message: NonEmptyStr = Field(
        alias="shortMessage",
        description="A very concise (1-2 sentences) summary of the signal and its validation.",
    )


# ============================================================================
# pipeline output
# ============================================================================


class PipelineResult(SignalModel):
    """Terminal output of one pipeline run."""

    proposed_signal: ProposedSignal = Field(alias="proposedSignal")
    is_valid: StrictBool = Field(alias="isValid")
    validation_outcome: Optional[ValidationOutcome] = Field(
        default=None, alias="validationOutcome"
    )
    summary: Optional[SignalSummary] = None


# ============================================================================
# registry
# ============================================================================


def _format_loc(loc: Sequence[Any]) -> str:
    path = ""
    for part in loc:
        if isinstance(part, int):
            path += f"[{part}]"
        else:
            path += f".{part}" if path else str(part)
    return path


def schema_violation_from(stage: str, error: ValidationError) -> SchemaViolation:
    """Build a SchemaViolation describing the first failing field of ``error``."""
    first = error.errors()[0]
    return SchemaViolation(
        stage=stage,
        field_path=_format_loc(first.get("loc", ())),
        expected=first.get("msg", "invalid value"),
        value=first.get("input"),
    )


@dataclass(frozen=True)
class StageSchema:
    """Input/output contract pair for one named stage."""

    name: str
    input_model: type[SignalModel]
    output_model: type[SignalModel]

    def validate(
        self, candidate: Any, context: Optional[Mapping[str, Any]] = None
    ) -> SignalModel:
        """
        Validate a candidate against the output schema.

        Args:
            candidate: Mapping, model instance or raw JSON string
            context: Validation context (e.g. {"timeframes": [...]})

        Returns:
            Typed output model

        Raises:
            SchemaViolation: naming the first failing field path
        """
        return self._validate(self.output_model, candidate, context)

    def validate_input(
        self, candidate: Any, context: Optional[Mapping[str, Any]] = None
    ) -> SignalModel:
        return self._validate(self.input_model, candidate, context)

    def output_json_schema(self) -> Dict[str, Any]:
        return self.output_model.model_json_schema(by_alias=True)

    def _validate(
        self,
        model: type[SignalModel],
        candidate: Any,
        context: Optional[Mapping[str, Any]],
    ) -> SignalModel:
        if isinstance(candidate, BaseModel):
            candidate = candidate.model_dump(by_alias=True, exclude_unset=True)
        ctx = dict(context) if context else None
        try:
            if isinstance(candidate, (str, bytes)):
                return model.model_validate_json(candidate, context=ctx)
            return model.model_validate(candidate, context=ctx)
        except ValidationError as e:
            raise schema_violation_from(self.name, e) from e


GENERATE = "generate"
VALIDATE = "validate"
SUMMARIZE = "summarize"

SCHEMA_REGISTRY: Dict[str, StageSchema] = {
    GENERATE: StageSchema(GENERATE, SignalRequest, GeneratedSignalParameters),
    VALIDATE: StageSchema(VALIDATE, ProposedSignal, ValidationOutcome),
    SUMMARIZE: StageSchema(SUMMARIZE, SummarizeInput, SignalSummary),
}


def get_stage_schema(stage: str) -> StageSchema:
    try:
        return SCHEMA_REGISTRY[stage]
    except KeyError:
        raise ValueError(f"Unknown stage: {stage}")
