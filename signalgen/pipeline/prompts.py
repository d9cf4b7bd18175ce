"""Instruction rendering for each completion stage."""

import json
from typing import Any, Callable, Dict, List, Sequence

from .schemas import (
    GENERATE,
    SUMMARIZE,
    VALIDATE,
    DEFAULT_TIMEFRAMES,
    ProposedSignal,
    SignalRequest,
    SummarizeInput,
)


Messages = List[Dict[str, str]]

JSON_RULES = """CRITICAL: Return ONLY valid JSON matching the schema below. No markdown, no comments.
- Do NOT use trailing commas
- Numbers must be JSON numbers, not strings
- Omit optional fields that do not apply; never send null"""


def _system_message(role_description: str, output_schema: Dict[str, Any]) -> Dict[str, str]:
    return {
        "role": "system",
        "content": (
            f"{role_description}\n\n{JSON_RULES}\n\n"
            f"JSON Schema:\n{json.dumps(output_schema, indent=2)}"
        ),
    }


def _signal_lines(signal: ProposedSignal) -> str:
    lines = [
        f"Signal Identifier: {signal.signal_identifier}",
        f"Asset: {signal.asset}",
        f"Timeframe: {signal.timeframe}",
        f"Trade Direction: {signal.trade_direction}",
        f"Entry Price: {signal.entry_price}",
        f"Take Profit 1: {signal.take_profit_1}",
    ]
    if signal.take_profit_2 is not None:
        lines.append(f"Take Profit 2: {signal.take_profit_2}")
    lines.extend(
        [
            f"Stop Loss: {signal.stop_loss}",
            f"Reason: {signal.reason}",
            f"Exact Signal Timestamp (UTC): {signal.exact_timestamp}",
        ]
    )
    return "\n".join(lines)


def render_generate(
    request: SignalRequest,
    output_schema: Dict[str, Any],
    timeframes: Sequence[str] = DEFAULT_TIMEFRAMES,
) -> Messages:
    prompt = f"""Based on the asset {request.asset} and the approximate date/time {request.approximate_timestamp}, propose a promising trading signal.
You MUST determine and output the following:
1. signalIdentifier: A concise identifier for the signal (e.g., "{request.asset} - Strategy Name").
2. timeframe: The most suitable timeframe (from options: {', '.join(timeframes)}).
3. tradeDirection: "BUY" or "SELL". Generally, if your TP1 is above entry it's BUY, if below it's SELL.
4. entryPrice: A specific entry price.
5. takeProfit1: A specific first take profit level.
6. takeProfit2: An optional second take profit level. If not applicable, omit it.
7. stopLoss: A specific stop loss level.
8. reason: A concise reason for this signal (technical/fundamental indicators).
9. exactTimestamp: The exact optimal timestamp (UTC ISO format), around the approximate timestamp.

Ensure the TP/SL levels are reasonable and strategically placed. The approximate timestamp is a general guide.

Asset: {request.asset}
Approximate Timestamp: {request.approximate_timestamp}"""

    return [
        _system_message("You are an expert trading analyst.", output_schema),
        {"role": "user", "content": prompt},
    ]


def render_validate(
    signal: ProposedSignal,
    output_schema: Dict[str, Any],
    timeframes: Sequence[str] = DEFAULT_TIMEFRAMES,
) -> Messages:
    prompt = f"""Analyze the following AI-generated trading signal:
{_signal_lines(signal)}

Assess its confidence level (High, Medium, or Low) based on historical success rates under similar market conditions and the strength of indicators.
Provide detailed reasoning. The signal is valid only if the confidence level is Medium or High. Be conservative."""

    return [
        _system_message(
            "You are an AI assistant specialized in validating trading signals for financial assets.",
            output_schema,
        ),
        {"role": "user", "content": prompt},
    ]


def render_summarize(
    payload: SummarizeInput,
    output_schema: Dict[str, Any],
    timeframes: Sequence[str] = DEFAULT_TIMEFRAMES,
) -> Messages:
    signal = payload.proposed_signal
    outcome = payload.validation_outcome
    tp2 = f", TP2:{signal.take_profit_2}" if signal.take_profit_2 is not None else ""
    verdict = "Validated." if outcome.is_valid else "Not validated."

    prompt = f"""Based on the following proposed trading signal and its validation, generate a very concise (1-2 sentences) summary message.
Format: "{signal.signal_identifier}: {signal.trade_direction} @ {signal.entry_price} (TP1:{signal.take_profit_1}{tp2}, SL:{signal.stop_loss}). {outcome.confidence_level} confidence. {verdict}"

Proposed Signal:
{_signal_lines(signal)}

Validation Outcome:
Confidence Level: {outcome.confidence_level}
Reasoning: {outcome.reasoning}
Is Valid: {outcome.is_valid}

Generate the shortMessage."""

    return [
        _system_message("You summarize trading signals for busy traders.", output_schema),
        {"role": "user", "content": prompt},
    ]


RENDERERS: Dict[str, Callable[..., Messages]] = {
    GENERATE: render_generate,
    VALIDATE: render_validate,
    SUMMARIZE: render_summarize,
}
