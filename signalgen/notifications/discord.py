"""Discord webhook notifier for validated signals."""

import logging
from datetime import timezone
from typing import Optional

import httpx

from ..pipeline.schemas import PipelineResult, SignalRequest, parse_timestamp
from .base import NotificationFailed, Notifier

logger = logging.getLogger(__name__)


def _format_price(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


def _format_signal_time(exact_timestamp: str) -> str:
    """Render as e.g. 'Jan 1, 2024, 01:00 AM UTC'."""
    dt = parse_timestamp(exact_timestamp)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt = dt.astimezone(timezone.utc)
    return f"{dt:%b} {dt.day}, {dt:%Y, %I:%M %p} UTC"


def format_discord_message(result: PipelineResult) -> str:
    signal = result.proposed_signal

    lines = [
        f"AI's Proposed Signal: {signal.signal_identifier}",
        f"Trade: {signal.trade_direction}",
        f"Timeframe: {signal.timeframe}",
        f"Entry Price: {_format_price(signal.entry_price)}",
        f"Stop Loss (SL): {_format_price(signal.stop_loss)}",
        f"Take Profit 1 (TP1): {_format_price(signal.take_profit_1)}",
    ]
    if signal.take_profit_2 is not None:
        lines.append(f"Take Profit 2 (TP2): {_format_price(signal.take_profit_2)}")
    lines.append(f"AI Determined Signal Time (UTC): {_format_signal_time(signal.exact_timestamp)}")
    lines.append(f"AI's Reason for Proposal:\n{signal.reason}")

    return "\n".join(lines)


class DiscordNotifier(Notifier):
    """Posts validated signals to a Discord channel webhook."""

    def __init__(
        self,
        webhook_url: Optional[str],
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.webhook_url = webhook_url
        self.timeout = timeout
        self._transport = transport

    async def notify(self, request: SignalRequest, result: PipelineResult) -> bool:
        if not self.webhook_url:
            logger.warning("DISCORD_WEBHOOK_URL is not set. Skipping Discord notification.")
            return False

        if not result.is_valid:
            logger.info("Signal not strong enough. Skipping Discord notification.")
            return False

        payload = {"content": format_discord_message(result)}

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.post(self.webhook_url, json=payload)
        except httpx.HTTPError as e:
            raise NotificationFailed(f"Discord webhook request failed: {e!r}") from e

        if response.is_error:
            raise NotificationFailed(
                f"Discord webhook returned {response.status_code}: {response.text}"
            )

        logger.info(f"Sent {request.asset} signal to Discord")
        return True
