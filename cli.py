#!/usr/bin/env python
"""CLI entry point for the AI trading-signal generator."""

import asyncio
import json
import os
from pathlib import Path
from typing import Optional

import click
from dotenv import load_dotenv

from signalgen.config import BACKEND_PORT, configure_logging
from signalgen.config_loader import load_signals_config
from signalgen.pipeline import PipelineVariant
from signalgen.services import build_signal_service

load_dotenv()


@click.group()
@click.option("--log-level", type=str, default=None, help="Override LOG_LEVEL")
@click.option(
    "--config", "config_path", type=click.Path(dir_okay=False), default=None,
    help="Path to signals.yaml (default: config/signals.yaml)",
)
@click.pass_context
def cli(ctx: click.Context, log_level: Optional[str], config_path: Optional[str]):
    """Signal generator - propose, validate and summarize trading signals."""
    configure_logging(log_level)
    ctx.obj = {"config_path": config_path}


@cli.command()
@click.argument("asset")
@click.argument("timestamp")
@click.option("--summary/--no-summary", default=None, help="Run the summarization stage")
@click.option(
    "--expose-validation/--gate-only", default=None,
    help="Return the full validation outcome or only the isValid gate",
)
@click.pass_context
def propose(
    ctx: click.Context,
    asset: str,
    timestamp: str,
    summary: Optional[bool],
    expose_validation: Optional[bool],
):
    """Propose and validate a signal for ASSET around TIMESTAMP (ISO-8601, UTC)."""
    signals_config = load_signals_config(ctx.obj["config_path"])
    configured = signals_config.variant
    variant = PipelineVariant(
        include_summary=configured.include_summary if summary is None else summary,
        expose_validation=(
            configured.expose_validation if expose_validation is None else expose_validation
        ),
    )

    async def run():
        service = build_signal_service(signals_config, variant=variant)
        result = await service.propose_and_validate(
            {"asset": asset, "approximateTimestamp": timestamp}
        )
        # Let a dispatched notification finish before the loop closes
        await service.close()
        return result

    result = asyncio.run(run())

    if result["success"]:
        click.echo(json.dumps(result["data"], indent=2))
        verdict = "VALID" if result["data"]["isValid"] else "NOT VALID"
        click.echo(f"\n{verdict}")
    else:
        click.echo(f"Signal generation failed: {result['error']}", err=True)
        raise SystemExit(1)


@cli.command()
@click.argument("signal_file", type=click.File("r"))
@click.pass_context
def validate(ctx: click.Context, signal_file):
    """Validate an existing signal read from a JSON file ('-' for stdin)."""
    try:
        payload = json.load(signal_file)
    except json.JSONDecodeError as e:
        raise click.BadParameter(f"not valid JSON: {e}")

    signals_config = load_signals_config(ctx.obj["config_path"])

    async def run():
        service = build_signal_service(signals_config)
        return await service.validate_signal(payload)

    result = asyncio.run(run())

    if result["success"]:
        click.echo(json.dumps(result["data"], indent=2))
    else:
        click.echo(f"Signal validation failed: {result['error']}", err=True)
        raise SystemExit(1)


@cli.command()
@click.pass_context
def timeframes(ctx: click.Context):
    """List configured signal timeframes."""
    for timeframe in load_signals_config(ctx.obj["config_path"]).timeframes:
        click.echo(timeframe)


@cli.command()
@click.pass_context
def status(ctx: click.Context):
    """Show configuration status."""
    signals_config = load_signals_config(ctx.obj["config_path"])

    click.echo("Signal Generator Status")
    click.echo("=" * 40)
    click.echo(f"Working Directory: {Path.cwd()}")
    click.echo(
        f"Variant: summary={signals_config.variant.include_summary}, "
        f"expose_validation={signals_config.variant.expose_validation}"
    )
    for name, stage in signals_config.stages.items():
        click.echo(f"  {name}: {stage.model} (temperature {stage.temperature})")

    for provider_id, provider in signals_config.providers.items():
        configured = bool(provider.api_key_env and os.getenv(provider.api_key_env))
        mark = "✓" if configured else "✗"
        state = "enabled" if provider.enabled else "disabled"
        click.echo(f"{mark} {provider_id} ({state}, key from {provider.api_key_env or '-'})")

    if os.getenv("DISCORD_WEBHOOK_URL"):
        click.echo("✓ Discord webhook configured")
    else:
        click.echo("✗ Discord webhook not configured (notifications skipped)")


@cli.command()
@click.option("--host", default="0.0.0.0")
@click.option("--port", type=int, default=BACKEND_PORT)
def serve(host: str, port: int):
    """Run the HTTP API."""
    import uvicorn

    uvicorn.run("signalgen.main:app", host=host, port=port)


if __name__ == "__main__":
    cli()
