#!/usr/bin/env python3
"""
engine/cli.py - Command-line entrypoint for AMMSCOPE.

Usage:
    ammscope quote 0x0E09FaBB73Bd3Ade0a17ECC321fD13a19e81cE82 100
    ammscope impact 0x0E09... --advanced
    ammscope batch 0x0E09... 10 50 5000
    ammscope monitor 0x0E09... --cycles 3
    ammscope token 0x0E09...

Every command prints JSON on stdout. Errors go to stderr as
"[CODE] message" with exit status 1.
"""

import asyncio
import json
import sys
from typing import Any, Awaitable, Callable, Optional

import click

from config.settings import Settings, load_settings
from core.exceptions import AmmError, PairNotFoundError
from core.logging import get_logger, log_error, set_global_context, setup_logging
from core.math import safe_int, to_base_units
from engine.analytics import AnalyticsEngine

logger = get_logger("ammscope.cli")


def _emit(payload: Any) -> None:
    click.echo(json.dumps(payload, indent=2, default=str))


def _fail(error: AmmError) -> None:
    log_error(logger, error.code.value, error.message, details=error.details)
    click.echo(str(error), err=True)
    if isinstance(error, PairNotFoundError) and error.suggestions:
        click.echo("Pairs available against:", err=True)
        for base in error.suggestions:
            click.echo(f"  {base.symbol} {base.address}", err=True)
    sys.exit(1)


def _run(ctx: click.Context, action: Callable[[AnalyticsEngine], Awaitable[Any]]) -> None:
    """Build the engine, run one async action and print its JSON."""
    async def runner() -> Any:
        engine = ctx.obj["engine_factory"](_settings(ctx))
        async with engine:
            return await action(engine)

    try:
        _emit(asyncio.run(runner()))
    except AmmError as e:
        _fail(e)


def _settings(ctx: click.Context) -> Settings:
    if ctx.obj.get("settings") is None:
        ctx.obj["settings"] = load_settings(ctx.obj.get("config_path"))
    return ctx.obj["settings"]


@click.group()
@click.option(
    "--config",
    "config_path",
    default=None,
    type=click.Path(dir_okay=False),
    help="YAML config file (default: config/bsc.yaml)",
)
@click.option(
    "--log-level",
    "-l",
    default="WARNING",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]),
    help="Log level",
)
@click.option(
    "--json-logs/--no-json-logs",
    default=True,
    help="Use JSON log format",
)
@click.pass_context
def main(ctx: click.Context, config_path: Optional[str], log_level: str, json_logs: bool) -> None:
    """
    AMMSCOPE - constant-product pool analytics.

    Quotes slippage, price impact and liquidity drift on PancakeSwap V2 style pools.
    """
    setup_logging(level=log_level, json_output=json_logs)
    set_global_context(service="ammscope", version="0.1.0")

    ctx.ensure_object(dict)
    ctx.obj.setdefault("engine_factory", AnalyticsEngine.from_settings)
    ctx.obj["config_path"] = config_path


@main.command()
@click.argument("token")
@click.argument("amount")
@click.option("--counter", "-c", default=None, help="Counter-token address")
@click.option("--raw", is_flag=True, help="AMOUNT is already in base units")
@click.pass_context
def quote(ctx: click.Context, token: str, amount: str, counter: Optional[str], raw: bool) -> None:
    """Slippage of selling AMOUNT of TOKEN."""
    async def action(engine: AnalyticsEngine) -> dict:
        if raw:
            base_units = safe_int(amount, "amount", exact=True)
        else:
            info = await engine.token_info(token)
            base_units = to_base_units(amount, info.decimals)
        result = await engine.quote_slippage(token, base_units, counter)
        return result.to_dict()

    _run(ctx, action)


@main.command()
@click.argument("token")
@click.option(
    "--percent",
    "-p",
    "percentages",
    multiple=True,
    help="Market-cap percentage to test (repeatable)",
)
@click.option("--advanced", is_flag=True, help="Use the extended percentage set")
@click.option("--counter", "-c", default=None, help="Counter-token address")
@click.pass_context
def impact(
    ctx: click.Context,
    token: str,
    percentages: tuple[str, ...],
    advanced: bool,
    counter: Optional[str],
) -> None:
    """Price impact of selling shares of TOKEN's market cap."""
    async def action(engine: AnalyticsEngine) -> dict:
        if percentages:
            selected: Optional[list] = list(percentages)
        elif advanced:
            selected = _settings(ctx).advanced_percentages
        else:
            selected = None
        report = await engine.price_impact(token, selected, counter)
        return report.to_dict()

    _run(ctx, action)


@main.command()
@click.argument("token")
@click.argument("amounts", nargs=-1, required=True)
@click.option("--counter", "-c", default=None, help="Counter-token address")
@click.pass_context
def batch(ctx: click.Context, token: str, amounts: tuple[str, ...], counter: Optional[str]) -> None:
    """Slippage curve over AMOUNTS of TOKEN (human units)."""
    async def action(engine: AnalyticsEngine) -> dict:
        result = await engine.batch_slippage(token, list(amounts), counter)
        return result.to_dict()

    _run(ctx, action)


@main.command()
@click.argument("token")
@click.option("--counter", "-c", default=None, help="Counter-token address")
@click.option("--interval", "-i", default=None, type=float, help="Seconds between polls")
@click.option("--cycles", "-n", default=1, type=int, help="Number of polls (0 = forever)")
@click.pass_context
def monitor(
    ctx: click.Context,
    token: str,
    counter: Optional[str],
    interval: Optional[float],
    cycles: int,
) -> None:
    """Watch TOKEN's pool ratio; one JSON line per poll."""
    async def runner() -> None:
        engine = ctx.obj["engine_factory"](_settings(ctx))
        async with engine:
            async for result in engine.watch_pool(token, counter, interval, cycles or None):
                click.echo(json.dumps(result.to_dict(), default=str))

    try:
        asyncio.run(runner())
    except KeyboardInterrupt:
        logger.info("Monitor interrupted")
    except AmmError as e:
        _fail(e)


@main.command()
@click.argument("token")
@click.pass_context
def token(ctx: click.Context, token: str) -> None:
    """ERC20 metadata of TOKEN."""
    async def action(engine: AnalyticsEngine) -> dict:
        info = await engine.token_info(token)
        return info.to_dict()

    _run(ctx, action)


@main.command("cache-stats")
@click.argument("tokens", nargs=-1)
@click.option("--live", is_flag=True, help="Count only unexpired entries")
@click.pass_context
def cache_stats(ctx: click.Context, tokens: tuple[str, ...], live: bool) -> None:
    """Cache entry counts after resolving TOKENS' market cap info."""
    async def action(engine: AnalyticsEngine) -> dict:
        for address in tokens:
            await engine.market_cap_info(address)
        return engine.cache_stats(live=live)

    _run(ctx, action)


if __name__ == "__main__":
    main()
