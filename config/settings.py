"""
config/settings.py - Typed settings from YAML plus environment overrides.

Resolution order (later wins):
1. config/bsc.yaml (or the file passed to load_settings)
2. .env file, loaded with python-dotenv
3. process environment

Environment keys:
    BSC_RPC_URL              single RPC URL, tried before the YAML list
    RPC_TIMEOUT_SECONDS
    FACTORY_ADDRESS
    FEE_NUMERATOR / FEE_DENOMINATOR
    LIQUIDITY_RATE           alert threshold in percent
    MARKET_CAP_PERCENTAGE_1 / MARKET_CAP_PERCENTAGE_2
    MONITORING_INTERVAL      milliseconds
"""

import os
import re
from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml
from dotenv import load_dotenv

from config import DEFAULT_CONFIG_FILE, load_yaml
from core.constants import (
    CacheCategory,
    DEFAULT_ADVANCED_PERCENTAGES,
    DEFAULT_CACHE_TTLS,
    DEFAULT_FEE_DENOMINATOR,
    DEFAULT_FEE_NUMERATOR,
    DEFAULT_LIQUIDITY_ALERT_PCT,
    DEFAULT_MARKET_CAP_PERCENTAGES,
    DEFAULT_MONITOR_INTERVAL_SECONDS,
    DEFAULT_RPC_TIMEOUT_SECONDS,
)
from core.exceptions import AmmError, ConfigError
from core.logging import get_logger
from core.math import safe_decimal
from core.models import BaseToken

logger = get_logger(__name__)

_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")


@dataclass(frozen=True)
class Settings:
    """Runtime configuration of the analytics engine."""
    chain_id: int
    rpc_urls: list[str]
    factory_address: str
    native_token: BaseToken
    base_tokens: list[BaseToken]
    router_address: Optional[str] = None
    rpc_timeout_seconds: float = DEFAULT_RPC_TIMEOUT_SECONDS
    fee_numerator: int = DEFAULT_FEE_NUMERATOR
    fee_denominator: int = DEFAULT_FEE_DENOMINATOR
    cache_ttls: dict[CacheCategory, float] = field(
        default_factory=lambda: dict(DEFAULT_CACHE_TTLS)
    )
    liquidity_rate: Decimal = DEFAULT_LIQUIDITY_ALERT_PCT
    market_cap_percentages: list[Decimal] = field(
        default_factory=lambda: list(DEFAULT_MARKET_CAP_PERCENTAGES)
    )
    advanced_percentages: list[Decimal] = field(
        default_factory=lambda: list(DEFAULT_ADVANCED_PERCENTAGES)
    )
    monitor_interval_seconds: float = DEFAULT_MONITOR_INTERVAL_SECONDS


def _address(value: Any, field_name: str) -> str:
    if not isinstance(value, str) or not _ADDRESS_RE.match(value):
        raise ConfigError(
            f"Invalid address for {field_name}: {value!r}",
            details={"field": field_name},
        )
    return value


def _decimal(value: Any, field_name: str) -> Decimal:
    # YAML hands back floats for unquoted numbers; read them by their text
    try:
        return safe_decimal(str(value) if isinstance(value, float) else value, field_name)
    except AmmError as e:
        raise ConfigError(e.message, details={"field": field_name})


def _int(value: Any, field_name: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ConfigError(
            f"Invalid integer for {field_name}: {value!r}",
            details={"field": field_name},
        )


def _base_token(raw: Any, field_name: str) -> BaseToken:
    if not isinstance(raw, dict) or "address" not in raw or "symbol" not in raw:
        raise ConfigError(
            f"{field_name} needs address and symbol",
            details={"field": field_name},
        )
    return BaseToken(address=_address(raw["address"], field_name), symbol=str(raw["symbol"]))


def load_settings(
    path: Optional[str | Path] = None,
    environ: Optional[Mapping[str, str]] = None,
    env_file: Optional[str | Path] = None,
) -> Settings:
    """
    Build Settings from YAML and the environment.

    Args:
        path: YAML file (default config/bsc.yaml)
        environ: Explicit environment mapping; skips .env loading when given
        env_file: .env file for python-dotenv (default: search upwards)

    Raises:
        ConfigError: missing or invalid values
    """
    try:
        raw = load_yaml(path or DEFAULT_CONFIG_FILE)
    except FileNotFoundError as e:
        raise ConfigError(str(e))
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML: {e}")

    if environ is None:
        load_dotenv(env_file)
        environ = os.environ

    chain = raw.get("chain") or {}
    dex = raw.get("dex") or {}
    analytics = raw.get("analytics") or {}

    rpc_urls = list(chain.get("rpc_urls") or [])
    if environ.get("BSC_RPC_URL"):
        rpc_urls = [environ["BSC_RPC_URL"]] + [u for u in rpc_urls if u != environ["BSC_RPC_URL"]]
    if not rpc_urls:
        raise ConfigError("No RPC URLs configured", details={"field": "chain.rpc_urls"})

    if "native_token" not in raw:
        raise ConfigError("native_token is required", details={"field": "native_token"})
    native = _base_token(raw["native_token"], "native_token")

    base_tokens = [
        _base_token(item, f"base_tokens[{i}]")
        for i, item in enumerate(raw.get("base_tokens") or [])
    ]
    if not base_tokens:
        raise ConfigError("At least one base token is required", details={"field": "base_tokens"})

    ttls = dict(DEFAULT_CACHE_TTLS)
    for name, seconds in (raw.get("cache_ttl_seconds") or {}).items():
        try:
            category = CacheCategory(name)
        except ValueError:
            raise ConfigError(f"Unknown cache category: {name}", details={"field": "cache_ttl_seconds"})
        ttls[category] = float(_decimal(seconds, f"cache_ttl_seconds.{name}"))

    percentages = [
        _decimal(p, "analytics.market_cap_percentages")
        for p in analytics.get("market_cap_percentages", DEFAULT_MARKET_CAP_PERCENTAGES)
    ]
    for index, key in enumerate(("MARKET_CAP_PERCENTAGE_1", "MARKET_CAP_PERCENTAGE_2")):
        if environ.get(key):
            value = _decimal(environ[key], key)
            if index < len(percentages):
                percentages[index] = value
            else:
                percentages.append(value)

    interval = _decimal(
        analytics.get("monitor_interval_seconds", DEFAULT_MONITOR_INTERVAL_SECONDS),
        "analytics.monitor_interval_seconds",
    )
    if environ.get("MONITORING_INTERVAL"):
        interval = _decimal(environ["MONITORING_INTERVAL"], "MONITORING_INTERVAL") / 1000
    if interval <= 0:
        raise ConfigError("Monitor interval must be positive", details={"value": str(interval)})

    settings = Settings(
        chain_id=_int(chain.get("chain_id", 56), "chain.chain_id"),
        rpc_urls=rpc_urls,
        rpc_timeout_seconds=float(_decimal(
            environ.get("RPC_TIMEOUT_SECONDS") or chain.get("rpc_timeout_seconds", DEFAULT_RPC_TIMEOUT_SECONDS),
            "rpc_timeout_seconds",
        )),
        factory_address=_address(
            environ.get("FACTORY_ADDRESS") or dex.get("factory"), "dex.factory"
        ),
        router_address=dex.get("router"),
        fee_numerator=_int(
            environ.get("FEE_NUMERATOR") or dex.get("fee_numerator", DEFAULT_FEE_NUMERATOR),
            "dex.fee_numerator",
        ),
        fee_denominator=_int(
            environ.get("FEE_DENOMINATOR") or dex.get("fee_denominator", DEFAULT_FEE_DENOMINATOR),
            "dex.fee_denominator",
        ),
        native_token=native,
        base_tokens=base_tokens,
        cache_ttls=ttls,
        liquidity_rate=_decimal(
            environ.get("LIQUIDITY_RATE") or analytics.get("liquidity_rate", DEFAULT_LIQUIDITY_ALERT_PCT),
            "LIQUIDITY_RATE",
        ),
        market_cap_percentages=percentages,
        advanced_percentages=[
            _decimal(p, "analytics.advanced_percentages")
            for p in analytics.get("advanced_percentages", DEFAULT_ADVANCED_PERCENTAGES)
        ],
        monitor_interval_seconds=float(interval),
    )

    if not 0 < settings.fee_numerator < settings.fee_denominator:
        raise ConfigError(
            f"Invalid fee {settings.fee_numerator}/{settings.fee_denominator}",
            details={"field": "dex.fee_numerator"},
        )

    logger.debug(
        "Settings loaded",
        extra={"context": {
            "chain_id": settings.chain_id,
            "rpc_endpoints": len(settings.rpc_urls),
            "base_tokens": [b.symbol for b in settings.base_tokens],
        }},
    )
    return settings
