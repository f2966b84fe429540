"""
engine/analytics.py - AnalyticsEngine facade.

Owns the cache, gateway, resolver, analyzers and pool monitor as explicit
instance state. Every public operation resolves the counter-token, reads
reserves through the gateway and hands them to the pure analytics code.

Usage:
    settings = load_settings()
    async with AnalyticsEngine.from_settings(settings) as engine:
        result = await engine.quote_slippage(cake, 10**18)
"""

from dataclasses import replace
from decimal import Decimal
from typing import AsyncIterator, Iterable, Optional

import httpx

from chains.cache import TTLCache
from chains.gateway import DataGateway, RPCDataGateway
from chains.providers import RPCProvider
from config.settings import Settings
from core.constants import (
    DEFAULT_LIQUIDITY_ALERT_PCT,
    DEFAULT_MARKET_CAP_PERCENTAGES,
    DEFAULT_MONITOR_INTERVAL_SECONDS,
)
from core.exceptions import InsufficientLiquidityError, PairNotFoundError
from core.logging import get_logger, log_quote
from core.math import precise
from core.models import (
    BaseToken,
    BatchResult,
    MarketCapInfo,
    MonitorResult,
    PriceImpactReport,
    SlippageResult,
    TokenInfo,
)
from dex.batch import BatchAnalyzer
from dex.impact import PriceImpactAnalyzer
from dex.slippage import FeeConfig, SlippageEngine
from discovery.resolver import PairResolver
from monitoring.pool_monitor import PoolMonitor

logger = get_logger(__name__)


class AnalyticsEngine:
    """External interface of the AMM analytics engine."""

    def __init__(
        self,
        gateway: DataGateway,
        base_tokens: list[BaseToken],
        native_token: BaseToken,
        fee: Optional[FeeConfig] = None,
        cache: Optional[TTLCache] = None,
        liquidity_rate: Decimal = DEFAULT_LIQUIDITY_ALERT_PCT,
        market_cap_percentages: Optional[list[Decimal]] = None,
        monitor_interval_seconds: float = DEFAULT_MONITOR_INTERVAL_SECONDS,
        provider: Optional[RPCProvider] = None,
    ):
        self.gateway = gateway
        self.cache = cache if cache is not None else getattr(gateway, "cache", None) or TTLCache()
        self.provider = provider
        self.native_token = native_token
        self.market_cap_percentages = list(market_cap_percentages or DEFAULT_MARKET_CAP_PERCENTAGES)
        self.monitor_interval_seconds = monitor_interval_seconds

        self.resolver = PairResolver(gateway, base_tokens)
        self.slippage = SlippageEngine(fee or FeeConfig())
        self.impact = PriceImpactAnalyzer()
        self.batch = BatchAnalyzer()
        self.monitor = PoolMonitor(gateway, self.resolver, native_token, liquidity_rate)

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        client: Optional[httpx.AsyncClient] = None,
    ) -> "AnalyticsEngine":
        """Wire an RPC-backed engine from loaded settings."""
        provider = RPCProvider(
            chain_id=settings.chain_id,
            rpc_urls=settings.rpc_urls,
            timeout_seconds=settings.rpc_timeout_seconds,
            client=client,
        )
        cache = TTLCache(settings.cache_ttls)
        gateway = RPCDataGateway(provider, settings.factory_address, cache)
        return cls(
            gateway=gateway,
            base_tokens=settings.base_tokens,
            native_token=settings.native_token,
            fee=FeeConfig(settings.fee_numerator, settings.fee_denominator),
            cache=cache,
            liquidity_rate=settings.liquidity_rate,
            market_cap_percentages=settings.market_cap_percentages,
            monitor_interval_seconds=settings.monitor_interval_seconds,
            provider=provider,
        )

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def close(self) -> None:
        if self.provider is not None:
            await self.provider.close()

    async def __aenter__(self) -> "AnalyticsEngine":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    # -------------------------------------------------------------------------
    # Pool resolution
    # -------------------------------------------------------------------------

    async def _resolve_pool(
        self,
        token_in: str,
        counter_token: Optional[str],
    ) -> tuple[BaseToken, str]:
        counter = await self.resolver.resolve_counter_token(token_in, counter_token)
        pair_address = await self.gateway.get_pair_address(token_in, counter.address)
        if pair_address is None:
            suggestions = await self.resolver.suggest_alternative_pairs(token_in)
            raise PairNotFoundError(
                f"No pool for {token_in} / {counter.symbol}",
                suggestions=suggestions,
                details={"token_in": token_in, "counter_token": counter.address},
            )
        return counter, pair_address

    async def _quote_on_pool(
        self,
        token_in: str,
        counter: BaseToken,
        pair_address: str,
        amount_base_units: int,
    ) -> SlippageResult:
        snapshot = await self.gateway.get_reserves(pair_address, token_in, counter.address)
        result = self.slippage.quote(snapshot.reserve_a, snapshot.reserve_b, amount_base_units)
        result = replace(result, pair_address=pair_address, counter_token=counter.address)
        log_quote(
            logger,
            pair_address,
            result.amount_in,
            result.actual_amount_out,
            result.slippage_percentage,
            counter=counter.symbol,
        )
        return result

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    async def token_info(self, token: str) -> TokenInfo:
        return await self.gateway.get_token_info(token)

    async def quote_slippage(
        self,
        token_in: str,
        amount_base_units: int,
        counter_token: Optional[str] = None,
    ) -> SlippageResult:
        """Quote selling amount_base_units of token_in into its counter-token."""
        counter, pair_address = await self._resolve_pool(token_in, counter_token)
        return await self._quote_on_pool(token_in, counter, pair_address, amount_base_units)

    async def market_cap_info(
        self,
        token_in: str,
        counter_token: Optional[str] = None,
    ) -> MarketCapInfo:
        """
        Spot price (counter-token per token, decimals applied) and market cap.

        Raises:
            InsufficientLiquidityError: the pool holds none of token_in
        """
        counter, pair_address = await self._resolve_pool(token_in, counter_token)
        token_info = await self.gateway.get_token_info(token_in)
        counter_info = await self.gateway.get_token_info(counter.address)
        snapshot = await self.gateway.get_reserves(pair_address, token_in, counter.address)

        if snapshot.reserve_a == 0:
            raise InsufficientLiquidityError(
                f"Pool {pair_address} has no {token_info.symbol} reserve",
                details={"pair_address": pair_address},
            )

        with precise():
            price = (
                Decimal(snapshot.reserve_b) / (Decimal(10) ** counter_info.decimals)
            ) / (
                Decimal(snapshot.reserve_a) / (Decimal(10) ** token_info.decimals)
            )
            market_cap = token_info.total_supply_human * price

        return MarketCapInfo(
            token_info=token_info,
            base_token=BaseToken(address=counter.address, symbol=counter_info.symbol),
            price=price,
            market_cap=market_cap,
            reserves=snapshot,
        )

    async def price_impact(
        self,
        token_in: str,
        percentages: Optional[Iterable] = None,
        counter_token: Optional[str] = None,
    ) -> PriceImpactReport:
        """Impact of selling each market-cap percentage (default: configured set)."""
        info = await self.market_cap_info(token_in, counter_token)
        pair_address = info.reserves.pair_address

        async def quote(amount_base_units: int) -> SlippageResult:
            return await self._quote_on_pool(token_in, info.base_token, pair_address, amount_base_units)

        results = await self.impact.analyze(
            info.token_info,
            info.price,
            self.market_cap_percentages if percentages is None else percentages,
            quote,
        )
        return PriceImpactReport(
            market_cap_info=info,
            results=results,
            analysis=self.impact.summarize(results),
        )

    async def batch_slippage(
        self,
        token_in: str,
        amounts: Iterable,
        counter_token: Optional[str] = None,
    ) -> BatchResult:
        """Slippage curve over human-unit amounts of token_in."""
        counter, pair_address = await self._resolve_pool(token_in, counter_token)
        token_info = await self.gateway.get_token_info(token_in)

        async def quote(amount_base_units: int) -> SlippageResult:
            return await self._quote_on_pool(token_in, counter, pair_address, amount_base_units)

        return await self.batch.analyze_batch(token_info, amounts, quote)

    async def poll_pool(
        self,
        token_in: str,
        counter_token: Optional[str] = None,
    ) -> MonitorResult:
        return await self.monitor.poll(token_in, counter_token)

    async def watch_pool(
        self,
        token_in: str,
        counter_token: Optional[str] = None,
        interval_seconds: Optional[float] = None,
        cycles: Optional[int] = None,
    ) -> AsyncIterator[MonitorResult]:
        interval = self.monitor_interval_seconds if interval_seconds is None else interval_seconds
        async for result in self.monitor.watch(token_in, counter_token, interval, cycles):
            yield result

    # -------------------------------------------------------------------------
    # Cache
    # -------------------------------------------------------------------------

    def clear_cache(self) -> None:
        self.cache.clear()

    def cache_stats(self, live: bool = False) -> dict[str, int]:
        """Entries per category; live=True leaves out expired ones."""
        return self.cache.live_stats() if live else self.cache.stats()
