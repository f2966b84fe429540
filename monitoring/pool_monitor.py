# PATH: monitoring/pool_monitor.py
"""
Pool monitor: reserve ratio drift between consecutive observations.

One state slot per (token_a, token_b) pair, keyed by lower-cased
addresses. The first poll of a pair stores its ratio and reports
"initialized"; later polls diff against the stored ratio and overwrite it.

STATE CONTRACT:
- a failed poll never touches stored state
- reads always bypass the reserves cache (use_cache=False)
- is_significant is advisory only; nothing is suppressed
"""

import asyncio
import threading
from decimal import Decimal
from typing import AsyncIterator, Optional

from chains.gateway import DataGateway
from core.constants import DEFAULT_LIQUIDITY_ALERT_PCT, MonitorStatus
from core.exceptions import InsufficientLiquidityError, PairNotFoundError
from core.logging import get_logger, log_pool_change
from core.math import percent_change, precise
from core.models import BaseToken, MonitorResult, PoolState, same_address
from core.time import now_utc
from discovery.resolver import PairResolver

logger = get_logger(__name__)

StateKey = tuple[str, str]


def _state_key(token_a: str, token_b: str) -> StateKey:
    return token_a.lower(), token_b.lower()


class PoolMonitor:
    """
    Tracks reserve ratio changes of pools across polls.

    Usage:
        monitor = PoolMonitor(gateway, resolver, wbnb, Decimal("0.1"))
        first = await monitor.poll(cake)    # initialized
        second = await monitor.poll(cake)   # updated, change vs first
    """

    def __init__(
        self,
        gateway: DataGateway,
        resolver: PairResolver,
        native_token: BaseToken,
        alert_threshold_pct: Decimal = DEFAULT_LIQUIDITY_ALERT_PCT,
    ):
        self.gateway = gateway
        self.resolver = resolver
        self.native_token = native_token
        self.alert_threshold_pct = alert_threshold_pct
        self._states: dict[StateKey, PoolState] = {}
        self._lock = threading.Lock()

    async def _resolve_counter(self, token_a: str, token_b: Optional[str]) -> str:
        if token_b is not None and not same_address(token_a, token_b):
            return token_b
        if self.native_token.matches(token_a):
            base = await self.resolver.resolve_counter_token(token_a)
            return base.address
        return self.native_token.address

    async def poll(self, token_a: str, token_b: Optional[str] = None) -> MonitorResult:
        """
        Observe the pool once and diff against the previous observation.

        Raises:
            PairNotFoundError: no pool for the pair (with suggestions)
            InsufficientLiquidityError: either reserve is zero
            UpstreamUnavailableError: RPC failure
        """
        counter = await self._resolve_counter(token_a, token_b)

        pair_address = await self.gateway.get_pair_address(token_a, counter)
        if pair_address is None:
            suggestions = await self.resolver.suggest_alternative_pairs(token_a)
            raise PairNotFoundError(
                f"No pool for {token_a} / {counter}",
                suggestions=suggestions,
                details={"token_a": token_a, "token_b": counter},
            )

        snapshot = await self.gateway.get_reserves(pair_address, token_a, counter, use_cache=False)
        if snapshot.reserve_a == 0 or snapshot.reserve_b == 0:
            raise InsufficientLiquidityError(
                f"Pool {pair_address} has an empty reserve",
                details={
                    "pair_address": pair_address,
                    "reserve_a": str(snapshot.reserve_a),
                    "reserve_b": str(snapshot.reserve_b),
                },
            )

        token_info = await self.gateway.get_token_info(token_a)
        base_info = await self.gateway.get_token_info(counter)

        with precise():
            ratio = Decimal(snapshot.reserve_b) / Decimal(snapshot.reserve_a)

        state = PoolState(
            ratio=ratio,
            reserve_a=snapshot.reserve_a,
            reserve_b=snapshot.reserve_b,
            observed_at=now_utc(),
        )
        key = _state_key(token_a, counter)

        # State is committed only once the change is computed.
        with self._lock:
            previous = self._states.get(key)
            if previous is not None:
                change = percent_change(ratio, previous.ratio)
            self._states[key] = state

        if previous is None:
            logger.info(
                f"Pool monitor initialized: {token_info.symbol}/{base_info.symbol}",
                extra={"context": {"pair_address": pair_address, "ratio": ratio}},
            )
            return MonitorResult(
                status=MonitorStatus.INITIALIZED,
                token_a=token_a,
                token_b=counter,
                token_symbol=token_info.symbol,
                base_symbol=base_info.symbol,
                current_ratio=ratio,
                current_reserve_a=snapshot.reserve_a,
                current_reserve_b=snapshot.reserve_b,
                block_timestamp=snapshot.block_timestamp,
                timestamp=state.observed_at,
            )

        significant = abs(change) > self.alert_threshold_pct

        result = MonitorResult(
            status=MonitorStatus.UPDATED,
            token_a=token_a,
            token_b=counter,
            token_symbol=token_info.symbol,
            base_symbol=base_info.symbol,
            current_ratio=ratio,
            current_reserve_a=snapshot.reserve_a,
            current_reserve_b=snapshot.reserve_b,
            block_timestamp=snapshot.block_timestamp,
            previous_ratio=previous.ratio,
            ratio_change_percentage=change,
            previous_reserve_a=previous.reserve_a,
            previous_reserve_b=previous.reserve_b,
            is_significant=significant,
            timestamp=state.observed_at,
        )
        log_pool_change(
            logger,
            result.pair_name,
            previous.ratio,
            ratio,
            change,
            significant,
            pair_address=pair_address,
        )
        return result

    async def watch(
        self,
        token_a: str,
        token_b: Optional[str] = None,
        interval_seconds: float = 10.0,
        cycles: Optional[int] = None,
    ) -> AsyncIterator[MonitorResult]:
        """
        Poll every interval_seconds, yielding each result.

        Runs forever when cycles is None. Errors propagate to the caller,
        which may resume by iterating a new watch().
        """
        done = 0
        while cycles is None or done < cycles:
            yield await self.poll(token_a, token_b)
            done += 1
            if cycles is None or done < cycles:
                await asyncio.sleep(interval_seconds)

    def snapshot(self, token_a: str, token_b: str) -> Optional[PoolState]:
        with self._lock:
            return self._states.get(_state_key(token_a, token_b))

    def forget(self, token_a: str, token_b: str) -> None:
        with self._lock:
            self._states.pop(_state_key(token_a, token_b), None)

    def reset(self) -> None:
        with self._lock:
            self._states.clear()
