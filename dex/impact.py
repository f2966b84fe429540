"""
dex/impact.py - Price impact of selling a share of market cap.

For each market-cap percentage p the analyzer converts p into a sell
amount, quotes it through the caller-supplied quote function and classifies
the resulting impact. A failing percentage is recorded as an error entry;
the rest of the run continues.
"""

from decimal import Decimal, ROUND_FLOOR
from typing import Awaitable, Callable, Iterable

from core.constants import (
    ImpactStatus,
    LIQUIDITY_HIGH_BELOW_PCT,
    LIQUIDITY_LOW_BELOW_PCT,
    LIQUIDITY_MODERATE_BELOW_PCT,
    LiquidityTier,
    MODERATE_SHARE_FOR_BATCHING,
    RISK_HIGH_BELOW_PCT,
    RISK_LOW_BELOW_PCT,
    RISK_MODERATE_BELOW_PCT,
    RiskLevel,
    SAFE_IMPACT_BELOW_PCT,
    SAFE_SHARE_FOR_NORMAL_TRADING,
)
from core.exceptions import AmmError, InvalidInputError
from core.logging import get_logger
from core.math import HUNDRED, mean, precise, require_positive
from core.models import ImpactAnalysis, ImpactResult, SlippageResult, TokenInfo

logger = get_logger(__name__)

QuoteFn = Callable[[int], Awaitable[SlippageResult]]

RECOMMENDATIONS = {
    RiskLevel.LOW: "Low impact - safe to trade",
    RiskLevel.MODERATE: "Moderate impact - consider splitting the order",
    RiskLevel.HIGH: "High impact - trade in smaller batches",
    RiskLevel.EXTREME: "Extreme impact - avoid or use another pool",
}

TRADING_NORMAL = "Suitable for normal trading"
TRADING_BATCHES = "Trade in batches to limit impact"
TRADING_CAUTION = "Use caution - consider an alternate pair"


def assess_risk_level(impact: Decimal) -> RiskLevel:
    """<1 low, <3 moderate, <10 high, else extreme."""
    if impact < RISK_LOW_BELOW_PCT:
        return RiskLevel.LOW
    if impact < RISK_MODERATE_BELOW_PCT:
        return RiskLevel.MODERATE
    if impact < RISK_HIGH_BELOW_PCT:
        return RiskLevel.HIGH
    return RiskLevel.EXTREME


def recommendation_for(impact: Decimal) -> str:
    return RECOMMENDATIONS[assess_risk_level(impact)]


def assess_liquidity(average_impact: Decimal) -> LiquidityTier:
    """Pool depth from the mean impact: <2 high, <5 moderate, <15 low."""
    if average_impact < LIQUIDITY_HIGH_BELOW_PCT:
        return LiquidityTier.HIGH
    if average_impact < LIQUIDITY_MODERATE_BELOW_PCT:
        return LiquidityTier.MODERATE
    if average_impact < LIQUIDITY_LOW_BELOW_PCT:
        return LiquidityTier.LOW
    return LiquidityTier.VERY_LOW


def _parse_percentage(value) -> Decimal:
    pct = require_positive(value, "market_cap_percentage")
    if pct > HUNDRED:
        raise InvalidInputError(
            f"Market-cap percentage must be in (0, 100], got {value}",
            details={"market_cap_percentage": str(value)},
        )
    return pct


class PriceImpactAnalyzer:
    """Sell-side impact across a set of market-cap percentages."""

    async def analyze(
        self,
        token_info: TokenInfo,
        current_price: Decimal,
        percentages: Iterable,
        quote: QuoteFn,
    ) -> list[ImpactResult]:
        results = []
        for raw_pct in percentages:
            results.append(await self._analyze_one(token_info, current_price, raw_pct, quote))
        return results

    async def _analyze_one(
        self,
        token_info: TokenInfo,
        current_price: Decimal,
        raw_pct,
        quote: QuoteFn,
    ) -> ImpactResult:
        try:
            pct = _parse_percentage(raw_pct)
        except AmmError as e:
            return ImpactResult(
                market_cap_percentage=Decimal(0),
                status=ImpactStatus.ERROR,
                error=e.to_dict(),
            )

        try:
            price = require_positive(current_price, "current_price")
            with precise():
                sell_value = token_info.total_supply_human * price * pct / HUNDRED
                sell_amount = sell_value / price
                base_units = int(
                    (sell_amount * (Decimal(10) ** token_info.decimals))
                    .to_integral_value(rounding=ROUND_FLOOR)
                )
        except AmmError as e:
            return ImpactResult(
                market_cap_percentage=pct,
                status=ImpactStatus.ERROR,
                error=e.to_dict(),
            )

        if base_units < 1:
            return ImpactResult(
                market_cap_percentage=pct,
                status=ImpactStatus.AMOUNT_TOO_SMALL,
                sell_amount=sell_amount,
                sell_amount_base_units=base_units,
                sell_value=sell_value,
            )

        try:
            result = await quote(base_units)
        except AmmError as e:
            logger.warning(
                f"Impact quote failed at {pct}% of market cap: {e.message}",
                extra={"context": {
                    "token": token_info.address,
                    "error_code": e.code.value,
                }},
            )
            return ImpactResult(
                market_cap_percentage=pct,
                status=ImpactStatus.ERROR,
                sell_amount=sell_amount,
                sell_amount_base_units=base_units,
                sell_value=sell_value,
                error=e.to_dict(),
            )

        impact = result.slippage_percentage
        return ImpactResult(
            market_cap_percentage=pct,
            sell_amount=sell_amount,
            sell_amount_base_units=base_units,
            sell_value=sell_value,
            price_impact=impact,
            actual_amount_out=result.actual_amount_out,
            risk_level=assess_risk_level(impact),
            recommendation=recommendation_for(impact),
        )

    def summarize(self, results: list[ImpactResult]) -> ImpactAnalysis:
        """Aggregate statistics over the valid entries of a run."""
        valid = [r for r in results if r.is_valid]
        if not valid:
            return ImpactAnalysis(error="no valid impact data")

        impacts = [r.price_impact for r in valid]
        safe = [r for r in valid if r.price_impact < SAFE_IMPACT_BELOW_PCT]
        moderate = [
            r for r in valid
            if SAFE_IMPACT_BELOW_PCT <= r.price_impact < RISK_HIGH_BELOW_PCT
        ]

        average = mean(impacts)
        with precise():
            total = Decimal(len(valid))
            safe_share = Decimal(len(safe)) / total
            moderate_share = Decimal(len(moderate)) / total

        if safe_share >= SAFE_SHARE_FOR_NORMAL_TRADING:
            trading = TRADING_NORMAL
        elif moderate_share >= MODERATE_SHARE_FOR_BATCHING:
            trading = TRADING_BATCHES
        else:
            trading = TRADING_CAUTION

        return ImpactAnalysis(
            max_safe_percentage=max(
                (r.market_cap_percentage for r in safe), default=Decimal(0)
            ),
            average_impact=average,
            highest_impact=max(impacts),
            liquidity_assessment=assess_liquidity(average),
            trading_recommendation=trading,
        )
