"""
core/models.py - Core data models.

Conventions:
- raw on-chain amounts (reserves, base units, total supply) are int
- rates, percentages and human amounts are Decimal
- addresses keep the caller's casing; comparisons are case-insensitive
- to_dict() renders Decimals as strings so JSON output is lossless
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from core.constants import ImpactStatus, MonitorStatus, RiskLevel, LiquidityTier
from core.math import from_base_units
from core.time import now_utc


def same_address(a: str, b: str) -> bool:
    """Case-insensitive address comparison."""
    return a.lower() == b.lower()


def _dec(value: Optional[Decimal]) -> Optional[str]:
    return None if value is None else str(value)


# ============================================================================
# TOKENS AND PAIRS
# ============================================================================

@dataclass(frozen=True)
class BaseToken:
    """High-liquidity reference asset used as a counter-token."""
    address: str
    symbol: str

    def matches(self, address: str) -> bool:
        return same_address(self.address, address)

    def to_dict(self) -> dict[str, Any]:
        return {"address": self.address, "symbol": self.symbol}


@dataclass(frozen=True)
class TokenInfo:
    """ERC20 metadata. Immutable once fetched."""
    address: str
    name: str
    symbol: str
    decimals: int
    total_supply: int

    @property
    def total_supply_human(self) -> Decimal:
        return from_base_units(self.total_supply, self.decimals)

    def to_dict(self) -> dict[str, Any]:
        return {
            "address": self.address,
            "name": self.name,
            "symbol": self.symbol,
            "decimals": self.decimals,
            "total_supply": str(self.total_supply),
        }


@dataclass(frozen=True)
class ReserveSnapshot:
    """
    Point-in-time reserves of a pair, oriented to (token_a, token_b).

    reserve0/reserve1 follow the pair contract's token0/token1 ordering;
    reserve_a/reserve_b follow the caller's ordering.
    """
    pair_address: str
    token0: str
    token1: str
    reserve0: int
    reserve1: int
    block_timestamp: int
    token_a: str = ""
    token_b: str = ""

    @property
    def a_is_token0(self) -> bool:
        return not self.token_a or same_address(self.token_a, self.token0)

    @property
    def reserve_a(self) -> int:
        return self.reserve0 if self.a_is_token0 else self.reserve1

    @property
    def reserve_b(self) -> int:
        return self.reserve1 if self.a_is_token0 else self.reserve0

    def oriented(self, token_a: str, token_b: str) -> "ReserveSnapshot":
        """Same reserves, re-oriented to another caller ordering."""
        return replace(self, token_a=token_a, token_b=token_b)

    def to_dict(self) -> dict[str, Any]:
        return {
            "pair_address": self.pair_address,
            "token0": self.token0,
            "token1": self.token1,
            "reserve0": str(self.reserve0),
            "reserve1": str(self.reserve1),
            "reserve_a": str(self.reserve_a),
            "reserve_b": str(self.reserve_b),
            "block_timestamp": self.block_timestamp,
        }


# ============================================================================
# SLIPPAGE
# ============================================================================

@dataclass(frozen=True)
class SlippageResult:
    """One constant-product quote. Never cached."""
    amount_in: int
    theoretical_amount_out: Decimal
    actual_amount_out: Decimal
    pre_trading_rate: Decimal
    effective_rate: Decimal
    post_trading_rate: Decimal
    slippage_percentage: Decimal
    rate_change_percentage: Decimal
    reserve_in: int
    reserve_out: int
    new_reserve_in: int
    new_reserve_out: Decimal
    k_before: int
    k_after: Decimal
    fee_numerator: int
    fee_denominator: int
    high_impact: bool = False
    pair_address: Optional[str] = None
    counter_token: Optional[str] = None

    @property
    def price_impact(self) -> Decimal:
        return self.slippage_percentage

    def to_dict(self) -> dict[str, Any]:
        return {
            "amount_in": str(self.amount_in),
            "theoretical_amount_out": _dec(self.theoretical_amount_out),
            "actual_amount_out": _dec(self.actual_amount_out),
            "pre_trading_rate": _dec(self.pre_trading_rate),
            "effective_rate": _dec(self.effective_rate),
            "post_trading_rate": _dec(self.post_trading_rate),
            "slippage_percentage": _dec(self.slippage_percentage),
            "price_impact": _dec(self.price_impact),
            "rate_change_percentage": _dec(self.rate_change_percentage),
            "high_impact": self.high_impact,
            "pair_address": self.pair_address,
            "counter_token": self.counter_token,
            "debug": {
                "reserve_in": str(self.reserve_in),
                "reserve_out": str(self.reserve_out),
                "new_reserve_in": str(self.new_reserve_in),
                "new_reserve_out": _dec(self.new_reserve_out),
                "k_before": str(self.k_before),
                "k_after": _dec(self.k_after),
                "fee": f"{self.fee_numerator}/{self.fee_denominator}",
            },
        }


# ============================================================================
# PRICE IMPACT
# ============================================================================

@dataclass(frozen=True)
class MarketCapInfo:
    """Spot price and market cap of a token against its counter-token."""
    token_info: TokenInfo
    base_token: BaseToken
    price: Decimal
    market_cap: Decimal
    reserves: ReserveSnapshot

    def to_dict(self) -> dict[str, Any]:
        return {
            "token": self.token_info.to_dict(),
            "base_token": self.base_token.to_dict(),
            "price": _dec(self.price),
            "market_cap": _dec(self.market_cap),
            "reserves": self.reserves.to_dict(),
        }


@dataclass
class ImpactResult:
    """Impact of selling a share of market cap."""
    market_cap_percentage: Decimal
    status: ImpactStatus = ImpactStatus.OK
    sell_amount: Optional[Decimal] = None
    sell_amount_base_units: Optional[int] = None
    sell_value: Optional[Decimal] = None
    price_impact: Optional[Decimal] = None
    actual_amount_out: Optional[Decimal] = None
    risk_level: Optional[RiskLevel] = None
    recommendation: Optional[str] = None
    error: Optional[dict[str, Any]] = None

    @property
    def is_valid(self) -> bool:
        return self.status == ImpactStatus.OK and self.price_impact is not None

    def to_dict(self) -> dict[str, Any]:
        return {
            "market_cap_percentage": _dec(self.market_cap_percentage),
            "status": self.status.value,
            "sell_amount": _dec(self.sell_amount),
            "sell_amount_base_units": (
                None if self.sell_amount_base_units is None else str(self.sell_amount_base_units)
            ),
            "sell_value": _dec(self.sell_value),
            "price_impact": _dec(self.price_impact),
            "actual_amount_out": _dec(self.actual_amount_out),
            "risk_level": self.risk_level.value if self.risk_level else None,
            "recommendation": self.recommendation,
            "error": self.error,
        }


@dataclass
class ImpactAnalysis:
    """Aggregate view over an impact run."""
    max_safe_percentage: Decimal = Decimal(0)
    average_impact: Optional[Decimal] = None
    highest_impact: Optional[Decimal] = None
    liquidity_assessment: Optional[LiquidityTier] = None
    trading_recommendation: Optional[str] = None
    error: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "max_safe_percentage": _dec(self.max_safe_percentage),
            "average_impact": _dec(self.average_impact),
            "highest_impact": _dec(self.highest_impact),
            "liquidity_assessment": (
                self.liquidity_assessment.value if self.liquidity_assessment else None
            ),
            "trading_recommendation": self.trading_recommendation,
            "error": self.error,
        }


@dataclass
class PriceImpactReport:
    market_cap_info: MarketCapInfo
    results: list[ImpactResult]
    analysis: ImpactAnalysis

    def to_dict(self) -> dict[str, Any]:
        return {
            "market_cap_info": self.market_cap_info.to_dict(),
            "results": [r.to_dict() for r in self.results],
            "analysis": self.analysis.to_dict(),
        }


# ============================================================================
# BATCH CURVE
# ============================================================================

@dataclass
class BatchEntry:
    """One amount of a batch run: either a slippage sample or an error."""
    amount: Decimal
    amount_base_units: Optional[int] = None
    slippage_percentage: Optional[Decimal] = None
    actual_amount_out: Optional[Decimal] = None
    error: Optional[dict[str, Any]] = None

    @property
    def is_valid(self) -> bool:
        return self.error is None and self.slippage_percentage is not None

    def to_dict(self) -> dict[str, Any]:
        return {
            "amount": _dec(self.amount),
            "amount_base_units": (
                None if self.amount_base_units is None else str(self.amount_base_units)
            ),
            "slippage_percentage": _dec(self.slippage_percentage),
            "actual_amount_out": _dec(self.actual_amount_out),
            "error": self.error,
        }


@dataclass(frozen=True)
class WarningPoint:
    """Adjacent pair of amounts where slippage jumps sharply."""
    previous_amount: Decimal
    amount: Decimal
    previous_slippage: Decimal
    slippage: Decimal
    jump: Decimal

    def to_dict(self) -> dict[str, Any]:
        return {
            "previous_amount": _dec(self.previous_amount),
            "amount": _dec(self.amount),
            "previous_slippage": _dec(self.previous_slippage),
            "slippage": _dec(self.slippage),
            "jump": _dec(self.jump),
        }


@dataclass(frozen=True)
class RecommendedAmount:
    """Largest tested amount under the slippage ceiling, if any."""
    amount: Optional[Decimal]
    slippage: Optional[Decimal]
    is_safe: bool
    message: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "amount": _dec(self.amount),
            "slippage": _dec(self.slippage),
            "is_safe": self.is_safe,
            "message": self.message,
        }


@dataclass
class BatchSummary:
    min_slippage: Optional[Decimal] = None
    max_slippage: Optional[Decimal] = None
    average_slippage: Optional[Decimal] = None
    total_data_points: int = 0
    warning_points: list[WarningPoint] = field(default_factory=list)
    recommended_max_amount: Optional[RecommendedAmount] = None
    error: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "min_slippage": _dec(self.min_slippage),
            "max_slippage": _dec(self.max_slippage),
            "average_slippage": _dec(self.average_slippage),
            "total_data_points": self.total_data_points,
            "warning_points": [w.to_dict() for w in self.warning_points],
            "recommended_max_amount": (
                self.recommended_max_amount.to_dict() if self.recommended_max_amount else None
            ),
            "error": self.error,
        }


@dataclass
class BatchResult:
    token_info: TokenInfo
    entries: list[BatchEntry]
    summary: BatchSummary

    def to_dict(self) -> dict[str, Any]:
        return {
            "token": self.token_info.to_dict(),
            "entries": [e.to_dict() for e in self.entries],
            "summary": self.summary.to_dict(),
        }


# ============================================================================
# POOL MONITOR
# ============================================================================

@dataclass(frozen=True)
class PoolState:
    """Most recent observation of a pool. Single slot, no history."""
    ratio: Decimal
    reserve_a: int
    reserve_b: int
    observed_at: datetime


@dataclass(frozen=True)
class MonitorResult:
    status: MonitorStatus
    token_a: str
    token_b: str
    token_symbol: str
    base_symbol: str
    current_ratio: Decimal
    current_reserve_a: int
    current_reserve_b: int
    block_timestamp: int
    previous_ratio: Optional[Decimal] = None
    ratio_change_percentage: Optional[Decimal] = None
    previous_reserve_a: Optional[int] = None
    previous_reserve_b: Optional[int] = None
    is_significant: bool = False
    timestamp: datetime = field(default_factory=now_utc)

    @property
    def pair_name(self) -> str:
        return f"{self.token_symbol}/{self.base_symbol}"

    @property
    def initial_ratio(self) -> Optional[Decimal]:
        return self.current_ratio if self.status == MonitorStatus.INITIALIZED else None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "status": self.status.value,
            "timestamp": self.timestamp.isoformat(),
            "token_address": self.token_a,
            "base_token": self.token_b,
            "pair_name": self.pair_name,
            "block_timestamp": self.block_timestamp,
        }
        if self.status == MonitorStatus.INITIALIZED:
            d["initial_ratio"] = _dec(self.current_ratio)
            return d
        d.update({
            "previous_ratio": _dec(self.previous_ratio),
            "current_ratio": _dec(self.current_ratio),
            "ratio_change_percentage": _dec(self.ratio_change_percentage),
            "previous_reserve_a": str(self.previous_reserve_a),
            "current_reserve_a": str(self.current_reserve_a),
            "previous_reserve_b": str(self.previous_reserve_b),
            "current_reserve_b": str(self.current_reserve_b),
            "is_significant": self.is_significant,
        })
        return d
