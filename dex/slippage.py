"""
dex/slippage.py - Constant-product (x*y=k) slippage engine.

Pure functions over supplied reserves. No RPC, no caching: reserves are
volatile and every quote is recomputed.

Formulas (fee f = fee_numerator / fee_denominator):

    pre        = reserve_out / reserve_in
    actual     = amount_in*fee_num*reserve_out / (reserve_in*fee_den + amount_in*fee_num)
    theoretical= amount_in * pre * f
    impact     = max(0, (theoretical - actual) / theoretical * 100)
    post       = (reserve_out - actual) / (reserve_in + amount_in)
    effective  = actual / amount_in

All arithmetic is Decimal at MATH_PRECISION significant digits.
"""

from dataclasses import dataclass
from decimal import Decimal

from core.constants import (
    DEFAULT_FEE_DENOMINATOR,
    DEFAULT_FEE_NUMERATOR,
    HIGH_IMPACT_RESERVE_SHARE,
)
from core.exceptions import (
    InsufficientLiquidityError,
    InvalidInputError,
    InvariantViolationError,
)
from core.logging import get_logger
from core.math import HUNDRED, precise, safe_int
from core.models import SlippageResult

logger = get_logger(__name__)


@dataclass(frozen=True)
class FeeConfig:
    """Proportional swap fee as numerator/denominator (0.25% = 9975/10000)."""
    numerator: int = DEFAULT_FEE_NUMERATOR
    denominator: int = DEFAULT_FEE_DENOMINATOR

    def __post_init__(self):
        validate_fee(self.numerator, self.denominator)


def validate_fee(numerator: int, denominator: int) -> None:
    """A constant-product fee must satisfy 0 < numerator < denominator."""
    if isinstance(numerator, bool) or isinstance(denominator, bool):
        raise InvalidInputError("Fee must be integers")
    if not isinstance(numerator, int) or not isinstance(denominator, int):
        raise InvalidInputError(
            "Fee numerator/denominator must be int",
            details={"numerator": str(numerator), "denominator": str(denominator)},
        )
    if not 0 < numerator < denominator:
        raise InvalidInputError(
            f"Invalid fee {numerator}/{denominator}: need 0 < numerator < denominator",
            details={"numerator": numerator, "denominator": denominator},
        )


def _parse_amount(amount_in: int | str | Decimal) -> int:
    amount = safe_int(amount_in, "amount_in")
    if amount <= 0:
        raise InvalidInputError(
            f"amount_in must be positive, got {amount_in}",
            details={"amount_in": str(amount_in)},
        )
    return amount


def _parse_reserve(reserve: int | str | Decimal, field: str) -> int:
    try:
        value = safe_int(reserve, field)
    except InvalidInputError as e:
        raise InsufficientLiquidityError(e.message, details=e.details)
    if value <= 0:
        raise InsufficientLiquidityError(
            f"{field} must be positive, got {reserve}",
            details={field: str(reserve)},
        )
    return value


def get_amount_out(
    amount_in: int,
    reserve_in: int,
    reserve_out: int,
    fee_numerator: int = DEFAULT_FEE_NUMERATOR,
    fee_denominator: int = DEFAULT_FEE_DENOMINATOR,
) -> int:
    """
    Integer output exactly as the on-chain router computes it (floored).

    Useful to cross-check a quote against router.getAmountsOut.
    """
    amount = _parse_amount(amount_in)
    r_in = _parse_reserve(reserve_in, "reserve_in")
    r_out = _parse_reserve(reserve_out, "reserve_out")
    validate_fee(fee_numerator, fee_denominator)

    amount_in_with_fee = amount * fee_numerator
    return (amount_in_with_fee * r_out) // (r_in * fee_denominator + amount_in_with_fee)


class SlippageEngine:
    """
    Quote engine for constant-product pools.

    Usage:
        engine = SlippageEngine(FeeConfig(9975, 10000))
        result = engine.quote(reserve_in, reserve_out, amount_in)
    """

    def __init__(self, fee: FeeConfig | None = None):
        self.fee = fee or FeeConfig()

    def quote(
        self,
        reserve_in: int | str | Decimal,
        reserve_out: int | str | Decimal,
        amount_in: int | str | Decimal,
        fee_numerator: int | None = None,
        fee_denominator: int | None = None,
    ) -> SlippageResult:
        """
        Quote selling amount_in against (reserve_in, reserve_out).

        Raises:
            InvalidInputError: amount_in <= 0 or a bad fee
            InsufficientLiquidityError: reserve <= 0 or zero denominator
            InvariantViolationError: result breaks x*y=k invariants
        """
        fee_num = self.fee.numerator if fee_numerator is None else fee_numerator
        fee_den = self.fee.denominator if fee_denominator is None else fee_denominator
        validate_fee(fee_num, fee_den)

        amount = _parse_amount(amount_in)
        r_in = _parse_reserve(reserve_in, "reserve_in")
        r_out = _parse_reserve(reserve_out, "reserve_out")

        with precise():
            d_amount = Decimal(amount)
            d_in = Decimal(r_in)
            d_out = Decimal(r_out)

            pre_rate = d_out / d_in

            amount_in_with_fee = amount * fee_num
            denominator = r_in * fee_den + amount_in_with_fee
            if denominator <= 0:
                raise InsufficientLiquidityError(
                    "Degenerate swap denominator",
                    details={"reserve_in": str(r_in), "amount_in": str(amount)},
                )
            actual_out = Decimal(amount_in_with_fee * r_out) / Decimal(denominator)

            theoretical_out = d_amount * pre_rate * Decimal(fee_num) / Decimal(fee_den)

            raw_impact = (theoretical_out - actual_out) / theoretical_out * HUNDRED
            if raw_impact < 0:
                logger.warning(
                    "Negative price impact clamped; reserve snapshot is inconsistent",
                    extra={"context": {
                        "reserve_in": r_in,
                        "reserve_out": r_out,
                        "amount_in": amount,
                        "raw_impact": raw_impact,
                    }},
                )
            impact = max(Decimal(0), raw_impact)

            new_in = r_in + amount
            new_out = d_out - actual_out
            post_rate = new_out / Decimal(new_in)
            effective_rate = actual_out / d_amount
            rate_change = (post_rate - pre_rate) / pre_rate * HUNDRED

            k_before = r_in * r_out
            k_after = Decimal(new_in) * new_out

        if actual_out > theoretical_out:
            raise InvariantViolationError(
                "Actual output exceeds fee-only theoretical output",
                details={"actual": str(actual_out), "theoretical": str(theoretical_out)},
            )
        if k_after < k_before:
            raise InvariantViolationError(
                "Constant product decreased across the trade",
                details={"k_before": str(k_before), "k_after": str(k_after)},
            )
        if post_rate > pre_rate:
            raise InvariantViolationError(
                "Selling into the pool raised its price",
                details={"pre": str(pre_rate), "post": str(post_rate)},
            )

        high_impact = Decimal(amount) >= HIGH_IMPACT_RESERVE_SHARE * d_in
        if high_impact:
            logger.warning(
                "High-impact trade: amount_in is at least half of reserve_in",
                extra={"context": {"amount_in": amount, "reserve_in": r_in, "impact_pct": impact}},
            )

        return SlippageResult(
            amount_in=amount,
            theoretical_amount_out=theoretical_out,
            actual_amount_out=actual_out,
            pre_trading_rate=pre_rate,
            effective_rate=effective_rate,
            post_trading_rate=post_rate,
            slippage_percentage=impact,
            rate_change_percentage=rate_change,
            reserve_in=r_in,
            reserve_out=r_out,
            new_reserve_in=new_in,
            new_reserve_out=new_out,
            k_before=k_before,
            k_after=k_after,
            fee_numerator=fee_num,
            fee_denominator=fee_den,
            high_impact=high_impact,
        )
