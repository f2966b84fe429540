"""
dex/batch.py - Slippage curve over a list of trade sizes.

Amounts are quoted in input order. A failing amount becomes an error entry
and the batch continues; statistics use the successful entries only.
"""

from decimal import Decimal
from typing import Iterable

from core.constants import RECOMMENDED_MAX_SLIPPAGE_PCT, WARNING_JUMP_PCT
from core.exceptions import AmmError
from core.logging import get_logger
from core.math import mean, precise, require_positive, safe_decimal, to_base_units
from core.models import (
    BatchEntry,
    BatchResult,
    BatchSummary,
    RecommendedAmount,
    TokenInfo,
    WarningPoint,
)
from dex.impact import QuoteFn

logger = get_logger(__name__)

NO_VALID_DATA = "no valid slippage data"


def find_warning_points(
    entries: list[BatchEntry],
    jump_threshold: Decimal = WARNING_JUMP_PCT,
) -> list[WarningPoint]:
    """Consecutive valid entries whose slippage rises by more than the threshold."""
    valid = [e for e in entries if e.is_valid]
    points = []
    for prev, cur in zip(valid, valid[1:]):
        with precise():
            jump = cur.slippage_percentage - prev.slippage_percentage
        if jump > jump_threshold:
            points.append(WarningPoint(
                previous_amount=prev.amount,
                amount=cur.amount,
                previous_slippage=prev.slippage_percentage,
                slippage=cur.slippage_percentage,
                jump=jump,
            ))
    return points


def recommended_max_amount(
    entries: list[BatchEntry],
    max_slippage: Decimal = RECOMMENDED_MAX_SLIPPAGE_PCT,
) -> RecommendedAmount:
    """Largest amount whose slippage stays within max_slippage."""
    safe = [e for e in entries if e.is_valid and e.slippage_percentage <= max_slippage]
    if not safe:
        return RecommendedAmount(
            amount=None,
            slippage=None,
            is_safe=False,
            message=f"No tested amount is safe: all exceed {max_slippage}% slippage",
        )
    best = max(safe, key=lambda e: e.amount)
    return RecommendedAmount(
        amount=best.amount,
        slippage=best.slippage_percentage,
        is_safe=True,
        message=f"Largest amount with slippage <= {max_slippage}%",
    )


class BatchAnalyzer:
    """Runs a batch of quotes and summarizes the slippage curve."""

    async def analyze_batch(
        self,
        token_info: TokenInfo,
        amounts: Iterable,
        quote: QuoteFn,
    ) -> BatchResult:
        entries = [await self._quote_one(token_info, raw, quote) for raw in amounts]
        return BatchResult(
            token_info=token_info,
            entries=entries,
            summary=self.summarize(entries),
        )

    async def _quote_one(self, token_info: TokenInfo, raw_amount, quote: QuoteFn) -> BatchEntry:
        try:
            amount = require_positive(raw_amount, "amount")
            base_units = to_base_units(amount, token_info.decimals)
            result = await quote(base_units)
        except AmmError as e:
            logger.warning(
                f"Batch quote failed for {raw_amount} {token_info.symbol}: {e.message}",
                extra={"context": {"token": token_info.address, "error_code": e.code.value}},
            )
            return BatchEntry(
                amount=_display_amount(raw_amount),
                error={"kind": e.code.value, "message": e.message},
            )

        return BatchEntry(
            amount=amount,
            amount_base_units=base_units,
            slippage_percentage=result.slippage_percentage,
            actual_amount_out=result.actual_amount_out,
        )

    def summarize(self, entries: list[BatchEntry]) -> BatchSummary:
        valid = [e for e in entries if e.is_valid]
        if not valid:
            return BatchSummary(error=NO_VALID_DATA)

        slippages = [e.slippage_percentage for e in valid]
        return BatchSummary(
            min_slippage=min(slippages),
            max_slippage=max(slippages),
            average_slippage=mean(slippages),
            total_data_points=len(valid),
            warning_points=find_warning_points(entries),
            recommended_max_amount=recommended_max_amount(entries),
        )


def _display_amount(raw_amount) -> Decimal:
    # error entries keep the input amount when it parses, else 0
    try:
        return safe_decimal(raw_amount, "amount")
    except AmmError:
        return Decimal(0)
