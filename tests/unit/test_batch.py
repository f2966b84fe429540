"""
tests/unit/test_batch.py - Tests for dex/batch.py
"""

from decimal import Decimal

import pytest

from core.exceptions import UpstreamUnavailableError
from core.models import BatchEntry, TokenInfo
from dex.batch import (
    NO_VALID_DATA,
    BatchAnalyzer,
    find_warning_points,
    recommended_max_amount,
)
from dex.slippage import SlippageEngine


TOKEN = TokenInfo(
    address="0x0E09FaBB73Bd3Ade0a17ECC321fD13a19e81cE82",
    name="PancakeSwap Token",
    symbol="Cake",
    decimals=18,
    total_supply=400_000_000 * 10**18,
)
RESERVE_IN = 100_000 * 10**18
RESERVE_OUT = 50_000 * 10**18


def entry(amount: str, slippage: str) -> BatchEntry:
    return BatchEntry(amount=Decimal(amount), slippage_percentage=Decimal(slippage))


def failed(amount: str) -> BatchEntry:
    return BatchEntry(amount=Decimal(amount), error={"kind": "UPSTREAM_UNAVAILABLE", "message": "down"})


class TestWarningPoints:

    def test_jump_above_threshold(self):
        points = find_warning_points([entry("10", "0.5"), entry("50", "1"), entry("500", "4.5")])

        assert len(points) == 1
        assert points[0].previous_amount == Decimal("50")
        assert points[0].amount == Decimal("500")
        assert points[0].jump == Decimal("3.5")

    def test_jump_equal_to_threshold_is_not_flagged(self):
        assert find_warning_points([entry("1", "1"), entry("2", "3")]) == []

    def test_error_entries_skipped(self):
        points = find_warning_points([entry("1", "1"), failed("2"), entry("3", "2.5")])
        assert points == []

    def test_custom_threshold(self):
        points = find_warning_points([entry("1", "1"), entry("2", "2")], jump_threshold=Decimal("0.5"))
        assert len(points) == 1


class TestRecommendedMaxAmount:

    def test_largest_under_ceiling(self):
        rec = recommended_max_amount([entry("10", "1"), entry("100", "4.9"), entry("1000", "12")])

        assert rec.is_safe
        assert rec.amount == Decimal("100")
        assert rec.slippage == Decimal("4.9")

    def test_ceiling_is_inclusive(self):
        rec = recommended_max_amount([entry("10", "5")])
        assert rec.amount == Decimal("10")

    def test_nothing_safe(self):
        rec = recommended_max_amount([entry("10", "6"), failed("20")])

        assert not rec.is_safe
        assert rec.amount is None
        assert "5%" in rec.message


class TestAnalyzeBatch:

    @pytest.mark.asyncio
    async def test_failure_does_not_abort(self):
        engine = SlippageEngine()

        async def quote(amount_base_units: int):
            if amount_base_units >= 5000 * 10**18:
                raise UpstreamUnavailableError("all RPC endpoints failed")
            return engine.quote(RESERVE_IN, RESERVE_OUT, amount_base_units)

        result = await BatchAnalyzer().analyze_batch(TOKEN, ["10", "50", "5000"], quote)

        assert [e.amount for e in result.entries] == [Decimal("10"), Decimal("50"), Decimal("5000")]
        assert result.entries[0].is_valid
        assert result.entries[1].is_valid
        assert result.entries[2].error == {
            "kind": "UPSTREAM_UNAVAILABLE",
            "message": "all RPC endpoints failed",
        }

        summary = result.summary
        assert summary.total_data_points == 2
        assert summary.min_slippage == result.entries[0].slippage_percentage
        assert summary.max_slippage == result.entries[1].slippage_percentage
        assert summary.min_slippage < summary.max_slippage
        assert summary.recommended_max_amount.amount == Decimal("50")

    @pytest.mark.asyncio
    async def test_input_order_kept(self):
        engine = SlippageEngine()

        async def quote(amount_base_units: int):
            return engine.quote(RESERVE_IN, RESERVE_OUT, amount_base_units)

        result = await BatchAnalyzer().analyze_batch(TOKEN, ["500", "5"], quote)

        assert [e.amount for e in result.entries] == [Decimal("500"), Decimal("5")]
        assert result.entries[0].amount_base_units == 500 * 10**18

    @pytest.mark.asyncio
    async def test_invalid_amounts_become_errors(self):
        async def quote(amount_base_units: int):
            raise AssertionError("quote should not be called")

        result = await BatchAnalyzer().analyze_batch(TOKEN, ["-1", "abc"], quote)

        assert [e.error["kind"] for e in result.entries] == ["INVALID_INPUT", "INVALID_INPUT"]
        assert result.entries[0].amount == Decimal("-1")
        assert result.entries[1].amount == Decimal(0)
        assert result.summary.error == NO_VALID_DATA
        assert result.summary.total_data_points == 0

    @pytest.mark.asyncio
    async def test_sharp_curve_flagged(self):
        engine = SlippageEngine()

        async def quote(amount_base_units: int):
            return engine.quote(RESERVE_IN, RESERVE_OUT, amount_base_units)

        result = await BatchAnalyzer().analyze_batch(TOKEN, ["100", "10000"], quote)

        assert len(result.summary.warning_points) == 1
        assert result.summary.recommended_max_amount.amount == Decimal("100")
