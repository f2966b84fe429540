"""
tests/unit/test_cli.py - Tests for engine/cli.py

Commands run through click's CliRunner with an engine backed by FakeGateway.
"""

import json
import logging
from decimal import Decimal

import pytest
from click.testing import CliRunner

from chains.cache import TTLCache
from core.logging import clear_global_context
from config.settings import Settings
from engine.analytics import AnalyticsEngine
from engine.cli import main
from tests.fakes import CAKE, CAKE_WBNB_PAIR, USDT, WBNB


@pytest.fixture(autouse=True)
def restore_logging():
    """setup_logging() rewires the root logger; put it back afterwards."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    clear_global_context()


@pytest.fixture
def settings(base_tokens, native_token) -> Settings:
    return Settings(
        chain_id=56,
        rpc_urls=["https://node.example/rpc"],
        factory_address="0xcA143Ce32Fe78f1f7019d7d551a6402fC5350c73",
        native_token=native_token,
        base_tokens=base_tokens,
    )


@pytest.fixture
def invoke(gateway, base_tokens, native_token, settings):
    def run(*args):
        engine = AnalyticsEngine(gateway, base_tokens, native_token, cache=TTLCache())
        obj = {"engine_factory": lambda s: engine, "settings": settings}
        return CliRunner().invoke(main, ["--log-level", "ERROR", *args], obj=obj)
    return run


class TestQuote:

    def test_human_amount(self, invoke):
        result = invoke("quote", CAKE, "100")

        assert result.exit_code == 0, result.output
        payload = json.loads(result.stdout)
        assert payload["amount_in"] == str(100 * 10**18)
        assert payload["pair_address"] == CAKE_WBNB_PAIR
        assert payload["counter_token"] == WBNB
        assert payload["high_impact"] is False

    def test_raw_amount(self, invoke):
        result = invoke("quote", CAKE, "1000", "--raw")

        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout)["amount_in"] == "1000"

    def test_raw_amount_must_be_whole(self, invoke):
        result = invoke("quote", CAKE, "1.5", "--raw")

        assert result.exit_code == 1
        assert "[INVALID_INPUT]" in result.output
        assert "whole number" in result.output

    def test_missing_pair_lists_suggestions(self, invoke):
        result = invoke("quote", CAKE, "1", "--counter", USDT)

        assert result.exit_code == 1
        assert "[PAIR_NOT_FOUND]" in result.output
        assert "Pairs available against:" in result.output
        assert WBNB in result.output

    def test_invalid_amount(self, invoke):
        result = invoke("quote", CAKE, "0")

        assert result.exit_code == 1
        assert "[INVALID_INPUT]" in result.output


class TestImpact:

    def test_explicit_percentages(self, invoke):
        result = invoke("impact", CAKE, "-p", "0.01", "-p", "0.02")

        assert result.exit_code == 0, result.output
        payload = json.loads(result.stdout)
        assert [r["market_cap_percentage"] for r in payload["results"]] == ["0.01", "0.02"]
        assert payload["market_cap_info"]["base_token"]["symbol"] == "WBNB"

    def test_advanced_set(self, invoke):
        result = invoke("impact", CAKE, "--advanced")

        assert result.exit_code == 0, result.output
        assert len(json.loads(result.stdout)["results"]) == 6

    def test_default_set(self, invoke):
        result = invoke("impact", CAKE)

        assert result.exit_code == 0, result.output
        assert len(json.loads(result.stdout)["results"]) == 2


class TestBatch:

    def test_curve(self, invoke):
        result = invoke("batch", CAKE, "10", "50", "abc")

        assert result.exit_code == 0, result.output
        payload = json.loads(result.stdout)
        assert len(payload["entries"]) == 3
        assert payload["entries"][2]["error"]["kind"] == "INVALID_INPUT"
        assert payload["summary"]["total_data_points"] == 2

    def test_requires_amounts(self, invoke):
        result = invoke("batch", CAKE)
        assert result.exit_code == 2


class TestMonitor:

    def test_cycles(self, invoke):
        result = invoke("monitor", CAKE, "--cycles", "2", "--interval", "0")

        assert result.exit_code == 0, result.output
        lines = [json.loads(line) for line in result.stdout.splitlines() if line.strip()]
        assert [line["status"] for line in lines] == ["initialized", "updated"]
        assert Decimal(lines[1]["ratio_change_percentage"]) == 0


class TestToken:

    def test_metadata(self, invoke):
        result = invoke("token", CAKE)

        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout)["symbol"] == "Cake"

    def test_unknown_token(self, invoke):
        result = invoke("token", "0x1111111111111111111111111111111111111111")

        assert result.exit_code == 1
        assert "[TOKEN_NOT_FOUND]" in result.output


class TestCacheStats:

    def test_categories(self, invoke):
        result = invoke("cache-stats")

        assert result.exit_code == 0, result.output
        assert set(json.loads(result.stdout)) == {"token_info", "pair_address", "reserves"}

    def test_live_counts(self, invoke):
        result = invoke("cache-stats", "--live", CAKE)

        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout) == {"token_info": 0, "pair_address": 0, "reserves": 0}


class TestConfig:

    def test_missing_config_file(self, tmp_path):
        result = CliRunner().invoke(
            main,
            ["--log-level", "ERROR", "--config", str(tmp_path / "missing.yaml"), "token", CAKE],
            obj={"engine_factory": lambda s: None},
        )

        assert result.exit_code == 1
        assert "[CONFIG_INVALID]" in result.output

    def test_help(self):
        result = CliRunner().invoke(main, ["--help"])

        assert result.exit_code == 0
        for command in ("quote", "impact", "batch", "monitor", "token", "cache-stats"):
            assert command in result.output
