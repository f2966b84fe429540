# PATH: tests/unit/test_imports_contract.py
"""
Import contract smoke tests.

PURPOSE: Catch ImportError regressions EARLY.
RUN FIRST: python -m pytest tests/unit/test_imports_contract.py -v

CRITICAL CONTRACTS (DO NOT WEAKEN):
- every package imports without side effects
- package __init__ re-exports stay importable
- ErrorCode values are stable strings (CLI output depends on them)
"""

import importlib
import unittest


MODULES = [
    "core.constants",
    "core.exceptions",
    "core.logging",
    "core.math",
    "core.models",
    "core.time",
    "chains.abi",
    "chains.cache",
    "chains.gateway",
    "chains.providers",
    "config",
    "config.settings",
    "discovery.resolver",
    "dex.slippage",
    "dex.impact",
    "dex.batch",
    "monitoring.pool_monitor",
    "engine.analytics",
    "engine.cli",
]


class TestModuleImports(unittest.TestCase):
    """Every module imports cleanly."""

    def test_import_all(self):
        for name in MODULES:
            with self.subTest(module=name):
                importlib.import_module(name)


class TestPackageExports(unittest.TestCase):
    """Test package-level re-exports."""

    def test_dex_exports(self):
        from dex import BatchAnalyzer, FeeConfig, PriceImpactAnalyzer, SlippageEngine, get_amount_out

        self.assertEqual(FeeConfig().numerator, 9975)
        self.assertTrue(callable(get_amount_out))
        self.assertIsNotNone(BatchAnalyzer)
        self.assertIsNotNone(PriceImpactAnalyzer)
        self.assertIsNotNone(SlippageEngine)

    def test_engine_exports(self):
        from engine import AnalyticsEngine
        self.assertTrue(hasattr(AnalyticsEngine, "quote_slippage"))

    def test_monitoring_exports(self):
        from monitoring import PoolMonitor
        self.assertTrue(hasattr(PoolMonitor, "poll"))

    def test_discovery_exports(self):
        from discovery import PairResolver
        self.assertTrue(hasattr(PairResolver, "find_best_base_pair"))


class TestErrorCodeContract(unittest.TestCase):
    """CRITICAL: error code strings are part of the CLI output."""

    def test_values(self):
        from core.exceptions import ErrorCode

        for code in (
            "INVALID_INPUT",
            "INSUFFICIENT_LIQUIDITY",
            "PAIR_NOT_FOUND",
            "TOKEN_NOT_FOUND",
            "UPSTREAM_UNAVAILABLE",
            "INVARIANT_VIOLATION",
            "CONFIG_INVALID",
        ):
            with self.subTest(code=code):
                self.assertEqual(ErrorCode(code).value, code)


if __name__ == "__main__":
    unittest.main()
