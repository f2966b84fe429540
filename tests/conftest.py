# PATH: tests/conftest.py
"""
Pytest configuration and fixtures for AMMSCOPE tests.
"""

import sys
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from core.models import BaseToken  # noqa: E402
from tests.fakes import (  # noqa: E402
    BUSD,
    CAKE,
    CAKE_BUSD_PAIR,
    CAKE_WBNB_PAIR,
    USDC,
    USDT,
    WBNB,
    WBNB_BUSD_PAIR,
    FakeGateway,
)


def pytest_configure(config):
    """Configure pytest."""
    # Add custom markers
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )


@pytest.fixture
def base_tokens() -> list[BaseToken]:
    return [
        BaseToken(address=WBNB, symbol="WBNB"),
        BaseToken(address=BUSD, symbol="BUSD"),
        BaseToken(address=USDT, symbol="USDT"),
        BaseToken(address=USDC, symbol="USDC"),
    ]


@pytest.fixture
def native_token() -> BaseToken:
    return BaseToken(address=WBNB, symbol="WBNB")


@pytest.fixture
def gateway() -> FakeGateway:
    """CAKE paired with WBNB and BUSD, WBNB paired with BUSD."""
    gw = FakeGateway()
    gw.add_token(WBNB, "WBNB")
    gw.add_token(BUSD, "BUSD")
    gw.add_token(USDT, "USDT")
    gw.add_token(USDC, "USDC")
    gw.add_token(CAKE, "Cake", total_supply=400_000_000 * 10**18)
    # token0 is the lower address
    gw.add_pool(CAKE_WBNB_PAIR, CAKE, WBNB, 2_000_000 * 10**18, 10_000 * 10**18)
    gw.add_pool(CAKE_BUSD_PAIR, CAKE, BUSD, 500_000 * 10**18, 1_000_000 * 10**18)
    gw.add_pool(WBNB_BUSD_PAIR, WBNB, BUSD, 100_000 * 10**18, 30_000_000 * 10**18)
    return gw
