"""
core/constants.py - Enums, defaults, and constants.

Only truly constant values here. Deployment values (RPC URLs, base token
list, thresholds) go to config/*.yaml and can be overridden from the
environment.
"""

from decimal import Decimal
from enum import Enum


# =============================================================================
# CACHE
# =============================================================================

class CacheCategory(str, Enum):
    """Data categories held by the TTL cache."""
    TOKEN_INFO = "token_info"
    PAIR_ADDRESS = "pair_address"
    RESERVES = "reserves"


# TTL per category, in seconds
DEFAULT_CACHE_TTLS: dict[CacheCategory, float] = {
    CacheCategory.TOKEN_INFO: 300.0,   # 5 minutes
    CacheCategory.PAIR_ADDRESS: 600.0,  # 10 minutes
    CacheCategory.RESERVES: 30.0,       # 30 seconds
}


# =============================================================================
# CONSTANT-PRODUCT FEE (PancakeSwap V2: 0.25%)
# =============================================================================

DEFAULT_FEE_NUMERATOR = 9975
DEFAULT_FEE_DENOMINATOR = 10000

# Significant digits used for every Decimal computation on reserves.
# uint112 reserves multiplied together stay well below 10**70.
MATH_PRECISION = 100

# amount_in at or above this share of reserve_in is flagged as high impact
HIGH_IMPACT_RESERVE_SHARE = Decimal("0.5")


# =============================================================================
# RISK THRESHOLDS (percent)
# =============================================================================

class RiskLevel(str, Enum):
    """Four-tier risk classification of a single price impact."""
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"
    EXTREME = "extreme"


class LiquidityTier(str, Enum):
    """Four-tier classification of a pool's depth from the mean impact."""
    HIGH = "high"
    MODERATE = "moderate"
    LOW = "low"
    VERY_LOW = "very_low"


RISK_LOW_BELOW_PCT = Decimal("1")
RISK_MODERATE_BELOW_PCT = Decimal("3")
RISK_HIGH_BELOW_PCT = Decimal("10")

LIQUIDITY_HIGH_BELOW_PCT = Decimal("2")
LIQUIDITY_MODERATE_BELOW_PCT = Decimal("5")
LIQUIDITY_LOW_BELOW_PCT = Decimal("15")

# Impact under this is "safe" for max_safe_percentage
SAFE_IMPACT_BELOW_PCT = RISK_MODERATE_BELOW_PCT

# Share of safe / moderate entries needed for the overall recommendation
SAFE_SHARE_FOR_NORMAL_TRADING = Decimal("0.7")
MODERATE_SHARE_FOR_BATCHING = Decimal("0.5")

# Batch curve analysis
WARNING_JUMP_PCT = Decimal("2")
RECOMMENDED_MAX_SLIPPAGE_PCT = Decimal("5")


# =============================================================================
# RESULT STATUSES
# =============================================================================

class ImpactStatus(str, Enum):
    """Outcome of one market-cap percentage in an impact run."""
    OK = "ok"
    AMOUNT_TOO_SMALL = "amount_too_small"
    ERROR = "error"


class MonitorStatus(str, Enum):
    """Pool monitor states: first observation vs later diff."""
    INITIALIZED = "initialized"
    UPDATED = "updated"


# =============================================================================
# DEFAULTS (can be overridden in config/bsc.yaml or the environment)
# =============================================================================

DEFAULT_LIQUIDITY_ALERT_PCT = Decimal("0.1")
DEFAULT_MARKET_CAP_PERCENTAGES: list[Decimal] = [Decimal("0.5"), Decimal("5")]
DEFAULT_ADVANCED_PERCENTAGES: list[Decimal] = [
    Decimal("0.1"), Decimal("0.5"), Decimal("1"),
    Decimal("2"), Decimal("5"), Decimal("10"),
]
DEFAULT_MONITOR_INTERVAL_SECONDS = 10.0


# =============================================================================
# NUMERIC / CHAIN CONSTANTS
# =============================================================================

MAX_TOKEN_DECIMALS = 255
MAX_UINT32 = 2**32 - 1

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

# Infrastructure
DEFAULT_RPC_TIMEOUT_SECONDS = 10
