"""
core - Core utilities and models for AMMSCOPE.

This package contains:
- models.py: Data models (TokenInfo, ReserveSnapshot, SlippageResult, ...)
- constants.py: Enums, thresholds and defaults
- exceptions.py: Typed exceptions with error codes
- math.py: Safe Decimal utilities (no float)
- time.py: Clocks for cache expiry and timestamps
- logging.py: Structured JSON logging
"""

from core.constants import (
    CacheCategory,
    ImpactStatus,
    LiquidityTier,
    MonitorStatus,
    RiskLevel,
)
from core.exceptions import (
    AmmError,
    ConfigError,
    ErrorCode,
    InsufficientLiquidityError,
    InvalidInputError,
    InvariantViolationError,
    PairNotFoundError,
    TokenNotFoundError,
    UpstreamUnavailableError,
)
from core.logging import get_logger, setup_logging
from core.models import (
    BaseToken,
    BatchEntry,
    BatchResult,
    BatchSummary,
    ImpactAnalysis,
    ImpactResult,
    MarketCapInfo,
    MonitorResult,
    PoolState,
    PriceImpactReport,
    RecommendedAmount,
    ReserveSnapshot,
    SlippageResult,
    TokenInfo,
    WarningPoint,
)

__all__ = [
    # Constants
    "CacheCategory",
    "ImpactStatus",
    "LiquidityTier",
    "MonitorStatus",
    "RiskLevel",
    # Exceptions
    "AmmError",
    "ConfigError",
    "ErrorCode",
    "InsufficientLiquidityError",
    "InvalidInputError",
    "InvariantViolationError",
    "PairNotFoundError",
    "TokenNotFoundError",
    "UpstreamUnavailableError",
    # Models
    "BaseToken",
    "BatchEntry",
    "BatchResult",
    "BatchSummary",
    "ImpactAnalysis",
    "ImpactResult",
    "MarketCapInfo",
    "MonitorResult",
    "PoolState",
    "PriceImpactReport",
    "RecommendedAmount",
    "ReserveSnapshot",
    "SlippageResult",
    "TokenInfo",
    "WarningPoint",
    # Logging
    "get_logger",
    "setup_logging",
]
