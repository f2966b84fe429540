"""
dex/ - Constant-product pool analytics.

Modules:
- slippage: x*y=k quote engine
- impact: market-cap percentage sell impact
- batch: slippage curve over trade sizes
"""

from dex.batch import BatchAnalyzer, find_warning_points, recommended_max_amount
from dex.impact import PriceImpactAnalyzer, assess_liquidity, assess_risk_level
from dex.slippage import FeeConfig, SlippageEngine, get_amount_out

__all__ = [
    "BatchAnalyzer",
    "find_warning_points",
    "recommended_max_amount",
    "PriceImpactAnalyzer",
    "assess_liquidity",
    "assess_risk_level",
    "FeeConfig",
    "SlippageEngine",
    "get_amount_out",
]
