"""
discovery/ - Counter-token resolution.
"""

from discovery.resolver import PairResolver

__all__ = ["PairResolver"]
