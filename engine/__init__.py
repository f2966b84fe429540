"""
engine/ - Public facade and command-line entrypoint.
"""

from engine.analytics import AnalyticsEngine

__all__ = ["AnalyticsEngine"]
