# PATH: monitoring/__init__.py
"""
Monitoring package for AMMSCOPE.

Stable exports:
- PoolMonitor
"""

from monitoring.pool_monitor import PoolMonitor

__all__ = [
    "PoolMonitor",
]
