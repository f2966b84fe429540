"""
core/exceptions.py - Typed exceptions with error codes.

Every failure the engine surfaces carries a machine-readable ErrorCode,
a human message and structured details, so callers branch on the kind
instead of matching strings.
"""

from enum import Enum
from typing import Any, Optional


class ErrorCode(str, Enum):
    """Canonical error codes."""

    # Caller input
    INVALID_INPUT = "INVALID_INPUT"

    # Pool state
    INSUFFICIENT_LIQUIDITY = "INSUFFICIENT_LIQUIDITY"
    PAIR_NOT_FOUND = "PAIR_NOT_FOUND"

    # Token metadata
    TOKEN_NOT_FOUND = "TOKEN_NOT_FOUND"

    # Data gateway / RPC
    UPSTREAM_UNAVAILABLE = "UPSTREAM_UNAVAILABLE"
    UPSTREAM_BAD_RESPONSE = "UPSTREAM_BAD_RESPONSE"

    # Math defects
    INVARIANT_VIOLATION = "INVARIANT_VIOLATION"

    # Configuration
    CONFIG_INVALID = "CONFIG_INVALID"

    UNKNOWN = "UNKNOWN"


class AmmError(Exception):
    """Base exception for the analytics engine."""

    default_code = ErrorCode.UNKNOWN

    def __init__(
        self,
        message: str = "",
        code: Optional[ErrorCode] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.details = details or {}

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.message}"

    def to_dict(self) -> dict[str, Any]:
        """Serialize for logs and CLI output."""
        return {
            "error_code": self.code.value,
            "message": self.message,
            "details": self.details,
        }


class InvalidInputError(AmmError):
    """Non-positive or non-numeric amount, percentage or fee."""
    default_code = ErrorCode.INVALID_INPUT


class InsufficientLiquidityError(AmmError):
    """Non-positive reserves or a degenerate swap denominator."""
    default_code = ErrorCode.INSUFFICIENT_LIQUIDITY


class PairNotFoundError(AmmError):
    """
    No pool exists for the resolved token pair.

    suggestions holds the base tokens the input does pair with, so the
    caller can offer an alternative.
    """
    default_code = ErrorCode.PAIR_NOT_FOUND

    def __init__(
        self,
        message: str,
        suggestions: Optional[list] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message, details=details)
        self.suggestions = list(suggestions or [])

    def to_dict(self) -> dict[str, Any]:
        d = super().to_dict()
        d["suggestions"] = [
            {"address": s.address, "symbol": s.symbol} for s in self.suggestions
        ]
        return d


class TokenNotFoundError(AmmError):
    """Address does not answer the ERC20 metadata calls."""
    default_code = ErrorCode.TOKEN_NOT_FOUND


class UpstreamUnavailableError(AmmError):
    """Data gateway failure (RPC error, timeout, malformed response)."""
    default_code = ErrorCode.UPSTREAM_UNAVAILABLE


class InvariantViolationError(AmmError):
    """A computed quote broke a constant-product invariant."""
    default_code = ErrorCode.INVARIANT_VIOLATION


class ConfigError(AmmError):
    """Configuration file or environment value is unusable."""
    default_code = ErrorCode.CONFIG_INVALID
