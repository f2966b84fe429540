"""
core/logging.py - Structured JSON logging.

All logs include:
- timestamp (ISO 8601)
- level
- logger
- message
- context (token, pair_address, amount_in, ratio change, etc.)

Contextual fields are passed only via extra={"context": {...}}.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

# Global context that gets added to all log entries
_global_context: dict[str, Any] = {}


class JSONFormatter(logging.Formatter):
    """
    JSON log formatter for structured logging.

    Output format:
    {
        "timestamp": "2026-01-04T12:00:00.000+00:00",
        "level": "INFO",
        "logger": "ammscope.monitor",
        "message": "Pool ratio changed",
        "context": {
            "pair": "CAKE/WBNB",
            "ratio_change_pct": "0.1523"
        }
    }
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        context = {}
        context.update(_global_context)

        if hasattr(record, "context") and record.context:
            context.update(record.context)

        if record.exc_info:
            context["exception"] = self.formatException(record.exc_info)

        if context:
            log_entry["context"] = context

        # Decimal and int reserves serialize through str
        return json.dumps(log_entry, default=str)


class ConsoleFormatter(logging.Formatter):
    """Human-readable formatter with a short context summary."""

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        base = f"{timestamp} | {record.levelname:<8} | {record.name} | {record.getMessage()}"

        context = getattr(record, "context", None)
        if context:
            items = list(context.items())
            ctx_str = ", ".join(f"{k}={v}" for k, v in items[:3])
            if len(items) > 3:
                ctx_str += f", ... (+{len(items) - 3} more)"
            base += f" | {ctx_str}"

        return base


class ContextAdapter(logging.LoggerAdapter):
    """
    Logger adapter that adds context to all log entries.
    """

    def process(
        self, msg: str, kwargs: dict[str, Any]
    ) -> tuple[str, dict[str, Any]]:
        extra = kwargs.get("extra", {})
        context = {**self.extra, **extra.get("context", {})}

        kwargs["extra"] = {"context": context}
        return msg, kwargs


def set_global_context(**kwargs: Any) -> None:
    """
    Set global context that gets added to all log entries.

    Example:
        set_global_context(service="ammscope", chain="bsc")
    """
    _global_context.update(kwargs)


def clear_global_context() -> None:
    """Clear global logging context."""
    _global_context.clear()


def get_logger(name: str, **context: Any) -> ContextAdapter:
    """
    Get a logger with optional default context.

    Example:
        logger = get_logger("ammscope.gateway", chain_id=56)
        logger.info("Reserves fetched", extra={"context": {"pair": "0x..."}})
    """
    return ContextAdapter(logging.getLogger(name), context)


def setup_logging(
    level: str = "INFO",
    json_output: bool = True,
    log_file: str | None = None,
) -> None:
    """
    Setup logging configuration.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        json_output: Use JSON formatting (recommended for production)
        log_file: Optional file path for logging (always JSON)
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(JSONFormatter() if json_output else ConsoleFormatter())
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(JSONFormatter())
        root_logger.addHandler(file_handler)

    # Suppress noisy loggers
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================

def log_quote(
    logger: ContextAdapter,
    pair_address: str,
    amount_in: int,
    amount_out: Any,
    slippage_pct: Any,
    **extra: Any,
) -> None:
    """Log a slippage quote with standard context."""
    logger.info(
        f"Quote: {pair_address[:10]}... slippage={slippage_pct}%",
        extra={
            "context": {
                "pair_address": pair_address,
                "amount_in": amount_in,
                "amount_out": amount_out,
                "slippage_pct": slippage_pct,
                **extra,
            }
        },
    )


def log_pool_change(
    logger: ContextAdapter,
    pair_name: str,
    previous_ratio: Any,
    current_ratio: Any,
    change_pct: Any,
    significant: bool,
    **extra: Any,
) -> None:
    """Log a pool ratio diff; significant drifts go out at WARNING."""
    level = "warning" if significant else "info"
    getattr(logger, level)(
        f"Pool ratio {'shift' if significant else 'update'}: {pair_name} {change_pct}%",
        extra={
            "context": {
                "pair": pair_name,
                "previous_ratio": previous_ratio,
                "current_ratio": current_ratio,
                "ratio_change_pct": change_pct,
                "significant": significant,
                **extra,
            }
        },
    )


def log_error(
    logger: ContextAdapter,
    error_code: str,
    message: str,
    **extra: Any,
) -> None:
    """Log an error with standard context."""
    logger.error(
        f"[{error_code}] {message}",
        extra={
            "context": {
                "error_code": error_code,
                **extra,
            }
        },
    )
