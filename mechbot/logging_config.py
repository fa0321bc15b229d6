r"""
Logging configuration module for mechbot.

Provides the root logging setup using the colorlog library plus structured
error logging with per-category aggregation.
"""

import atexit
import logging
import os
import sys
import threading
import time
from collections import defaultdict
from typing import Any

import colorlog


class ErrorAggregator:
    """Aggregates error occurrences per category for summary reporting.

    Keeps at most ``max_per_type`` recent entries per category so a long
    running bot with a flapping upstream does not grow without bound.
    """

    def __init__(self, max_per_type: int = 500):
        self.errors: dict[str, list[dict[str, Any]]] = defaultdict(list)
        self.lock = threading.Lock()
        self.start_time = time.time()
        self.max_per_type = max_per_type

    def record_error(
        self, error_type: str, message: str, context: dict[str, Any] | None = None
    ) -> None:
        with self.lock:
            entries = self.errors[error_type]
            entries.append(
                {"timestamp": time.time(), "message": message, "context": context or {}}
            )
            if len(entries) > self.max_per_type:
                del entries[: len(entries) - self.max_per_type]

    def get_error_summary(self) -> dict[str, Any]:
        with self.lock:
            summary = {}
            now = time.time()
            runtime_hours = (now - self.start_time) / 3600
            for error_type, occurrences in self.errors.items():
                recent = [e for e in occurrences if now - e["timestamp"] < 3600]
                summary[error_type] = {
                    "total_count": len(occurrences),
                    "recent_count": len(recent),
                    "rate_per_hour": len(occurrences) / max(runtime_hours, 1),
                    "last_occurrence": occurrences[-1] if occurrences else None,
                }
            return summary

    def should_alert(self, error_type: str, threshold_rate: float = 10.0) -> bool:
        """Check if an error category is occurring faster than threshold_rate per hour."""
        summary = self.get_error_summary()
        if error_type not in summary:
            return False
        return summary[error_type]["rate_per_hour"] > threshold_rate

    def log_summary_report(self) -> None:
        summary = self.get_error_summary()
        if not summary:
            logging.info("No errors recorded in current session")
            return
        logging.warning("🚨 ERROR SUMMARY REPORT")
        for error_type, stats in summary.items():
            logging.warning(
                f"  {error_type}: {stats['total_count']} total, "
                f"{stats['recent_count']} in last hour, "
                f"{stats['rate_per_hour']:.1f}/hour"
            )

    def reset(self) -> None:
        with self.lock:
            self.errors.clear()
            self.start_time = time.time()


error_aggregator = ErrorAggregator()


def log_structured_error(
    error_type: str,
    message: str,
    exception: Exception | None = None,
    context: dict[str, Any] | None = None,
    level: int = logging.ERROR,
) -> None:
    """Log an error with structured context and record it in the aggregator.

    Args:
        error_type: Category of the error (e.g., 'network', 'auth', 'store')
        message: Descriptive error message
        exception: The exception that occurred (optional)
        context: Additional context data for debugging
        level: Logging level (default: ERROR)
    """
    structured_message = f"[{error_type.upper()}] {message}"
    if exception:
        structured_message += f" | Exception: {type(exception).__name__}: {str(exception)}"
    if context:
        context_str = " | ".join(f"{k}={v}" for k, v in context.items())
        structured_message += f" | Context: {context_str}"

    logging.log(level, structured_message)
    error_aggregator.record_error(error_type, message, context)

    if error_aggregator.should_alert(error_type):
        logging.critical(
            f"🚨 HIGH ERROR RATE ALERT: {error_type} occurring at "
            f"{error_aggregator.get_error_summary()[error_type]['rate_per_hour']:.1f}/hour"
        )


class LoggerConfigurator:
    """Configures the root logger with colored console output.

    The level comes from ``MECHBOT_LOG_LEVEL`` (a level name) when set,
    otherwise DEBUG when ``DEBUG`` is truthy, otherwise INFO.
    """

    # Library loggers whose per-frame chatter drowns the chat log
    NOISY_LOGGERS = {"websockets": logging.INFO, "aiohttp": logging.WARNING}

    def __init__(self, stream=None):
        self.stream = stream or sys.stderr

    @staticmethod
    def resolve_level() -> int:
        name = os.environ.get("MECHBOT_LOG_LEVEL", "").strip().upper()
        if name:
            level = logging.getLevelName(name)
            if isinstance(level, int):
                return level
        if os.environ.get("DEBUG", "").lower() in ("true", "1", "yes"):
            return logging.DEBUG
        return logging.INFO

    def build_formatter(self) -> logging.Formatter:
        return colorlog.ColoredFormatter(
            "%(asctime)s %(log_color)s%(levelname)-8s%(reset)s %(message_log_color)s%(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
            log_colors={
                "DEBUG": "cyan",
                "INFO": "green",
                "WARNING": "yellow",
                "ERROR": "red",
                "CRITICAL": "magenta",
            },
            secondary_log_colors={"message": {"ERROR": "red", "CRITICAL": "magenta"}},
            reset=True,
        )

    def configure(self) -> int:
        level = self.resolve_level()
        handler = logging.StreamHandler(self.stream)
        handler.setFormatter(self.build_formatter())

        root_logger = logging.getLogger()
        root_logger.handlers = [handler]
        root_logger.setLevel(level)
        for name, noisy_level in self.NOISY_LOGGERS.items():
            logging.getLogger(name).setLevel(max(level, noisy_level))

        atexit.register(self._log_final_error_summary)
        return level

    def _log_final_error_summary(self) -> None:
        try:
            logging.info("📊 Final error summary before shutdown:")
            error_aggregator.log_summary_report()
        except Exception as e:  # noqa: BLE001
            logging.error(f"Failed to log final error summary: {e}")
