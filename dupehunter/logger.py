"""
Structured logging system for dupehunter.

Provides centralized logging with console and file outputs, log levels,
and counters for monitoring how many titles were compared and flagged.
"""

import logging
import sys
from pathlib import Path
from typing import Optional
from datetime import datetime
import json


class StructuredLogger:
    """
    Centralized logger with support for console and file outputs.
    Tracks metrics for comparisons and GitHub API usage.
    """

    def __init__(
        self,
        name: str = "dupehunter",
        level: str = "INFO",
        log_dir: Optional[Path] = None,
        enable_file: bool = True,
        enable_console: bool = True,
    ):
        """
        Initialize the structured logger.

        Args:
            name: Logger name
            level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            log_dir: Directory for log files (default: logs/)
            enable_file: Write logs to file
            enable_console: Output logs to console
        """
        self.logger = logging.getLogger(name)
        self.logger.setLevel(getattr(logging, level.upper()))
        self.logger.handlers.clear()  # Remove existing handlers
        self.logger.propagate = False

        self.metrics = {
            "comparisons": 0,
            "candidates_scanned": 0,
            "duplicates_found": 0,
            "issues_triaged": 0,
            "api_calls": 0,
            "api_failures": 0,
            "errors_by_type": {},
        }

        if enable_console:
            console_handler = logging.StreamHandler(sys.stdout)
            console_handler.setLevel(getattr(logging, level.upper()))
            console_formatter = logging.Formatter(
                fmt='%(asctime)s | %(levelname)-8s | %(name)s | %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
            console_handler.setFormatter(console_formatter)
            self.logger.addHandler(console_handler)

        if enable_file:
            if log_dir is None:
                log_dir = Path("logs")
            log_dir.mkdir(parents=True, exist_ok=True)

            log_file = log_dir / f"dupehunter_{datetime.now().strftime('%Y%m%d')}.log"
            file_handler = logging.FileHandler(log_file, encoding='utf-8')
            file_handler.setLevel(logging.DEBUG)  # Always log everything to file
            file_formatter = logging.Formatter(
                fmt='%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
            file_handler.setFormatter(file_formatter)
            self.logger.addHandler(file_handler)

        if not self.logger.handlers:
            self.logger.addHandler(logging.NullHandler())

    def set_level(self, level: str):
        """Change the threshold of the logger and its console handlers."""
        numeric = getattr(logging, level.upper())
        self.logger.setLevel(numeric)
        for handler in self.logger.handlers:
            if not isinstance(handler, logging.FileHandler):
                handler.setLevel(numeric)

    def debug(self, message: str, **kwargs):
        """Log debug message with optional context."""
        self._log(logging.DEBUG, message, kwargs)

    def info(self, message: str, **kwargs):
        """Log info message with optional context."""
        self._log(logging.INFO, message, kwargs)

    def warning(self, message: str, **kwargs):
        """Log warning message with optional context."""
        self._log(logging.WARNING, message, kwargs)

    def error(self, message: str, **kwargs):
        """Log error message with optional context."""
        self._log(logging.ERROR, message, kwargs)

    def critical(self, message: str, **kwargs):
        """Log critical message with optional context."""
        self._log(logging.CRITICAL, message, kwargs)

    def _log(self, level: int, message: str, context: dict):
        """Internal logging method with context."""
        if not self.logger.isEnabledFor(level):
            return
        if context:
            message = f"{message} | Context: {json.dumps(context, default=str)}"
        self.logger.log(level, message)

    # Metric tracking methods

    def record_comparisons(self, scanned: int, compared: int, found: int):
        """Record one matcher run over a candidate batch."""
        self.metrics["candidates_scanned"] += scanned
        self.metrics["comparisons"] += compared
        self.metrics["duplicates_found"] += found

    def record_issue_triaged(self):
        """Increment triaged issue counter."""
        self.metrics["issues_triaged"] += 1

    def record_api_call(self):
        """Increment API call counter."""
        self.metrics["api_calls"] += 1

    def record_api_failure(self, error_type: str):
        """Record a failed GitHub API call."""
        self.metrics["api_failures"] += 1

        if error_type not in self.metrics["errors_by_type"]:
            self.metrics["errors_by_type"][error_type] = 0
        self.metrics["errors_by_type"][error_type] += 1

    def get_metrics(self) -> dict:
        """Return current metrics."""
        metrics_copy = self.metrics.copy()
        metrics_copy["errors_by_type"] = dict(self.metrics["errors_by_type"])
        compared = metrics_copy["comparisons"]
        metrics_copy["match_rate"] = (
            round(metrics_copy["duplicates_found"] / compared, 3) if compared else 0.0
        )
        return metrics_copy

    def log_metrics_summary(self):
        """Log a summary of current metrics."""
        metrics = self.get_metrics()

        self.info("=== Duplicate Detection Metrics ===")
        self.info(f"Issues triaged: {metrics['issues_triaged']}")
        self.info(
            f"Comparisons: {metrics['comparisons']} of {metrics['candidates_scanned']} candidates "
            f"({metrics['duplicates_found']} duplicates, {metrics['match_rate'] * 100:.1f}% match rate)"
        )
        self.info(f"API Calls: {metrics['api_calls']} ({metrics['api_failures']} failed)")

        if metrics["errors_by_type"]:
            self.info("Error Types:")
            for error_type, count in metrics["errors_by_type"].items():
                self.info(f"  {error_type}: {count}")


# Global logger instance
_global_logger: Optional[StructuredLogger] = None


def get_logger(
    name: str = "dupehunter",
    level: str = "INFO",
    **kwargs
) -> StructuredLogger:
    """
    Get or create the global logger instance.

    Args:
        name: Logger name
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        **kwargs: Additional arguments passed to StructuredLogger

    Returns:
        StructuredLogger instance
    """
    global _global_logger

    if _global_logger is None:
        kwargs.setdefault("enable_file", False)
        _global_logger = StructuredLogger(name=name, level=level, **kwargs)

    return _global_logger


def reset_logger():
    """Reset the global logger (useful for testing)."""
    global _global_logger
    _global_logger = None
