"""JSON logging for the Daily Brief job.

Each record is one JSON object on stdout carrying the run's execution id and
the pipeline stage that emitted it (config, feed_processor, summarizer,
publisher or main). Keyword arguments passed to the ``ExecutionLogger``
helpers become top-level fields, so a failed feed shows up as
``{"level": "ERROR", "feed_url": ..., "component": "feed_processor"}``.
"""

import json
import logging
import sys
from datetime import UTC, datetime
from typing import Any

LOGGER_PREFIX = "daily_brief"

# Attributes every LogRecord carries; anything else came in through `extra`
STANDARD_ATTRS = set(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {
    "message",
    "asctime",
}


class StructuredFormatter(logging.Formatter):
    """Render a record and its ``extra`` fields as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        for key, value in vars(record).items():
            if key not in STANDARD_ATTRS and key not in log_entry:
                log_entry[key] = value

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, ensure_ascii=False, default=str)


class ExecutionLogger:
    """Per-stage logger that stamps every line with the run's execution id."""

    def __init__(self, execution_id: str, component: str = "main"):
        """
        Args:
            execution_id: Identifier shared by every stage of one run
            component: Pipeline stage, used as the ``daily_brief.<component>`` logger name
        """
        self.execution_id = execution_id
        self.component = component
        self.logger = logging.getLogger(f"{LOGGER_PREFIX}.{component}")
        self.start_time: datetime | None = None
        self.end_time: datetime | None = None

    def _log_with_context(self, level: int, message: str, **kwargs) -> None:
        extra = {
            "execution_id": self.execution_id,
            "component": self.component,
            **kwargs,
        }
        self.logger.log(level, message, extra=extra)

    def info(self, message: str, **kwargs) -> None:
        self._log_with_context(logging.INFO, message, **kwargs)

    def warning(self, message: str, **kwargs) -> None:
        self._log_with_context(logging.WARNING, message, **kwargs)

    def error(self, message: str, **kwargs) -> None:
        self._log_with_context(logging.ERROR, message, **kwargs)

    def debug(self, message: str, **kwargs) -> None:
        self._log_with_context(logging.DEBUG, message, **kwargs)

    def log_execution_start(self, **kwargs) -> None:
        """Mark the start of a run; the end record reports the duration from here."""
        self.start_time = datetime.now(UTC)
        self.info(
            f"Starting {self.component} execution",
            execution_start=self.start_time.isoformat(),
            **kwargs,
        )

    def log_execution_end(self, success: bool = True, **kwargs) -> None:
        """Record whether the brief went out and how long the run took."""
        self.end_time = datetime.now(UTC)

        duration_seconds = None
        if self.start_time:
            duration_seconds = (self.end_time - self.start_time).total_seconds()

        self.info(
            f"Completed {self.component} execution",
            execution_end=self.end_time.isoformat(),
            execution_duration_seconds=duration_seconds,
            execution_success=success,
            **kwargs,
        )

    def log_feed_processing(self, feed_url: str, headline_count: int) -> None:
        """Log how many headlines one feed contributed."""
        self.info(
            f"Processed feed: {headline_count} headlines found",
            feed_url=feed_url,
            headline_count=headline_count,
        )

    def log_metrics(self, metrics: dict[str, Any]) -> None:
        """Log the run counters (feeds processed and failed, headlines, sent flag)."""
        self.info("Execution metrics", metrics=metrics)


def resolve_log_level(log_level: str) -> int:
    """Map a level name such as ``"debug"`` to its numeric value.

    Raises:
        ValueError: If the name is not a standard logging level
    """
    level = logging.getLevelNamesMapping().get(log_level.strip().upper())
    if level is None:
        raise ValueError(f"Unsupported log level: {log_level}")
    return level


def setup_structured_logging(log_level: str = "INFO", strict: bool = True) -> None:
    """Route every record to stdout as one JSON line per event.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        strict: Raise on an unknown level instead of falling back to INFO

    Raises:
        ValueError: If strict and the level name is unknown
    """
    try:
        level = resolve_log_level(log_level)
        fell_back = False
    except ValueError:
        if strict:
            raise
        level = logging.INFO
        fell_back = True

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(StructuredFormatter())
    root_logger.addHandler(console_handler)

    package_logger = logging.getLogger(LOGGER_PREFIX)
    package_logger.setLevel(level)
    package_logger.propagate = True

    if fell_back:
        package_logger.warning(
            "Unsupported log level, using INFO", extra={"requested_level": log_level}
        )


def create_execution_logger(
    component: str, execution_id: str | None = None
) -> ExecutionLogger:
    """Create the logger a pipeline stage uses for one run.

    Args:
        component: Stage name, e.g. 'feed_processor' or 'publisher'
        execution_id: Run identifier shared by all stages (generated if omitted)

    Returns:
        ExecutionLogger instance
    """
    if not execution_id:
        execution_id = f"exec_{datetime.now(UTC).strftime('%Y%m%d_%H%M%S_%f')}"

    return ExecutionLogger(execution_id, component)
