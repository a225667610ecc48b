"""
Structured logging for quadcluster.

structlog renders every event as JSON (or colourised console output) on top
of the stdlib logging handlers. A run-wide correlation id lives in structlog's
context variables, so it shows up on events from every module without each
logger having to be rebound.

Clustering passes are timed with PerformanceLogger, which reports the
duration, the item throughput and whatever result fields the caller records.
"""

import contextlib
import functools
import logging
import logging.handlers
import time
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import structlog
from structlog.types import EventDict, Processor

CORRELATION_KEY = "correlation_id"

LOG_FILE_MAX_BYTES = 10 * 1024 * 1024
LOG_FILE_BACKUPS = 5


# =============================================================================
# Configuration
# =============================================================================


def configure_logging(
    log_level: str = "INFO",
    log_format: str = "json",
    log_file: Optional[str] = None,
    service_name: str = "quadcluster",
) -> None:
    """
    Route structlog through stdlib logging.

    Args:
        log_level: Name of a stdlib level, case-insensitive
        log_format: "json" for machine-readable lines, anything else for console
        log_file: Also write to this file, rotated at 10MB
        service_name: Value of the `service` field on every event
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {log_level}")

    logging.basicConfig(format="%(message)s", level=level)
    root = logging.getLogger()
    root.setLevel(level)

    if log_file:
        root.addHandler(_rotating_file_handler(Path(log_file), level))

    structlog.configure(
        processors=_event_pipeline(service_name) + [_renderer(log_format)],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def _rotating_file_handler(path: Path, level: int) -> logging.Handler:
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.handlers.RotatingFileHandler(
        path, maxBytes=LOG_FILE_MAX_BYTES, backupCount=LOG_FILE_BACKUPS
    )
    handler.setLevel(level)
    return handler


def _event_pipeline(service_name: str) -> List[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        stamp_service(service_name),
    ]


def _renderer(log_format: str) -> Processor:
    if log_format == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer()


def stamp_service(service_name: str) -> Processor:
    """Processor that tags each event with the emitting service."""

    def processor(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
        event_dict.setdefault("service", service_name)
        return event_dict

    return processor


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Logger for `name`. The correlation id is merged in when events are emitted."""
    return structlog.get_logger(name)


# =============================================================================
# Correlation ID
# =============================================================================


class LogContext:
    """
    Correlation id shared by all events of one clustering run.

    Backed by structlog.contextvars, so nested contexts restore the outer id
    on exit.
    """

    @staticmethod
    def set_correlation_id(correlation_id: str) -> None:
        structlog.contextvars.bind_contextvars(**{CORRELATION_KEY: correlation_id})

    @staticmethod
    def get_correlation_id() -> Optional[str]:
        return structlog.contextvars.get_contextvars().get(CORRELATION_KEY)

    @staticmethod
    def clear_correlation_id() -> None:
        structlog.contextvars.unbind_contextvars(CORRELATION_KEY)

    @staticmethod
    def correlation_context(correlation_id: str):
        """
        Bind `correlation_id` for the duration of a with block.

        Example:
            with LogContext.correlation_context("run-123"):
                engine.cluster(items, zoom=12)
        """
        return structlog.contextvars.bound_contextvars(**{CORRELATION_KEY: correlation_id})


# =============================================================================
# Timing
# =============================================================================


class PerformanceLogger:
    """
    Times a block and logs one event when it ends.

    `operation_completed` carries the duration, the items per second when
    `item_count` is known, and any fields passed to `record()`. A block that
    raises logs `operation_failed` instead and the exception propagates.
    """

    def __init__(
        self,
        operation: str,
        logger: Optional[structlog.stdlib.BoundLogger] = None,
        log_level: str = "info",
        item_count: Optional[int] = None,
        **context: Any,
    ):
        self.operation = operation
        self.logger = logger or get_logger(__name__)
        self.log_level = log_level
        self.item_count = item_count
        self.context: Dict[str, Any] = {"operation": operation, **context}
        self.start_time: Optional[float] = None
        self.end_time: Optional[float] = None

    def record(self, **fields: Any) -> None:
        """Attach result fields to the closing event."""
        self.context.update(fields)

    def __enter__(self) -> "PerformanceLogger":
        self.logger.debug("operation_started", **self.context)
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.end_time = time.perf_counter()
        fields = dict(self.context, duration_seconds=round(self.elapsed_time, 6))

        if self.item_count:
            fields["item_count"] = self.item_count
            if self.elapsed_time > 0:
                fields["items_per_second"] = round(self.item_count / self.elapsed_time, 2)

        if exc_type is None:
            getattr(self.logger, self.log_level)("operation_completed", **fields)
        else:
            self.logger.error(
                "operation_failed", error=str(exc_val), error_type=exc_type.__name__, **fields
            )

    @property
    def elapsed_time(self) -> float:
        """Seconds since the block started; frozen once it has ended."""
        if self.start_time is None:
            return 0.0
        return (self.end_time or time.perf_counter()) - self.start_time


def timed(operation: Optional[str] = None, log_level: str = "info") -> Callable:
    """Decorator form of PerformanceLogger; the operation defaults to the function name."""

    def decorator(func: Callable) -> Callable:
        name = operation or func.__name__
        log = get_logger(func.__module__)

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            with PerformanceLogger(name, logger=log, log_level=log_level):
                return func(*args, **kwargs)

        return wrapper

    return decorator


@contextlib.contextmanager
def log_exceptions(
    logger: Optional[structlog.stdlib.BoundLogger] = None,
    operation: Optional[str] = None,
    reraise: bool = True,
):
    """
    Log any exception leaving the block, with its traceback.

    With reraise=False the exception is swallowed after logging.
    """
    log = logger or get_logger(__name__)
    try:
        yield
    except Exception as exc:
        fields: Dict[str, Any] = {"error": str(exc), "error_type": type(exc).__name__}
        if operation:
            fields["operation"] = operation
        log.error("exception_caught", exc_info=True, **fields)
        if reraise:
            raise
