"""
Exceptions raised by quadcluster.

Two kinds of failure are errors here: misuse from the caller (bad settings,
an unknown algorithm, a zoom that is not a finite number) and broken
invariants inside the quadtree or a clustering pass. Index operations that
are simply rejected, such as adding an item outside the bounds or removing
one that is not stored, report False instead of raising.

    QuadClusterError
    ├── ConfigurationError
    ├── ClusteringError
    │   ├── InvalidAlgorithmError
    │   ├── InvalidZoomError
    │   └── ClusteringInvariantError
    └── SpatialIndexError
        └── QuadTreeInvariantError
"""

import functools
import time
from typing import Any, Callable, Dict, Optional, Type

import structlog


logger = structlog.get_logger(__name__)


class QuadClusterError(Exception):
    """
    Root of the hierarchy.

    Carries a machine-readable `error_code` (the class name unless given) and
    a `details` mapping with the values that caused the failure.
    """

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or type(self).__name__
        self.details = dict(details or {})
        self.timestamp = time.time()

    def to_dict(self) -> Dict[str, Any]:
        """Serializable form, used for structured log fields and CLI output."""
        return dict(
            error_type=type(self).__name__,
            error_code=self.error_code,
            message=self.message,
            details=self.details,
            timestamp=self.timestamp,
        )


class ConfigurationError(QuadClusterError):
    """Settings file or settings values could not be used."""


class ClusteringError(QuadClusterError):
    """Failure while setting up or running a clustering pass."""


class InvalidAlgorithmError(ClusteringError):
    """No algorithm is registered under the requested name."""


class InvalidZoomError(ClusteringError):
    """Zoom is NaN, infinite or not a number."""


class ClusteringInvariantError(ClusteringError):
    """An item ended up in no cluster, or in more than one."""


class SpatialIndexError(QuadClusterError):
    """Failure inside the quadtree."""


class QuadTreeInvariantError(SpatialIndexError):
    """A node's leaf/branch state is inconsistent; a bug, not bad input."""


def handle_exceptions(
    *exception_types: Type[BaseException],
    default_return: Any = None,
    log_errors: bool = True,
) -> Callable[[Callable], Callable]:
    """
    Turn the listed exceptions into `default_return`.

    Anything not listed propagates unchanged.

    Example:
        @handle_exceptions(OSError, ValueError, default_return=None)
        def load_request(path):
            ...
    """

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            try:
                return func(*args, **kwargs)
            except exception_types as exc:
                if log_errors:
                    logger.error(
                        "exception_handled",
                        function=func.__qualname__,
                        error=str(exc),
                        error_type=type(exc).__name__,
                    )
                return default_return

        return wrapper

    return decorator
