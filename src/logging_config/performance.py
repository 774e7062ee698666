"""Performance Logging.

Decorator for timing service operations and logging slow ones.
"""

import functools
import logging
import time
from typing import Any, Callable, Optional

from src.logging_config.config import DEFAULT_LOGGING_CONFIG

logger = logging.getLogger(__name__)


def _is_client_error(exc: Exception) -> bool:
    # Imported here: src.api_errors imports this package.
    from src.api_errors.exceptions import FolioAPIError

    return isinstance(exc, FolioAPIError) and exc.status_code < 500


def log_performance(
    threshold_ms: Optional[float] = None,
    logger_name: Optional[str] = None,
) -> Callable:
    """Decorator that logs function execution time.

    Logs all calls at DEBUG level, slow calls (above threshold) at WARNING
    and failures at ERROR before re-raising. Client errors raised as
    ``FolioAPIError`` (4xx) are logged at DEBUG instead.

    Example:
        @log_performance(threshold_ms=500)
        def get_holdings(self, user_id):
            ...
    """
    if threshold_ms is None:
        threshold_ms = DEFAULT_LOGGING_CONFIG.slow_threshold_ms

    def decorator(func: Callable) -> Callable:
        _logger = logging.getLogger(logger_name or func.__module__)
        func_name = func.__qualname__

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            start = time.perf_counter()
            failed = False
            try:
                return func(*args, **kwargs)
            except Exception as exc:
                failed = True
                duration_ms = (time.perf_counter() - start) * 1000
                level = logging.DEBUG if _is_client_error(exc) else logging.ERROR
                _logger.log(
                    level,
                    f"{func_name} failed after {duration_ms:.1f}ms: {type(exc).__name__}",
                    extra={"duration_ms": round(duration_ms, 2)},
                )
                raise
            finally:
                if not failed:
                    duration_ms = (time.perf_counter() - start) * 1000
                    extra = {"duration_ms": round(duration_ms, 2)}
                    if duration_ms >= threshold_ms:
                        _logger.warning(
                            f"Slow operation: {func_name} took {duration_ms:.1f}ms",
                            extra=extra,
                        )
                    else:
                        _logger.debug(f"{func_name} completed in {duration_ms:.1f}ms", extra=extra)

        return wrapper

    return decorator
