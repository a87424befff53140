"""
Retry decorator with exponential backoff for database operations

Retries transient failures (connection drops, timeouts, deadlocks) with:
- Exponential backoff (base 2.0)
- Jitter to prevent thundering herd
- Configurable max retries
- Callback support for metrics integration

Usage:
    from utils.retry import retry_database_operation

    @retry_database_operation(max_retries=3, base_delay=1.0)
    def open_connection():
        return psycopg2.connect(dsn)
"""

import logging
import random
import time
from functools import wraps
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)

# Common retryable error patterns
RETRYABLE_PATTERNS = (
    "connection",
    "timeout",
    "deadlock",
    "lock wait timeout",
    "could not connect",
    "connection refused",
    "connection reset",
    "broken pipe",
    "server closed the connection",
    "the database system is starting up",
    "too many clients",
)

RETRYABLE_EXCEPTION_NAMES = (
    "connectionerror",
    "timeouterror",
    "operationalerror",  # psycopg2 transient errors
    "interfaceerror",
)


def is_retryable_db_exception(exception: Exception) -> bool:
    """
    Determine if a database exception is retryable

    Args:
        exception: The exception to check

    Returns:
        True if the exception looks transient, False otherwise
    """
    exception_str = str(exception).lower()
    exception_type = type(exception).__name__.lower()

    if exception_type in RETRYABLE_EXCEPTION_NAMES:
        return True

    for pattern in RETRYABLE_PATTERNS:
        if pattern in exception_str or pattern in exception_type:
            return True

    return False


def compute_backoff_delay(
    attempt: int,
    base_delay: float,
    max_delay: float = 60.0,
    jitter: bool = True,
) -> float:
    """Delay before retry number ``attempt + 1`` (attempt is 0-based)."""
    delay = min(base_delay * (2.0 ** attempt), max_delay)

    if jitter:
        # +/-25% of delay
        jitter_amount = delay * 0.25
        delay = delay + random.uniform(-jitter_amount, jitter_amount)
        delay = max(0.1, delay)

    return delay


def retry_database_operation(
    max_retries: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 60.0,
    jitter: bool = True,
    on_retry: Optional[Callable[[int, Exception, float], None]] = None,
):
    """
    Decorator for database operations with smart exception filtering

    Only retries on transient database errors (connection, timeout, deadlock, etc.)
    Non-retryable errors (syntax errors, constraint violations) fail immediately.

    Args:
        max_retries: Maximum number of retry attempts (default: 3)
        base_delay: Initial delay in seconds (default: 1.0)
        max_delay: Upper bound for a single delay in seconds (default: 60.0)
        jitter: Add random jitter to each delay (default: True)
        on_retry: Callback function(attempt, exception, delay) called on each retry

    Example:
        @retry_database_operation(max_retries=5)
        def execute_query(cursor, query):
            cursor.execute(query)
            return cursor.fetchall()
    """
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(*args, **kwargs) -> Any:
            func_name = getattr(func, "__name__", "function")

            for attempt in range(max_retries + 1):
                try:
                    return func(*args, **kwargs)

                except Exception as e:
                    if not is_retryable_db_exception(e):
                        logger.error(
                            f"Non-retryable database error in {func_name}: "
                            f"{type(e).__name__}: {e}"
                        )
                        raise

                    if attempt == max_retries:
                        logger.error(
                            f"Max retries ({max_retries}) exceeded for {func_name}: "
                            f"{type(e).__name__}: {e}"
                        )
                        raise

                    delay = compute_backoff_delay(attempt, base_delay, max_delay, jitter)

                    logger.warning(
                        f"Retryable database error in {func_name} "
                        f"(attempt {attempt + 1}/{max_retries}): "
                        f"{type(e).__name__}: {e}. Retrying in {delay:.2f}s..."
                    )

                    if on_retry:
                        try:
                            on_retry(attempt + 1, e, delay)
                        except Exception as callback_error:
                            logger.error(f"Error in retry callback: {callback_error}")

                    time.sleep(delay)

            raise RuntimeError(f"Unexpected error in retry logic for {func_name}")

        return wrapper
    return decorator
