"""
Retry logic with exponential backoff for handling transient failures.

Used around GitHub API calls, which may fail due to network issues,
rate limiting or temporary server errors. Comparisons are never retried.
"""

import time
import functools
from typing import Callable, Type, Tuple, Optional


class RetryError(Exception):
    """Raised when all retry attempts are exhausted."""
    pass


def exponential_backoff(
    max_retries: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 60.0,
    exponential_base: float = 2.0,
    exceptions: Tuple[Type[Exception], ...] = (Exception,),
    on_retry: Optional[Callable] = None,
):
    """
    Decorator for retrying functions with exponential backoff.

    Args:
        max_retries: Maximum number of retry attempts (0 = no retries)
        base_delay: Initial delay in seconds
        max_delay: Maximum delay between retries in seconds
        exponential_base: Base for exponential calculation (delay *= base)
        exceptions: Tuple of exceptions to catch and retry
        on_retry: Optional callback function(attempt, exception, delay)

    Example:
        @exponential_backoff(max_retries=3, base_delay=1.0)
        def list_page(url):
            return session.get(url)
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            delay = base_delay

            for attempt in range(max_retries + 1):
                try:
                    return func(*args, **kwargs)
                except exceptions as e:
                    if attempt >= max_retries:
                        raise RetryError(
                            f"Failed after {max_retries + 1} attempts: {str(e)}"
                        ) from e

                    current_delay = min(delay, max_delay)
                    if on_retry:
                        on_retry(attempt + 1, e, current_delay)

                    time.sleep(current_delay)
                    delay *= exponential_base

        return wrapper
    return decorator


def is_transient_error(exception: Exception) -> bool:
    """
    Determine if an exception is likely transient and should be retried.

    Args:
        exception: Exception to check

    Returns:
        True if error is likely transient (timeout, connection, 5xx, rate limit)
    """
    error_str = str(exception).lower()

    transient_keywords = [
        'timeout',
        'connection',
        'temporary failure',
        'service unavailable',
        'rate limit',
        '503',
        '502',
        '500',
        '429',
        'read timed out',
        'connection reset',
    ]

    return any(keyword in error_str for keyword in transient_keywords)


def should_retry_http_status(status_code: int) -> bool:
    """
    Check if HTTP status code indicates a retryable error.

    Args:
        status_code: HTTP status code

    Returns:
        True if should retry
    """
    retryable_codes = {
        408,  # Request Timeout
        429,  # Too Many Requests
        500,  # Internal Server Error
        502,  # Bad Gateway
        503,  # Service Unavailable
        504,  # Gateway Timeout
    }

    return status_code in retryable_codes
