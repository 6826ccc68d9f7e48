"""
Performance monitoring utilities
Provides a decorator for timing service calls
"""

import functools
import logging
import time

from flask import current_app, has_app_context

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD = 1.0


def timer(func):
    """
    Decorator to time function execution

    Args:
        func: Function to time

    Returns:
        Wrapped function with timing
    """

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        start_time = time.perf_counter()
        try:
            result = func(*args, **kwargs)
        except Exception as e:
            execution_time = time.perf_counter() - start_time
            logger.error(
                f"Function {func.__name__} failed after {execution_time:.2f}s: {str(e)}"
            )
            raise

        execution_time = time.perf_counter() - start_time

        threshold = DEFAULT_THRESHOLD
        if has_app_context():
            threshold = current_app.config.get("SLOW_FUNCTION_THRESHOLD", threshold)

        # Log slow functions
        if execution_time > threshold:
            logger.warning(
                f"Slow function {func.__name__} took {execution_time:.2f}s "
                f"(threshold: {threshold}s)"
            )
        else:
            logger.debug(f"Function {func.__name__} executed in {execution_time:.2f}s")

        return result

    return wrapper
