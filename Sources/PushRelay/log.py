"""
PushRelay logging.

PushRelay uses Python's logging module. Configure log level to control verbosity:

    import logging
    logging.getLogger('push_relay').setLevel(logging.DEBUG)    # Verbose output
    logging.getLogger('push_relay').setLevel(logging.WARNING)  # Errors only

or set PUSH_RELAY_LOG_LEVEL in the function environment.
"""

import logging
import os
import time
from functools import wraps

logger = logging.getLogger('push_relay')

# Detect if running in Google Cloud Functions environment
_IS_CLOUD_FUNCTION = os.environ.get('FUNCTION_TARGET') is not None or os.environ.get('K_SERVICE') is not None

if not logger.handlers:
    handler = logging.StreamHandler()

    if _IS_CLOUD_FUNCTION:
        # Cloud logging adds its own timestamps
        handler.setFormatter(logging.Formatter(
            '[PushRelay] %(levelname)s: %(message)s'
        ))
    else:
        handler.setFormatter(logging.Formatter(
            '%(asctime)s [PushRelay] %(levelname)s: %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        ))

    logger.addHandler(handler)

    log_level = os.environ.get('PUSH_RELAY_LOG_LEVEL', 'INFO').upper()
    logger.setLevel(getattr(logging, log_level, logging.INFO))


SLOW_OPERATION_MS = 1000


def log_performance(func):
    """Decorator to log function execution time for performance monitoring."""
    @wraps(func)
    def wrapper(*args, **kwargs):
        start_time = time.time()
        func_name = func.__name__
        logger.debug(f"→ {func_name}")

        try:
            result = func(*args, **kwargs)
        except Exception as e:
            elapsed_ms = (time.time() - start_time) * 1000
            logger.error(f"✗ {func_name} failed after {elapsed_ms:.2f}ms: {e}")
            raise

        elapsed_ms = (time.time() - start_time) * 1000
        logger.debug(f"← {func_name} completed in {elapsed_ms:.2f}ms")

        if elapsed_ms > SLOW_OPERATION_MS:
            logger.warning(f"⚠️ Slow operation: {func_name} took {elapsed_ms:.2f}ms")

        return result

    return wrapper


def mask_secret(value: str, visible: int = 6) -> str:
    """Shorten a secret for log output."""
    if not value:
        return '<empty>'
    return f"{value[:visible]}..."
