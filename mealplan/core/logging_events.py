import logging
import logging.config
import json
import os
import time
import random
from contextlib import contextmanager

from mealplan.core.config import settings

# Configure a specific logger for structured events
# We don't propagate to the root logger to avoid double logging if root captures everything
structured_logger = logging.getLogger("mealplan.structured_log")
structured_logger.propagate = False

# Ensure it has a handler if not already configured (ideally configured in logging.ini)
if not structured_logger.handlers:
    handler = logging.StreamHandler()
    formatter = logging.Formatter("%(message)s")  # Raw message only (which will be JSON)
    handler.setFormatter(formatter)
    structured_logger.addHandler(handler)
    structured_logger.setLevel(logging.INFO)


def configure_logging(config_path: str = None) -> bool:
    """
    Load the logging configuration file if it exists.
    Returns True when a configuration was applied.
    """
    path = config_path or settings.LOGGING_CONFIG
    if not os.path.exists(path):
        return False
    logging.config.fileConfig(path, disable_existing_loggers=False)
    return True


def should_log(failed: bool, duration_ms: float) -> bool:
    """
    Tail sampling rules for operation events.

    1. Always log failures
    2. Always log slow operations
    3. Randomly sample everything else
    """
    if failed:
        return True
    if duration_ms > settings.LOG_SLOW_OPERATION_MS:
        return True
    return random.random() < settings.LOG_SAMPLE_RATE


@contextmanager
def log_operation(operation: str, **context):
    """
    Wrap one engine operation and emit a single wide JSON event for it.

    The context keyword arguments (household_id, plan_id, ...) are copied
    into the event as-is. Exceptions are recorded and re-raised untouched.
    """
    start_time = time.perf_counter()
    error_details = None
    error_type = None

    try:
        yield
    except Exception as e:
        error_details = str(e)
        error_type = type(e).__name__
        raise
    finally:
        duration_ms = (time.perf_counter() - start_time) * 1000

        if should_log(error_type is not None, duration_ms):
            log_payload = {
                "timestamp": time.time(),
                "operation": operation,
                "duration_ms": round(duration_ms, 2),
                "error": error_details,
                "error_type": error_type,
                **context,
            }
            structured_logger.info(json.dumps(log_payload, default=str))
