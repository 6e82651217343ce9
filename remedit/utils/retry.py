"""
Retry decorator for remote write commands
"""
import functools
import time
from .logging import log, warn
from .. import config as _cfg


def retried(fn):
    """Decorator: retry fn up to WRITE_RETRY_MAX times with exponential back-off.

    Settings are read at call time so apply_profile() can change them.
    """

    @functools.wraps(fn)
    def wrapper(*args, **kwargs):
        delay = _cfg.RETRY_BASE_DELAY
        attempts = max(1, _cfg.WRITE_RETRY_MAX)
        for attempt in range(1, attempts + 1):
            try:
                return fn(*args, **kwargs)
            except Exception as exc:
                if attempt == attempts:
                    raise
                warn(f"{fn.__name__} failed (attempt {attempt}/{attempts}): {exc}")
                log(f"  retrying in {delay:.0f}s …")
                time.sleep(delay)
                delay = min(delay * 2, 60)

    return wrapper
