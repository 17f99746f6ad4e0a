"""Stage timers for batch runs. Never used inside a confidence computation."""
import logging
import time
from contextlib import contextmanager
from functools import wraps
from typing import Dict, Optional

StageTimings = Dict[str, float]


def _record(logger: logging.Logger, stage: str, seconds: float, timings: Optional[StageTimings]) -> None:
    if timings is not None:
        timings[stage] = timings.get(stage, 0.0) + seconds
    logger.info("[timing] %s: %.3f s", stage, seconds)


@contextmanager
def section_timer(stage: str, logger: logging.Logger, timings: Optional[StageTimings] = None):
    """Time one stage; elapsed seconds accumulate into ``timings`` when given."""
    started = time.perf_counter()
    try:
        yield
    finally:
        _record(logger, stage, time.perf_counter() - started, timings)


def timeit(logger: logging.Logger, stage: str | None = None):
    """Decorator form of section_timer.

    On methods, the elapsed time also goes into ``self.timings`` when the
    instance carries such a dict.
    """
    def deco(fn):
        label = stage or fn.__qualname__

        @wraps(fn)
        def wrapper(*args, **kwargs):
            timings = getattr(args[0], "timings", None) if args else None
            started = time.perf_counter()
            try:
                return fn(*args, **kwargs)
            finally:
                _record(logger, label, time.perf_counter() - started,
                        timings if isinstance(timings, dict) else None)
        return wrapper
    return deco
