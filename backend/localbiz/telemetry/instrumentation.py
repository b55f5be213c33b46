from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from functools import wraps
from inspect import iscoroutinefunction
from time import perf_counter
from typing import Callable, ParamSpec, TypeVar

from .trace import SEARCH_STAGES, get_current_trace

P = ParamSpec("P")
R = TypeVar("R")

logger = logging.getLogger(__name__)


@contextmanager
def timed_stage(stage: str) -> Iterator[None]:
    if stage not in SEARCH_STAGES:
        raise ValueError(f"Unknown search stage: {stage}")
    started = perf_counter()
    try:
        yield
    finally:
        elapsed_ms = (perf_counter() - started) * 1000.0
        trace = get_current_trace()
        if trace is not None:
            trace.record_stage_time(stage, elapsed_ms)
        logger.debug("stage=%s elapsed_ms=%.3f", stage, elapsed_ms)


def instrument_stage(stage: str) -> Callable[[Callable[P, R]], Callable[P, R]]:
    def decorator(func: Callable[P, R]) -> Callable[P, R]:
        if iscoroutinefunction(func):

            @wraps(func)
            async def async_wrapper(*args: P.args, **kwargs: P.kwargs):  # type: ignore[misc]
                with timed_stage(stage):
                    return await func(*args, **kwargs)

            return async_wrapper  # type: ignore[return-value]

        @wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            with timed_stage(stage):
                return func(*args, **kwargs)

        return wrapper

    return decorator
