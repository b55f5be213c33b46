"""Per-request tracing and performance logging for business search."""

from .instrumentation import instrument_stage, timed_stage
from .trace import (
    SEARCH_STAGES,
    SearchTrace,
    get_current_trace,
    reset_current_trace,
    set_current_trace,
)

__all__ = [
    "SEARCH_STAGES",
    "SearchTrace",
    "get_current_trace",
    "instrument_stage",
    "reset_current_trace",
    "set_current_trace",
    "timed_stage",
]
