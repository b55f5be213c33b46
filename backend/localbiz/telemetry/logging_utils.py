from __future__ import annotations

import logging

from .trace import get_current_trace

PERF_LEVEL_NUM = 25
PERF_LEVEL_NAME = "PERF"
PERF_LOGGER_NAME = "localbiz.perf"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s [%(request_id)s] %(message)s"


class RequestIdFilter(logging.Filter):
    """Stamps each record with the id of the request being traced, or "-"."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "request_id"):
            trace = get_current_trace()
            record.request_id = str(trace.request_id) if trace is not None else "-"
        return True


def _perf(self: logging.Logger, message: str, *args, **kwargs) -> None:
    if self.isEnabledFor(PERF_LEVEL_NUM):
        self._log(PERF_LEVEL_NUM, message, args, **kwargs)


def register_perf_level() -> None:
    if logging.getLevelName(PERF_LEVEL_NUM) != PERF_LEVEL_NAME:
        logging.addLevelName(PERF_LEVEL_NUM, PERF_LEVEL_NAME)

    if not hasattr(logging.Logger, "perf"):
        setattr(logging.Logger, "perf", _perf)


def get_perf_logger() -> logging.Logger:
    register_perf_level()
    return logging.getLogger(PERF_LOGGER_NAME)


def resolve_log_level(value: str | None, fallback: int = logging.INFO) -> int:
    if not value:
        return fallback
    normalized = value.strip().upper()
    if normalized == PERF_LEVEL_NAME:
        return PERF_LEVEL_NUM
    resolved = logging.getLevelName(normalized)
    if isinstance(resolved, int):
        return resolved
    return fallback


def configure_logging(app_level: str, perf_level: str) -> None:
    register_perf_level()
    app_log_level = resolve_log_level(app_level, fallback=logging.INFO)
    perf_log_level = resolve_log_level(perf_level, fallback=PERF_LEVEL_NUM)

    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=app_log_level, format=LOG_FORMAT)
    else:
        root.setLevel(app_log_level)

    for handler in root.handlers:
        if not any(isinstance(existing, RequestIdFilter) for existing in handler.filters):
            handler.addFilter(RequestIdFilter())

    get_perf_logger().setLevel(perf_log_level)
