from __future__ import annotations

import pytest
from pydantic import ValidationError

from localbiz.config import Settings


def test_defaults() -> None:
    config = Settings(_env_file=None)
    assert config.max_result_limit == 100
    assert config.location_timeout_seconds == 10.0
    assert config.location_max_age_seconds == 60.0
    assert config.featured_result_limit == 6


def test_log_level_is_normalized(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LOCALBIZ_LOG_LEVEL", " debug ")
    assert Settings(_env_file=None).log_level == "DEBUG"


def test_invalid_log_level_is_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LOG_LEVEL", "chatty")
    with pytest.raises(ValidationError):
        Settings(_env_file=None)
