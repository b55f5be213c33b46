from __future__ import annotations

import os

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("TELEMETRY_ENABLED", "true")

from dataclasses import replace
from typing import Any, Callable

import pytest

from localbiz.services.business_record_service import BusinessRecord, normalize_business
from localbiz.services.business_repository import BusinessFilters
from localbiz.services.seed_service import load_seed_documents


class FakeRepository:
    """In-memory storage collaborator applying only the pushed-down equality filters."""

    def __init__(self, records: list[BusinessRecord]) -> None:
        self.records = records
        self.calls: list[BusinessFilters] = []

    def fetch_businesses(self, filters: BusinessFilters) -> list[BusinessRecord]:
        self.calls.append(filters)
        rows = [
            record
            for record in self.records
            if (not filters.category_id or record.category_id == filters.category_id)
            and (not filters.remote_only or record.is_remote)
            and (not filters.featured_only or record.is_featured)
        ]
        if filters.limit is not None:
            rows = rows[: filters.limit]
        return [replace(record) for record in rows]

    def get_business(self, business_id: str) -> BusinessRecord | None:
        for record in self.records:
            if record.id == business_id:
                return replace(record)
        return None


class FailingRepository:
    def __init__(self, error: Exception | None = None) -> None:
        self.error = error or ConnectionError("document store unreachable")

    def fetch_businesses(self, filters: BusinessFilters) -> list[BusinessRecord]:
        raise self.error

    def get_business(self, business_id: str) -> BusinessRecord | None:
        raise self.error


@pytest.fixture
def seed_records() -> list[BusinessRecord]:
    return [normalize_business(doc, business_id=doc["id"]) for doc in load_seed_documents()]


@pytest.fixture
def make_record() -> Callable[..., BusinessRecord]:
    def _make(**overrides: Any) -> BusinessRecord:
        overrides.setdefault("id", "biz-1")
        return BusinessRecord(**overrides)

    return _make


@pytest.fixture
def fake_repository(seed_records: list[BusinessRecord]) -> FakeRepository:
    return FakeRepository(seed_records)


@pytest.fixture
def repository_factory() -> Callable[[list[BusinessRecord]], FakeRepository]:
    return FakeRepository


@pytest.fixture
def failing_repository() -> FailingRepository:
    return FailingRepository()
