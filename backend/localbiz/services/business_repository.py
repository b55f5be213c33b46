from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Protocol

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..errors import BackendUnavailable
from ..models import Business
from .business_record_service import BusinessRecord, normalize_business

logger = logging.getLogger(__name__)

_PERSISTED_FIELDS: tuple[str, ...] = (
    "name",
    "category",
    "category_id",
    "description",
    "city",
    "address",
    "lat",
    "lng",
    "is_verified",
    "is_featured",
    "is_premium",
    "is_remote",
    "rating",
    "review_count",
    "years_of_experience",
    "images",
    "phone",
    "email",
    "website",
    "owner_id",
)


@dataclass(frozen=True, slots=True)
class BusinessFilters:
    """Equality filters pushed down to storage. Nothing else is filtered there."""

    category_id: str | None = None
    remote_only: bool | None = None
    featured_only: bool | None = None
    limit: int | None = None


class BusinessRepository(Protocol):
    def fetch_businesses(self, filters: BusinessFilters) -> list[BusinessRecord]: ...

    def get_business(self, business_id: str) -> BusinessRecord | None: ...


def business_row_to_document(row: Business) -> dict[str, Any]:
    return {name: getattr(row, name) for name in _PERSISTED_FIELDS}


def record_from_row(row: Business) -> BusinessRecord:
    return normalize_business(business_row_to_document(row), business_id=row.id)


class SqlBusinessRepository:
    def __init__(self, db: Session) -> None:
        self.db = db

    def fetch_businesses(self, filters: BusinessFilters) -> list[BusinessRecord]:
        stmt = select(Business)
        if filters.category_id:
            stmt = stmt.where(Business.category_id == filters.category_id)
        if filters.remote_only:
            stmt = stmt.where(Business.is_remote.is_(True))
        if filters.featured_only:
            stmt = stmt.where(Business.is_featured.is_(True))
        if filters.limit is not None:
            stmt = stmt.limit(filters.limit)

        try:
            rows = self.db.execute(stmt).scalars().all()
        except SQLAlchemyError as exc:
            logger.exception("Failed to fetch businesses", extra={"filters": repr(filters)})
            raise BackendUnavailable("Business storage is unavailable") from exc
        return [record_from_row(row) for row in rows]

    def get_business(self, business_id: str) -> BusinessRecord | None:
        try:
            row = self.db.get(Business, business_id)
        except SQLAlchemyError as exc:
            logger.exception("Failed to load business", extra={"business_id": business_id})
            raise BackendUnavailable("Business storage is unavailable") from exc
        if row is None:
            return None
        return record_from_row(row)

    def upsert_document(self, business_id: str, document: dict[str, Any]) -> BusinessRecord:
        """Store a raw document after normalizing it; derived fields are never written."""
        record = normalize_business(document, business_id=business_id)
        row = self.db.get(Business, business_id)
        if row is None:
            row = Business(id=business_id)
            self.db.add(row)
        for name in _PERSISTED_FIELDS:
            setattr(row, name, getattr(record, name))
        self.db.flush()
        return record
