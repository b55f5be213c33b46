from __future__ import annotations

from typing import Callable

from .business_record_service import BusinessRecord

MIN_DESCRIPTION_LENGTH = 30

COMPLETENESS_CHECKS: tuple[tuple[str, Callable[[BusinessRecord], bool]], ...] = (
    ("name", lambda record: len(record.name) > 0),
    ("description", lambda record: len(record.description) > MIN_DESCRIPTION_LENGTH),
    ("phone", lambda record: len(record.phone) > 0),
    ("email", lambda record: len(record.email) > 0),
    ("website", lambda record: len(record.website) > 0),
    ("address", lambda record: len(record.address) > 0),
    ("city", lambda record: len(record.city) > 0),
    ("images", lambda record: len(record.images) > 0),
    ("location", lambda record: record.has_location),
    ("years_of_experience", lambda record: record.years_of_experience > 0),
)


def missing_profile_fields(record: BusinessRecord) -> list[str]:
    return [name for name, check in COMPLETENESS_CHECKS if not check(record)]


def completeness(record: BusinessRecord) -> float:
    satisfied = sum(1 for _name, check in COMPLETENESS_CHECKS if check(record))
    return satisfied / len(COMPLETENESS_CHECKS)
