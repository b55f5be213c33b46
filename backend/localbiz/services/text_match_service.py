from __future__ import annotations

from collections.abc import Sequence

from .business_record_service import BusinessRecord


def tokenize(query: str | None) -> list[str]:
    if not query:
        return []
    return [token for token in query.lower().split() if token]


def searchable_text(record: BusinessRecord) -> str:
    return f"{record.name} {record.category} {record.description} {record.city}".lower()


def match_fraction(record: BusinessRecord, terms: Sequence[str]) -> float:
    # No query: every listing matches equally well.
    if not terms:
        return 1.0
    haystack = searchable_text(record)
    matched = sum(1 for term in terms if term in haystack)
    return matched / len(terms)


def all_terms_present(record: BusinessRecord, terms: Sequence[str]) -> bool:
    haystack = searchable_text(record)
    return all(term in haystack for term in terms)
