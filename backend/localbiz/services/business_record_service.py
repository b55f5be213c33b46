from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

MAX_RATING = 5.0

# Stored documents may use either the snake_case column names or the camelCase
# keys written by the document-store frontend.
_FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "category_id": ("category_id", "categoryId"),
    "is_verified": ("is_verified", "isVerified"),
    "is_featured": ("is_featured", "isFeatured"),
    "is_premium": ("is_premium", "isPremium"),
    "is_remote": ("is_remote", "isRemote"),
    "review_count": ("review_count", "reviewCount"),
    "years_of_experience": ("years_of_experience", "yearsOfExperience"),
    "owner_id": ("owner_id", "ownerId"),
}


@dataclass(frozen=True, slots=True)
class Coordinates:
    lat: float
    lng: float


@dataclass(slots=True)
class BusinessRecord:
    id: str
    name: str = ""
    category: str = ""
    category_id: str = ""
    description: str = ""
    city: str = ""
    address: str = ""
    lat: float = 0.0
    lng: float = 0.0
    is_verified: bool = False
    is_featured: bool = False
    is_premium: bool = False
    is_remote: bool = False
    rating: float = 0.0
    review_count: int = 0
    years_of_experience: int = 0
    images: list[str] = field(default_factory=list)
    phone: str = ""
    email: str = ""
    website: str = ""
    owner_id: str = ""
    # Request-scoped; never persisted.
    distance_km: float | None = None
    score: float | None = None

    @property
    def has_location(self) -> bool:
        return self.lat != 0 or self.lng != 0

    @property
    def coordinates(self) -> Coordinates | None:
        if not self.has_location:
            return None
        return Coordinates(lat=self.lat, lng=self.lng)


def _lookup(raw: Mapping[str, Any], key: str) -> Any:
    for alias in _FIELD_ALIASES.get(key, (key,)):
        if alias in raw and raw[alias] is not None:
            return raw[alias]
    return None


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    return str(value).strip()


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "y"}
    if isinstance(value, (int, float)):
        return value != 0
    return False


def _as_float(value: Any, default: float = 0.0) -> float:
    if value is None or isinstance(value, bool):
        return default
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        return default
    if math.isnan(parsed) or math.isinf(parsed):
        return default
    return parsed


def _as_non_negative_int(value: Any) -> int:
    parsed = _as_float(value)
    if parsed <= 0:
        return 0
    return int(parsed)


def _as_images(value: Any) -> list[str]:
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple)):
        return []
    return [item.strip() for item in value if isinstance(item, str) and item.strip()]


def clamp_rating(value: Any) -> float:
    return max(0.0, min(MAX_RATING, _as_float(value)))


def normalize_business(raw: Mapping[str, Any], business_id: str | None = None) -> BusinessRecord:
    """Build a complete BusinessRecord from a stored document.

    Missing fields take their defaults and malformed values are clamped rather
    than rejected: a bad rating ranks lower, it never fails the query.
    """
    resolved_id = business_id if business_id is not None else _as_text(raw.get("id"))
    return BusinessRecord(
        id=resolved_id,
        name=_as_text(_lookup(raw, "name")),
        category=_as_text(_lookup(raw, "category")),
        category_id=_as_text(_lookup(raw, "category_id")),
        description=_as_text(_lookup(raw, "description")),
        city=_as_text(_lookup(raw, "city")),
        address=_as_text(_lookup(raw, "address")),
        lat=_as_float(_lookup(raw, "lat")),
        lng=_as_float(_lookup(raw, "lng")),
        is_verified=_as_bool(_lookup(raw, "is_verified")),
        is_featured=_as_bool(_lookup(raw, "is_featured")),
        is_premium=_as_bool(_lookup(raw, "is_premium")),
        is_remote=_as_bool(_lookup(raw, "is_remote")),
        rating=clamp_rating(_lookup(raw, "rating")),
        review_count=_as_non_negative_int(_lookup(raw, "review_count")),
        years_of_experience=_as_non_negative_int(_lookup(raw, "years_of_experience")),
        images=_as_images(_lookup(raw, "images")),
        phone=_as_text(_lookup(raw, "phone")),
        email=_as_text(_lookup(raw, "email")),
        website=_as_text(_lookup(raw, "website")),
        owner_id=_as_text(_lookup(raw, "owner_id")),
    )
