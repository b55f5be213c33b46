from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from sqlalchemy.orm import Session

from .business_repository import SqlBusinessRepository

logger = logging.getLogger(__name__)


def _root_path() -> Path:
    return Path(__file__).resolve().parents[2]


SEED_PATH = _root_path() / "data" / "seed_businesses.json"


def load_seed_documents(path: Path = SEED_PATH) -> list[dict[str, Any]]:
    payload = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(payload, list):
        raise ValueError(f"Seed file {path} must contain a JSON list")
    return [item for item in payload if isinstance(item, dict) and item.get("id")]


def seed_businesses(db: Session, documents: list[dict[str, Any]] | None = None) -> int:
    """Insert or refresh the sample listings; returns how many were written."""
    repository = SqlBusinessRepository(db)
    items = documents if documents is not None else load_seed_documents()
    for item in items:
        repository.upsert_document(str(item["id"]), item)
    db.commit()
    logger.info("Seeded %s businesses", len(items))
    return len(items)
