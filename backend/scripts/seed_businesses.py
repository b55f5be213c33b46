from __future__ import annotations

import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from localbiz.config import settings
from localbiz.database import session_scope
from localbiz.services.seed_service import SEED_PATH, load_seed_documents, seed_businesses


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed sample businesses into the directory database.")
    parser.add_argument("--file", type=Path, default=SEED_PATH, help="JSON list of business documents")
    args = parser.parse_args()

    if settings.environment == "production":
        raise SystemExit("Seeding is only allowed outside production.")

    documents = load_seed_documents(args.file)
    with session_scope() as session:
        seeded = seed_businesses(session, documents)
    print(f"Seeded businesses: {seeded}")


if __name__ == "__main__":
    main()
