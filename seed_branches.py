#!/usr/bin/env python3
"""
Seed script to load branch settings (and optionally one stock sheet) into the database.
Usage:
    python seed_branches.py                          # branches from branches.json
    python seed_branches.py stock.xlsx 2             # also upload stock.xlsx to branch 2
"""

import json
import sys
from pathlib import Path

# Add backend directory to path
backend_dir = Path(__file__).parent / "backend"
sys.path.insert(0, str(backend_dir))

from app.core.log_config import setup_logging
from app.db.session import SessionLocal
from app.db.init_db import init_db
from app.services.ingestion import IngestionPipeline
from app.services.settings_service import BRANCH_KEYS, get_branch, update_setting


def seed_branches():
    """Load branch name/phone/address from JSON file into settings"""

    json_file = Path(__file__).parent / "branches.json"
    if not json_file.exists():
        json_file = Path(__file__).parent / "branches.example.json"
    if not json_file.exists():
        print("Error: branches.json not found!")
        return False

    with open(json_file, "r", encoding="utf-8") as f:
        data = json.load(f)

    # Ensure tables exist
    init_db()

    db = SessionLocal()
    try:
        for branch in data.get("branches", []):
            pharmacy_id = int(branch["id"])
            for key in BRANCH_KEYS:
                if branch.get(key):
                    update_setting(db, key, branch[key], pharmacy_id)
            print(f"✓ Dorixona {pharmacy_id}: {branch.get('name', '')}")
        return True
    finally:
        db.close()


def seed_stock(xlsx_path: Path, pharmacy_id: int):
    """Run one stock sheet through the same pipeline the bot uses"""

    if not xlsx_path.exists():
        print(f"Error: {xlsx_path} not found!")
        return False

    db = SessionLocal()
    try:
        branch = get_branch(db, pharmacy_id)
        if not branch.ready_for_upload:
            print(f"❌ Dorixona {pharmacy_id}: phone/address not set. Add them to branches.json first.")
            return False

        outcome = IngestionPipeline(db).ingest_workbook(
            xlsx_path.read_bytes(),
            phone=branch.phone,
            address=branch.address,
            pharmacy_id=pharmacy_id,
            file_name=xlsx_path.name,
        )
        if not outcome.ok:
            print(f"❌ Upload failed: {outcome.error}")
            return False

        summary = outcome.summary
        print(f"✓ Saved {summary.saved} medicines to {branch.name}")
        print(f"  Duplicates: {summary.duplicates}, skipped rows: {summary.skipped_rows}")
        for category, count in sorted(summary.category_counts.items()):
            print(f"  {category}: {count}")
        return True
    finally:
        db.close()


if __name__ == "__main__":
    setup_logging()
    ok = seed_branches()
    if ok and len(sys.argv) == 3:
        ok = seed_stock(Path(sys.argv[1]), int(sys.argv[2]))
    sys.exit(0 if ok else 1)
