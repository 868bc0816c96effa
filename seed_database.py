#!/usr/bin/env python
"""
Seed the record store with sample records for testing.

This script writes a small portfolio plus the chase, reviewer and final
distribution lists to whichever store the settings select, so the
dashboard and the scheduled batches have something to work on.
"""

import json
import sys

from cadence.db import DBRecordStore
from cadence.models import Record, Role
from cadence.settings import settings
from cadence.store import JsonRecordStore

# Sample portfolio and distribution lists
SAMPLE_RECORDS = [
    Record("acme", "Acme Robotics", "Ann Lee", "ann@example.com"),
    Record("widget", "Widget Industries", "Matt/Shiju", ["matt@example.com", "shiju@example.com"]),
    Record("techstart", "TechStart", "Maria Garcia", "maria@example.com"),
    Record("sunrise", "Sunrise Ventures", "Elizabeth Chen", "liz@example.com"),
    Record("pacific", "Pacific Group", "Susan Taylor", "susan@example.com"),
    Record("chase-1", "Chase Team", "Ivan", "ivan@example.com", role=Role.CHASE),
    Record("review-1", "Review Team", "Neil", "neil@example.com", role=Role.REVIEWER),
    Record("review-2", "Review Team", "Karl Weiss", "karl@example.com", role=Role.REVIEWER),
    Record("final-1", "Final Report", "Rick", "rick@example.com", role=Role.FINAL),
]

# Replace the sample set with sample_reminders.json if available
try:
    with open("sample_reminders.json", "r") as f:
        SAMPLE_RECORDS = [Record.from_dict(item) for item in json.load(f)]
except (FileNotFoundError, json.JSONDecodeError):
    # Continue with default sample records
    pass


def seed_store():
    """Write the sample records to the configured store."""
    if settings.store_backend == "db":
        store = DBRecordStore(settings.db_url)
    else:
        store = JsonRecordStore(settings.records_file)

    store.save(SAMPLE_RECORDS)
    for rec in SAMPLE_RECORDS:
        print(f"Added: {rec.name} ({rec.role}, {rec.owner})")

    print(f"\nAdded {len(SAMPLE_RECORDS)} records to the {settings.store_backend} store!")


if __name__ == "__main__":
    print("Seeding record store with sample records...")
    seed_store()

    print("\nDone! You can now run the API server with:")
    print("uvicorn api.main:app --reload --port 3001")
    sys.exit(0)
