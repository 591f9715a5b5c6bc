#!/usr/bin/env python3
"""
Rewrite job records written by older app versions into the canonical shape.

Older clients stored:
- camelCase ids (jobId, customerId, selectedMechanicId)
- the cost under estimated_cost / estimatedCost / amount / cost
- the vehicle as a bare id, a free-text label or an untagged record

Jobs are read through the same model the API uses, so anything the API can
read is written back in tagged form. Unreadable documents are reported and
left alone.

Usage:
  python scripts/migrate_job_documents.py --dry-run
  python scripts/migrate_job_documents.py
"""

import argparse
import asyncio
import os
import sys

import certifi
from motor.motor_asyncio import AsyncIOMotorClient
from pydantic import ValidationError

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.core.config import get_settings
from app.jobs.models import canonical_job_updates


def get_client(uri: str) -> AsyncIOMotorClient:
    client_kwargs = {}
    if "mongodb+srv://" in uri or "ssl=true" in uri.lower():
        client_kwargs["tlsCAFile"] = certifi.where()
    return AsyncIOMotorClient(uri, **client_kwargs)


async def migrate(dry_run: bool) -> None:
    settings = get_settings()
    client = get_client(settings.MONGO_URI)
    jobs = client[settings.MONGO_DB_NAME]["jobs"]

    scanned = changed = unreadable = 0

    async for doc in jobs.find({}):
        scanned += 1
        try:
            updates = canonical_job_updates(doc)
        except ValidationError as e:
            unreadable += 1
            print(f"Skipping {doc['_id']}: {e.error_count()} validation error(s)")
            continue

        if not updates:
            continue
        if dry_run:
            changed += 1
            continue
        res = await jobs.update_one({"_id": doc["_id"]}, {"$set": updates})
        if res.modified_count:
            changed += 1

    print("Scanned:", scanned)
    print("Would change:" if dry_run else "Changed:", changed)
    print("Unreadable:", unreadable)
    client.close()


def main() -> None:
    parser = argparse.ArgumentParser()
    parser.add_argument("--dry-run", action="store_true", help="Count changes without updating Mongo")
    args = parser.parse_args()
    asyncio.run(migrate(args.dry_run))


if __name__ == "__main__":
    main()
