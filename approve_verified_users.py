"""One-time backfill: approve users whose email is verified but who were never
approved because of the signup bug.

Restores ``emailVerifiedAt != null => approved == true``. Safe to run multiple
times: a second run finds nothing to approve. All updates go out in a single
transaction after the scan finishes.

Usage:
    MONGO_URL=... python approve_verified_users.py
    DRY_RUN=1 MONGO_URL=... python approve_verified_users.py
"""

from __future__ import annotations

import json
import logging
import os
import sys

from pymongo import UpdateOne
from pymongo.errors import PyMongoError

from config import USERS_COLLECTION
from database import StoreError, StoreReadError, commit_batch, connect, load_settings

logger = logging.getLogger(__name__)

USER_PROJECTION = {"_id": 1, "email": 1, "emailVerifiedAt": 1, "approved": 1}


def needs_approval(user: dict) -> bool:
    return user.get("emailVerifiedAt") is not None and user.get("approved") is not True


def is_approved(user: dict) -> bool:
    return user.get("approved") is True


def build_approval_update(user: dict) -> UpdateOne:
    # updatedAt comes from the server clock, not ours
    return UpdateOne(
        {"_id": user["_id"]},
        {
            "$set": {"approved": True},
            "$currentDate": {"updatedAt": True},
        },
    )


def _load_users(users_collection) -> list[dict]:
    try:
        return list(users_collection.find({}, USER_PROJECTION))
    except PyMongoError as exc:
        raise StoreReadError(f"Failed to scan {USERS_COLLECTION}: {exc}") from exc


def approve_verified_users(db, dry_run: bool = False) -> dict:
    users_collection = db[USERS_COLLECTION]
    logger.info("[approve] scanning %s for verified users who are not approved", USERS_COLLECTION)

    users = _load_users(users_collection)

    ops = []
    already_approved = 0
    for user in users:
        if needs_approval(user):
            logger.info("[approve] approving user=%s email=%s", user["_id"], user.get("email"))
            ops.append(build_approval_update(user))
        elif is_approved(user):
            already_approved += 1

    if ops and not dry_run:
        commit_batch(users_collection, ops)
        logger.info("[approve] committed %s approvals", len(ops))
    elif ops:
        logger.info("[approve] dry run, %s approvals not written", len(ops))
    else:
        logger.info("[approve] no users needed approval")

    return {
        "approved": len(ops),
        "already_approved": already_approved,
        "total_users": len(users),
        "dry_run": dry_run,
    }


def main() -> int:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
    dry_run = os.environ.get("DRY_RUN", "0") == "1"

    try:
        db = connect(load_settings())
        summary = approve_verified_users(db, dry_run=dry_run)
    except StoreError as exc:
        logger.exception("approval backfill failed: %s", exc)
        return 1

    print(json.dumps(summary, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
