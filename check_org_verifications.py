"""Print the most recent organization verification requests.

Read-only. Requires MONGO_URL (or MONGO_CREDENTIALS_FILE).
"""

from __future__ import annotations

import logging
import sys

import pytz
from pymongo import DESCENDING
from pymongo.errors import PyMongoError

from config import INSPECT_LIMIT, ORG_VERIFICATIONS_COLLECTION, display_tz
from database import StoreError, StoreReadError, connect, load_settings
from time_utils import format_timestamp, tz_name

logger = logging.getLogger(__name__)

EMPTY_MESSAGE = "No org verification requests found"


def recent_org_verifications(db, limit: int = INSPECT_LIMIT) -> list[dict]:
    try:
        cursor = (
            db[ORG_VERIFICATIONS_COLLECTION]
            .find({})
            .sort("created_at", DESCENDING)
            .limit(limit)
        )
        return list(cursor)
    except PyMongoError as exc:
        raise StoreReadError(f"Failed to query {ORG_VERIFICATIONS_COLLECTION}: {exc}") from exc


def render_verification(doc: dict, tz=None) -> str:
    lines = [
        "---",
        f"ID: {doc.get('_id')}",
        f"Organization: {doc.get('organization_name')}",
        f"User ID: {doc.get('user_id')}",
        f"Proof URL: {doc.get('proof_url')}",
        f"Status: {doc.get('status')}",
        f"Created: {format_timestamp(doc.get('created_at'), tz)}",
    ]
    return "\n".join(lines)


def check_org_verifications(db, out=None, tz=None, limit: int = INSPECT_LIMIT) -> int:
    """Print up to ``limit`` requests, newest first. Returns how many were printed."""

    out = out or sys.stdout
    tz = tz or pytz.UTC
    docs = recent_org_verifications(db, limit=limit)
    if not docs:
        print(EMPTY_MESSAGE, file=out)
        return 0

    print(f"Recent org verification requests (times in {tz_name(tz)}):", file=out)
    for doc in docs:
        print("", file=out)
        print(render_verification(doc, tz), file=out)
    return len(docs)


def main() -> int:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
    try:
        tz = display_tz()
    except pytz.UnknownTimeZoneError as exc:
        logger.error("unknown DISPLAY_TZ %s", exc)
        return 1

    try:
        db = connect(load_settings())
        check_org_verifications(db, tz=tz)
    except StoreError as exc:
        logger.exception("org verification check failed: %s", exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
