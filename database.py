"""MongoDB access for the maintenance jobs.

Nothing here connects at import time. Entry points build their own handle with
``connect(load_settings())`` and pass it down, so the job functions only ever
see a ``db`` object and tests can hand them fakes.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from typing import Mapping

from pymongo import MongoClient
from pymongo.errors import PyMongoError

from config import DEFAULT_MONGO_DB, DEFAULT_TIMEOUT_MS

logger = logging.getLogger(__name__)


class StoreError(RuntimeError):
    """Base class for document store failures."""


class StoreInitError(StoreError):
    """Credentials could not be loaded or the store is unreachable."""


class StoreReadError(StoreError):
    pass


class StoreWriteError(StoreError):
    pass


@dataclass(frozen=True)
class StoreSettings:
    mongo_url: str
    database: str = DEFAULT_MONGO_DB
    timeout_ms: int = DEFAULT_TIMEOUT_MS


def _read_descriptor(path: str) -> dict:
    try:
        with open(path, encoding="utf-8") as fh:
            descriptor = json.load(fh)
    except OSError as exc:
        raise StoreInitError(f"Cannot read credentials file {path}") from exc
    except ValueError as exc:
        raise StoreInitError(f"Credentials file {path} is not valid JSON") from exc
    if not isinstance(descriptor, dict) or not descriptor.get("mongo_url"):
        raise StoreInitError(f"Credentials file {path} has no mongo_url")
    return descriptor


def load_settings(environ: Mapping[str, str] | None = None) -> StoreSettings:
    """Resolve connection settings.

    A credentials descriptor (``MONGO_CREDENTIALS_FILE``) wins over the ambient
    ``MONGO_URL``. ``MONGO_DB`` overrides the descriptor's ``database`` key.
    """

    env = os.environ if environ is None else environ

    descriptor = {}
    cred_path = env.get("MONGO_CREDENTIALS_FILE")
    if cred_path:
        descriptor = _read_descriptor(cred_path)

    mongo_url = descriptor.get("mongo_url") or env.get("MONGO_URL")
    if not mongo_url:
        raise StoreInitError("MONGO_URL or MONGO_CREDENTIALS_FILE is required")

    database = env.get("MONGO_DB") or descriptor.get("database") or DEFAULT_MONGO_DB

    raw_timeout = env.get("MONGO_TIMEOUT_MS", str(DEFAULT_TIMEOUT_MS))
    try:
        timeout_ms = int(raw_timeout)
    except ValueError as exc:
        raise StoreInitError(f"MONGO_TIMEOUT_MS must be an integer, got {raw_timeout!r}") from exc
    if timeout_ms <= 0:
        raise StoreInitError(f"MONGO_TIMEOUT_MS must be positive, got {timeout_ms}")

    return StoreSettings(mongo_url=mongo_url, database=database, timeout_ms=timeout_ms)


def connect(settings: StoreSettings, client_factory=MongoClient):
    """Return a database handle, failing fast when the server can't be reached.

    The ``ping`` makes "store unreachable" an initialization error instead of
    surfacing later as a read error on what looks like an empty collection.
    """

    try:
        client = client_factory(settings.mongo_url, serverSelectionTimeoutMS=settings.timeout_ms)
        client.admin.command("ping")
    except (ValueError, TypeError) as exc:
        # MongoClient validates options with plain ValueError/TypeError
        raise StoreInitError(f"Invalid connection settings: {exc}") from exc
    except PyMongoError as exc:
        raise StoreInitError(f"Document store unreachable: {exc}") from exc
    logger.info("connected database=%s", settings.database)
    return client[settings.database]


def commit_batch(collection, ops: list):
    """Apply ``ops`` to ``collection`` in a single transaction.

    Either every update lands or none does. An empty ``ops`` list issues no
    write and returns ``None``.
    """

    if not ops:
        return None

    # One attempt only, no retries
    client = collection.database.client
    try:
        with client.start_session() as session, session.start_transaction():
            return collection.bulk_write(ops, ordered=True, session=session)
    except PyMongoError as exc:
        raise StoreWriteError(f"Batch commit of {len(ops)} updates failed: {exc}") from exc
