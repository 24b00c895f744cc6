from __future__ import annotations

import logging
import secrets
import string
import time

from .db import KeyValueStorage
from .errors import StorageReadError, StorageWriteError

logger = logging.getLogger(__name__)

IDENTITY_KEY = "user_id"
_BASE36 = string.digits + string.ascii_lowercase


def generate_identity() -> str:
    """Return a new identity like ``user_1704412800000_k3j9x0q2m``."""

    millis = int(time.time() * 1000)
    suffix = "".join(secrets.choice(_BASE36) for _ in range(9))
    return f"user_{millis}_{suffix}"


class IdentityProvider:
    def __init__(self, storage: KeyValueStorage) -> None:
        self.storage = storage

    def get_identity(self) -> str | None:
        """Return the persisted identity, creating it on first use.

        Storage failures are not raised; the call returns None instead.
        """

        try:
            current = self.storage.get(IDENTITY_KEY)
        except StorageReadError as exc:
            logger.warning("identity read failed", exc_info=exc)
            return None
        if current:
            return current
        created = generate_identity()
        try:
            self.storage.set(IDENTITY_KEY, created)
        except StorageWriteError as exc:
            logger.warning("identity write failed", exc_info=exc)
            return None
        logger.info("created identity %s", created)
        return created

    def set_identity(self, value: str) -> None:
        try:
            self.storage.set(IDENTITY_KEY, value)
        except StorageWriteError as exc:
            logger.warning("identity write failed", exc_info=exc)
