from __future__ import annotations

import logging

from ..identity import IDENTITY_KEY
from ..store import TableStore
from ..tables import DOMAIN_TABLES
from .codec import Snapshot

logger = logging.getLogger(__name__)


def apply_snapshot(store: TableStore, snapshot: Snapshot) -> bool:
    """Replace the identity and all six tables with the snapshot's contents.

    The write is a single transaction: either everything lands or nothing
    does. Returns False when storage rejected the write. Callers must reload
    any in-memory state afterwards.
    """

    applied = store.replace_tables(
        {name: snapshot.table(name) for name in DOMAIN_TABLES},
        extra={IDENTITY_KEY: snapshot.user_id},
    )
    if applied:
        logger.info("applied snapshot for %s: %s", snapshot.user_id, snapshot.counts())
    return applied
