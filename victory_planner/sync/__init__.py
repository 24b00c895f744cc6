from __future__ import annotations

from .codec import (
    Snapshot,
    decode_token,
    encode_snapshot,
    export_snapshot,
    import_snapshot,
    take_snapshot,
)
from .merge import apply_snapshot

__all__ = [
    "Snapshot",
    "apply_snapshot",
    "decode_token",
    "encode_snapshot",
    "export_snapshot",
    "import_snapshot",
    "take_snapshot",
]
