"""Core subpackage for GatePass primitives.

Exports all from receipt.py, schemas.py, and constants.py.
"""
from .receipt import StopRule, emit_receipt, from_iso, sha256_hex, to_iso, utc_now
from .schemas import (
    CachedRegistration,
    CacheMetadata,
    SyncQueueEntry,
    ScanStatus,
    SyncStatus,
    MarkStatus,
    ErrorKind,
    ScanResult,
    MarkResult,
    DownloadResult,
    SyncResult,
    ReadyStatus,
)
from .constants import (
    CACHE_TTL_HOURS,
    SYNC_RETENTION_MINUTES,
    RANDOM_TOKEN_BYTES,
    INVALID_QR_MESSAGE,
    STALE_CACHE_MESSAGE,
)

__all__ = [
    # Receipt primitives
    "StopRule",
    "emit_receipt",
    "sha256_hex",
    "utc_now",
    "to_iso",
    "from_iso",
    # Schemas
    "CachedRegistration",
    "CacheMetadata",
    "SyncQueueEntry",
    "ScanStatus",
    "SyncStatus",
    "MarkStatus",
    "ErrorKind",
    "ScanResult",
    "MarkResult",
    "DownloadResult",
    "SyncResult",
    "ReadyStatus",
    # Constants
    "CACHE_TTL_HOURS",
    "SYNC_RETENTION_MINUTES",
    "RANDOM_TOKEN_BYTES",
    "INVALID_QR_MESSAGE",
    "STALE_CACHE_MESSAGE",
]
