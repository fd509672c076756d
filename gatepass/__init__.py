"""GatePass: offline-first QR check-in for club events.

Public API:
- Core: emit_receipt, StopRule, sha256_hex, result and record types
- Signature: qr_signature, issue_pass
- Scanner: download_roster, verify_qr, mark_local, sync_pending, initialize
- Storage: LocalStore, FileRemoteStore
"""
__version__ = "1.0.0"

from .config import ScannerConfig
from .core import (
    CachedRegistration,
    CacheMetadata,
    ErrorKind,
    MarkStatus,
    ScanStatus,
    StopRule,
    SyncQueueEntry,
    SyncStatus,
    emit_receipt,
    sha256_hex,
)
from .remote import (
    FileRemoteStore,
    RemoteRecordExists,
    RemoteRecordNotFound,
    RemoteStore,
    RemoteStoreError,
)
from .scanner import (
    check_ready,
    clear_expired_caches,
    clear_old_synced_entries,
    download_roster,
    initialize,
    is_cache_valid,
    list_for_event,
    mark_attendance,
    mark_local,
    sync_pending,
    verify_qr,
)
from .signature import IssuedPass, PassRequest, issue_pass, qr_signature
from .store import LocalStore

__all__ = [
    "__version__",
    "ScannerConfig",
    # Core
    "emit_receipt",
    "sha256_hex",
    "StopRule",
    "CachedRegistration",
    "CacheMetadata",
    "SyncQueueEntry",
    "ScanStatus",
    "SyncStatus",
    "MarkStatus",
    "ErrorKind",
    # Signature
    "qr_signature",
    "issue_pass",
    "PassRequest",
    "IssuedPass",
    # Scanner
    "download_roster",
    "is_cache_valid",
    "check_ready",
    "list_for_event",
    "verify_qr",
    "mark_local",
    "mark_attendance",
    "sync_pending",
    "clear_expired_caches",
    "clear_old_synced_entries",
    "initialize",
    # Storage
    "LocalStore",
    "FileRemoteStore",
    "RemoteStore",
    "RemoteStoreError",
    "RemoteRecordExists",
    "RemoteRecordNotFound",
]
