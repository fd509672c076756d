"""Door scanner: offline roster cache, QR verification, attendance sync.

Usage:
    from gatepass.scanner import download_roster, verify_qr, mark_attendance

    # Before the doors open, while connected
    download_roster("E1", "Orientation", remote)

    # Per scan, no network needed
    result = verify_qr(signature, "E1")
    if result.status == ScanStatus.VALID:
        mark_attendance(signature, operator_id, remote, online=True)

    # Whenever connectivity allows
    sync_pending(remote)
"""
from gatepass.scanner.cache import (
    RosterError,
    attendance_stats,
    check_ready,
    clear_event_cache,
    download_roster,
    get_metadata,
    is_cache_valid,
    list_for_event,
)
from gatepass.scanner.verify import format_check_in_time, verify_qr
from gatepass.scanner.mark import mark_attendance, mark_local
from gatepass.scanner.sync import (
    get_pending_count,
    remote_fields,
    schedule_sync,
    sync_pending,
)
from gatepass.scanner.lifecycle import (
    clear_expired_caches,
    clear_old_synced_entries,
    initialize,
)

__all__ = [
    # Roster cache
    "RosterError",
    "download_roster",
    "is_cache_valid",
    "check_ready",
    "get_metadata",
    "list_for_event",
    "attendance_stats",
    "clear_event_cache",
    # Verification
    "verify_qr",
    "format_check_in_time",
    # Marking
    "mark_local",
    "mark_attendance",
    # Sync
    "sync_pending",
    "schedule_sync",
    "get_pending_count",
    "remote_fields",
    # Lifecycle
    "clear_expired_caches",
    "clear_old_synced_entries",
    "initialize",
]
