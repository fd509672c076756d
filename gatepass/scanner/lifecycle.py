"""Cache lifecycle: reclaim local space at session start.

Expired rosters are dropped so nobody scans against yesterday's list, and
synced queue entries older than the retention window are pruned. Pending
entries are never pruned.
"""
from datetime import datetime, timedelta

from ..core.constants import SYNC_RETENTION_MINUTES
from ..core.receipt import emit_receipt, to_iso, utc_now
from ..store.local import LocalStore, get_store


def clear_expired_caches(
    store: LocalStore | None = None,
    now: datetime | None = None,
) -> list[str]:
    """Remove rows and metadata for every event past its expiry.

    Returns:
        Event IDs that were cleared
    """
    local = store if store is not None else get_store()
    moment = now or utc_now()

    cleared = []
    for meta in local.all_metadata():
        if meta.is_valid(moment):
            continue
        removed = local.delete_event(meta.event_id)
        cleared.append(meta.event_id)
        emit_receipt("cache_expired", {
            "event_id": meta.event_id,
            "expired_at": meta.expires_at,
            "removed_count": removed,
        }, now=moment)

    return cleared


def clear_old_synced_entries(
    store: LocalStore | None = None,
    now: datetime | None = None,
    retention_minutes: float = SYNC_RETENTION_MINUTES,
) -> int:
    """Delete synced queue entries older than the retention window.

    Returns:
        Number of entries deleted
    """
    local = store if store is not None else get_store()
    moment = now or utc_now()
    cutoff = to_iso(moment - timedelta(minutes=retention_minutes))

    deleted = local.delete_synced_before(cutoff)
    if deleted:
        emit_receipt("sync_pruned", {
            "cutoff": cutoff,
            "deleted_count": deleted,
        }, now=moment)

    return deleted


def initialize(
    store: LocalStore | None = None,
    now: datetime | None = None,
    retention_minutes: float = SYNC_RETENTION_MINUTES,
) -> dict:
    """Run both sweeps. Call before scanning begins."""
    cleared = clear_expired_caches(store, now)
    pruned = clear_old_synced_entries(store, now, retention_minutes)
    return {
        "expired_events": cleared,
        "pruned_entries": pruned,
    }
