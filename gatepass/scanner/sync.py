"""Sync reconciler: push pending attendance marks to the remote store.

Each pending entry becomes one last-write-wins overwrite of the remote
registration's attendance fields. Entries are independent: a failed push
stays pending with attempts bumped and the batch moves on. The remote
fields are a boolean and a timestamp, so two devices pushing the same
registration converge on the same state without coordination.
"""
import logging
import threading
from datetime import datetime

from ..core.receipt import emit_receipt, to_iso, utc_now
from ..core.schemas import SyncQueueEntry, SyncResult
from ..remote import RemoteStore
from ..store.local import LocalStore, get_store

logger = logging.getLogger("gatepass.sync")

# One drain at a time per process
_sync_lock = threading.Lock()


def remote_fields(entry: SyncQueueEntry) -> dict:
    """Attendance fields written to the remote registration document."""
    return {
        "attendanceStatus": True,
        "checkInTime": entry.marked_at,
        "checkedInBy": entry.marked_by,
    }


def sync_pending(
    remote: RemoteStore,
    store: LocalStore | None = None,
    now: datetime | None = None,
    wait: bool = False,
) -> SyncResult:
    """Drain every pending queue entry against the remote store.

    Keeps draining until the queue holds nothing new, so marks queued while
    the drain runs are pushed too. Each entry is tried at most once per call.
    Returns immediately with skipped=True when another drain is running,
    unless wait is set.

    Args:
        remote: Remote document store
        store: Optional LocalStore instance
        now: Timestamp override for synced_at
        wait: Block until a running drain finishes instead of skipping

    Returns:
        SyncResult with synced and failed counts
    """
    if not _sync_lock.acquire(blocking=wait):
        logger.debug("Sync already in progress, skipping")
        return SyncResult(skipped=True)

    try:
        local = store if store is not None else get_store()
        result = SyncResult()
        attempted: set[str] = set()

        while True:
            batch = [e for e in local.pending_entries() if e.id not in attempted]
            if not batch:
                break

            for entry in batch:
                attempted.add(entry.id)
                try:
                    remote.update_by_key(entry.event_id, entry.registration_id, remote_fields(entry))
                except Exception as e:
                    attempts = local.record_sync_failure(entry.id, str(e))
                    logger.warning(
                        f"Sync of {entry.event_id}/{entry.registration_id} failed "
                        f"(attempt {attempts}): {e}"
                    )
                    result.failed += 1
                    continue

                if local.mark_synced(entry.id, to_iso(now or utc_now())):
                    result.synced += 1

        if result.synced or result.failed:
            emit_receipt("sync_batch", {
                "synced_count": result.synced,
                "failed_count": result.failed,
                "pending_count": local.count_pending(),
            }, now=now)

        return result
    finally:
        _sync_lock.release()


def _sync_in_background(remote: RemoteStore, store: LocalStore) -> None:
    try:
        # Wait for a running drain: it may have read the queue before this mark.
        sync_pending(remote, store, wait=True)
    except Exception:
        logger.exception("Background sync aborted; entries stay pending")


def schedule_sync(remote: RemoteStore, store: LocalStore | None = None) -> threading.Thread:
    """Start a fire-and-forget drain on a daemon thread.

    The caller never waits on it. The thread is returned so tests can join.
    """
    local = store if store is not None else get_store()
    thread = threading.Thread(
        target=_sync_in_background,
        args=(remote, local),
        name="gatepass-sync",
        daemon=True,
    )
    thread.start()
    return thread


def get_pending_count(event_id: str | None = None, store: LocalStore | None = None) -> int:
    local = store if store is not None else get_store()
    return local.count_pending(event_id)
