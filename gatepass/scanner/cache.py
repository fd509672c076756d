"""Registration snapshot cache.

Pulls an event's full roster from the remote store into the local store
and tracks its freshness. A download replaces the previous snapshot for
that event as a whole or not at all.
"""
import logging
import sqlite3
from datetime import datetime

from ..core.constants import CACHE_TTL_HOURS, STALE_CACHE_MESSAGE
from ..core.receipt import emit_receipt, to_iso, utc_now
from ..core.schemas import (
    CachedRegistration,
    CacheMetadata,
    DownloadResult,
    ErrorKind,
    ReadyStatus,
)
from ..remote import RemoteStore, RemoteStoreError
from ..store.local import LocalStore, get_store

logger = logging.getLogger("gatepass.cache")


class RosterError(ValueError):
    """Remote snapshot is not fit to cache."""
    pass


def _validate_snapshot(event_id: str, registrations: list[CachedRegistration]) -> None:
    seen = set()
    for reg in registrations:
        if not reg.qr_signature or not reg.registration_id:
            raise RosterError("Registration record missing qrSignature or registrationId")
        if reg.event_id != event_id:
            raise RosterError(
                f"Registration {reg.registration_id} belongs to event {reg.event_id}, not {event_id}"
            )
        if reg.qr_signature in seen:
            raise RosterError(f"Duplicate qrSignature in snapshot for registration {reg.registration_id}")
        seen.add(reg.qr_signature)


def download_roster(
    event_id: str,
    event_name: str,
    remote: RemoteStore,
    store: LocalStore | None = None,
    now: datetime | None = None,
    ttl_hours: float = CACHE_TTL_HOURS,
) -> DownloadResult:
    """Fetch every registration for event_id and replace the local snapshot.

    Re-running against the same remote state yields the same cache.

    Args:
        event_id: Event to download
        event_name: Display name stored in the cache metadata
        remote: Remote document store
        store: Optional LocalStore instance
        now: Timestamp override
        ttl_hours: Cache validity window

    Returns:
        DownloadResult with the cached record count, or the failure reason
        with count 0 and the previous snapshot untouched
    """
    local = store if store is not None else get_store()
    moment = now or utc_now()

    try:
        docs = remote.fetch_by_event(event_id)
        registrations = [CachedRegistration.from_remote(doc) for doc in docs]
        _validate_snapshot(event_id, registrations)
        count = local.replace_event_roster(
            event_id, event_name, registrations, to_iso(moment), ttl_hours
        )
    except (RemoteStoreError, RosterError, OSError, sqlite3.Error) as e:
        logger.warning(f"Roster download for {event_id} failed: {e}")
        emit_receipt("roster_download_failed", {
            "event_id": event_id,
            "reason": str(e),
        }, now=moment)
        return DownloadResult(
            success=False,
            count=0,
            error=str(e),
            error_kind=ErrorKind.STORE_ERROR,
        )

    emit_receipt("roster_download", {
        "event_id": event_id,
        "event_name": event_name,
        "record_count": count,
        "ttl_hours": ttl_hours,
    }, now=moment)

    return DownloadResult(success=True, count=count)


def get_metadata(event_id: str, store: LocalStore | None = None) -> CacheMetadata | None:
    local = store if store is not None else get_store()
    return local.get_metadata(event_id)


def is_cache_valid(
    event_id: str,
    store: LocalStore | None = None,
    now: datetime | None = None,
) -> bool:
    """True while now is before the event's cache expiry. False if never cached."""
    meta = get_metadata(event_id, store)
    if meta is None:
        return False
    return meta.is_valid(now or utc_now())


def check_ready(
    event_id: str,
    store: LocalStore | None = None,
    now: datetime | None = None,
) -> ReadyStatus:
    """Decide whether scanning may start for event_id.

    A missing or expired roster is reported as STALE_CACHE so the operator
    is prompted to re-download. Nothing is downloaded from here.
    """
    meta = get_metadata(event_id, store)
    if meta is None or not meta.is_valid(now or utc_now()):
        return ReadyStatus(
            event_id=event_id,
            ready=False,
            message=STALE_CACHE_MESSAGE,
            metadata=meta,
            error_kind=ErrorKind.STALE_CACHE,
        )

    return ReadyStatus(
        event_id=event_id,
        ready=True,
        message=f"{meta.record_count} registrations cached for {meta.event_name}",
        metadata=meta,
    )


def list_for_event(event_id: str, store: LocalStore | None = None) -> list[CachedRegistration]:
    local = store if store is not None else get_store()
    return local.registrations_for_event(event_id)


def attendance_stats(event_id: str, store: LocalStore | None = None) -> dict:
    """Aggregate counts for the attendance dashboard.

    Returns:
        Dict with event_id, total, attended, pending_sync
    """
    local = store if store is not None else get_store()
    regs = local.registrations_for_event(event_id)
    return {
        "event_id": event_id,
        "total": len(regs),
        "attended": sum(1 for r in regs if r.attendance_marked),
        "pending_sync": local.count_pending(event_id),
    }


def clear_event_cache(event_id: str, store: LocalStore | None = None) -> int:
    """Drop one event's roster and metadata. Returns rows removed."""
    local = store if store is not None else get_store()
    removed = local.delete_event(event_id)
    emit_receipt("event_cache_cleared", {
        "event_id": event_id,
        "removed_count": removed,
    })
    return removed
