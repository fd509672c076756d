"""Local attendance marking.

A mark flips the cached row to attended and appends a pending sync entry
in one local transaction. Marking a row that is already attended changes
nothing and queues nothing.
"""
import logging
import uuid
from datetime import datetime

from ..core.receipt import emit_receipt, to_iso, utc_now
from ..core.schemas import ErrorKind, MarkResult, MarkStatus
from ..remote import RemoteStore
from ..store.local import LocalStore, get_store
from .sync import schedule_sync

logger = logging.getLogger("gatepass.mark")


def mark_local(
    qr_signature: str,
    operator_id: str,
    store: LocalStore | None = None,
    now: datetime | None = None,
) -> MarkResult:
    """Record a check-in on this device.

    Call verify_qr first; this still guards against unknown signatures.

    Args:
        qr_signature: Signature of the pass being checked in
        operator_id: Orbit ID of the scanning operator
        store: Optional LocalStore instance
        now: Timestamp override for marked_at

    Returns:
        MarkResult with status marked, already-marked or not-found
    """
    local = store if store is not None else get_store()
    moment = now or utc_now()

    status, registration, entry = local.mark_attended(
        qr_signature.strip(),
        operator_id,
        to_iso(moment),
        str(uuid.uuid4()),
    )

    if status == MarkStatus.NOT_FOUND:
        logger.warning("Mark requested for a signature that is not cached")
        return MarkResult(status=status, error_kind=ErrorKind.NOT_FOUND)

    if status == MarkStatus.MARKED:
        emit_receipt("attendance_mark", {
            "event_id": registration.event_id,
            "registration_id": registration.registration_id,
            "marked_by": operator_id,
            "queue_entry_id": entry.id,
        }, now=moment)

    return MarkResult(status=status, registration=registration, queue_entry=entry)


def mark_attendance(
    qr_signature: str,
    operator_id: str,
    remote: RemoteStore | None = None,
    online: bool = False,
    store: LocalStore | None = None,
    now: datetime | None = None,
) -> MarkResult:
    """Mark locally, then kick off a background sync when online.

    The sync outcome never reaches the caller; failed pushes stay queued.
    """
    local = store if store is not None else get_store()
    result = mark_local(qr_signature, operator_id, store=local, now=now)

    if result.success and remote is not None and online:
        result.sync_thread = schedule_sync(remote, local)

    return result
