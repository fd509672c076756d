"""QR signature verification against the local roster.

Hot path: one keyed lookup in the local store, no network I/O.
"""
import logging
import sqlite3

from ..core.constants import (
    INVALID_QR_MESSAGE,
    SCAN_ERROR_MESSAGE,
    UNKNOWN_TIME,
    VALID_QR_MESSAGE,
)
from ..core.receipt import emit_receipt, from_iso
from ..core.schemas import ErrorKind, ScanResult, ScanStatus
from ..store.local import LocalStore, get_store

logger = logging.getLogger("gatepass.verify")


def format_check_in_time(iso_string: str | None) -> str:
    """Render a check-in timestamp as e.g. '10:42 AM'."""
    if not iso_string:
        return UNKNOWN_TIME
    try:
        return from_iso(iso_string).strftime("%I:%M %p")
    except ValueError:
        return UNKNOWN_TIME


def verify_qr(
    qr_signature: str,
    event_id: str,
    store: LocalStore | None = None,
) -> ScanResult:
    """Check a scanned signature against the cached roster for event_id.

    Unknown signatures and signatures registered for another event get the
    same INVALID result and message, so a scan never reveals which event a
    pass belongs to.

    Args:
        qr_signature: Decoded QR payload (hex digest)
        event_id: Event being scanned
        store: Optional LocalStore instance

    Returns:
        ScanResult with status valid, already-scanned, invalid or error
    """
    local = store if store is not None else get_store()

    try:
        registration = local.get_registration(qr_signature.strip())
    except sqlite3.Error:
        logger.exception("Local store lookup failed during verification")
        return ScanResult(
            status=ScanStatus.ERROR,
            message=SCAN_ERROR_MESSAGE,
            error_kind=ErrorKind.STORE_ERROR,
        )

    if registration is None:
        result = ScanResult(
            status=ScanStatus.INVALID,
            message=INVALID_QR_MESSAGE,
            error_kind=ErrorKind.NOT_FOUND,
        )
    elif registration.event_id != event_id:
        result = ScanResult(
            status=ScanStatus.INVALID,
            message=INVALID_QR_MESSAGE,
            error_kind=ErrorKind.WRONG_EVENT,
        )
    elif registration.attendance_marked:
        result = ScanResult(
            status=ScanStatus.ALREADY_SCANNED,
            message=f"Already checked in at {format_check_in_time(registration.marked_at)}",
            registration=registration,
        )
    else:
        result = ScanResult(
            status=ScanStatus.VALID,
            message=VALID_QR_MESSAGE,
            registration=registration,
        )

    emit_receipt("scan", {
        "event_id": event_id,
        "status": result.status.value,
        "registration_id": registration.registration_id if result.registration else None,
    })

    return result
