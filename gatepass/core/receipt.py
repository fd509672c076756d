"""Core receipt primitives shared by every GatePass module.

Functions:
    sha256_hex: SHA-256 hex digest of bytes, str or dict
    emit_receipt: Emit receipt with required fields to the receipts logger
    utc_now: Current time as an aware UTC datetime
    to_iso / from_iso: Timestamp conversion in the 'Z' suffixed format
    StopRule: Exception for stoprule triggers
"""
import hashlib
import json
import logging
from datetime import datetime, timezone

receipt_log = logging.getLogger("gatepass.receipts")


class StopRule(Exception):
    """Raised when stoprule triggers. Never catch silently."""
    pass


def sha256_hex(data: bytes | str | dict) -> str:
    """Compute SHA-256 hex digest.

    Pure function with no side effects. Dicts are serialised with sorted
    keys and compact separators so equal dicts hash equally.

    Args:
        data: Bytes, string, or dict to hash

    Returns:
        64-char lowercase hex digest
    """
    if isinstance(data, dict):
        data = json.dumps(data, sort_keys=True, separators=(",", ":"))
    if isinstance(data, str):
        data = data.encode("utf-8")
    return hashlib.sha256(data).hexdigest()


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_iso(moment: datetime) -> str:
    """Format an aware datetime as fixed-width ISO-8601 with a 'Z' suffix.

    Fixed width keeps stored timestamps ordered under string comparison.
    """
    return moment.astimezone(timezone.utc).isoformat(timespec="microseconds").replace("+00:00", "Z")


def from_iso(value: str) -> datetime:
    """Parse an ISO-8601 timestamp. Naive values are taken as UTC."""
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def emit_receipt(receipt_type: str, data: dict, now: datetime | None = None) -> dict:
    """Emit a receipt with standard required fields.

    Writes one sorted-key JSON line to the gatepass.receipts logger.

    Args:
        receipt_type: Type of receipt (scan, attendance_mark, sync_batch, ...)
        data: Receipt payload data
        now: Timestamp override (default: current UTC time)

    Returns:
        Complete receipt dict with receipt_type, ts, payload_hash
    """
    payload_hash = sha256_hex(json.dumps(data, sort_keys=True, default=str))

    receipt = {
        "receipt_type": receipt_type,
        "ts": to_iso(now or utc_now()),
        "payload_hash": payload_hash,
        **data
    }

    receipt_log.info(json.dumps(receipt, sort_keys=True, default=str))

    return receipt
