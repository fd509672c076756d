"""QR pass signatures.

A pass signature is the SHA-256 hex digest of the canonical payload

    orbitId|govIdLast4|firstName|eventId|randomToken

The field order is a wire contract: changing it breaks verification of
every pass issued before the change. The random token carries at least
128 bits of entropy and is discarded once hashed, so nothing that is
stored allows a working signature to be rebuilt.
"""
import secrets
from dataclasses import dataclass
from datetime import datetime
from typing import Callable

from .core.constants import (
    GOV_ID_SUFFIX_LENGTH,
    PAYLOAD_SEPARATOR,
    RANDOM_TOKEN_BYTES,
    REGISTRATION_ID_ALPHABET,
    REGISTRATION_ID_PREFIX,
    REGISTRATION_ID_SUFFIX_LENGTH,
)
from .core.receipt import emit_receipt, sha256_hex, to_iso, utc_now
from .remote import RemoteStore


def generate_random_token(nbytes: int = RANDOM_TOKEN_BYTES) -> str:
    """Return a hex token from the OS CSPRNG (nbytes * 8 bits of entropy)."""
    if nbytes < RANDOM_TOKEN_BYTES:
        raise ValueError(f"Random token needs at least {RANDOM_TOKEN_BYTES} bytes, got {nbytes}")
    return secrets.token_hex(nbytes)


def canonical_payload(
    orbit_id: str,
    gov_id_last4: str,
    first_name: str,
    event_id: str,
    random_token: str,
) -> str:
    """Join pass fields in wire order.

    Raises:
        ValueError: If a field is empty, contains the separator, or the
            government ID suffix is not exactly four characters
    """
    fields = {
        "orbit_id": orbit_id,
        "gov_id_last4": gov_id_last4,
        "first_name": first_name,
        "event_id": event_id,
        "random_token": random_token,
    }
    for name, value in fields.items():
        if not value:
            raise ValueError(f"{name} must not be empty")
        if PAYLOAD_SEPARATOR in value:
            raise ValueError(f"{name} must not contain '{PAYLOAD_SEPARATOR}'")
    if len(gov_id_last4) != GOV_ID_SUFFIX_LENGTH:
        raise ValueError(
            f"gov_id_last4 must be {GOV_ID_SUFFIX_LENGTH} characters, got {len(gov_id_last4)}"
        )

    return PAYLOAD_SEPARATOR.join(fields.values())


def qr_signature(
    orbit_id: str,
    gov_id_last4: str,
    first_name: str,
    event_id: str,
    random_token: str,
) -> str:
    """Compute the pass signature. Pure: same inputs, same digest."""
    return sha256_hex(canonical_payload(orbit_id, gov_id_last4, first_name, event_id, random_token))


def generate_registration_id(now: datetime | None = None) -> str:
    """Registration IDs look like REG-YYYYMMDD-XXXXXX."""
    moment = now or utc_now()
    suffix = "".join(
        secrets.choice(REGISTRATION_ID_ALPHABET)
        for _ in range(REGISTRATION_ID_SUFFIX_LENGTH)
    )
    return f"{REGISTRATION_ID_PREFIX}-{moment.strftime('%Y%m%d')}-{suffix}"


@dataclass
class PassRequest:
    orbit_id: str
    first_name: str
    last_name: str
    email: str
    college_name: str
    gov_id_last4: str
    event_id: str
    event_name: str
    event_date: str = ""
    gender: str = ""
    gov_id_type: str = ""


@dataclass
class IssuedPass:
    registration_id: str
    qr_signature: str
    record: dict


def issue_pass(
    request: PassRequest,
    remote: RemoteStore,
    now: datetime | None = None,
    token_factory: Callable[[], str] = generate_random_token,
) -> IssuedPass:
    """Register an attendee for an event and store the signed record.

    The government ID suffix and random token feed the digest only;
    neither is written to the registration record.

    Args:
        request: Attendee and event fields
        remote: Document store receiving the registration record
        now: Timestamp override
        token_factory: Source of the random token

    Returns:
        IssuedPass with registration_id, qr_signature and stored record

    Raises:
        ValueError: If a pass field is malformed
        RemoteRecordExists: If the registration ID or signature is already taken
    """
    moment = now or utc_now()
    signature = qr_signature(
        request.orbit_id,
        request.gov_id_last4,
        request.first_name,
        request.event_id,
        token_factory(),
    )
    registration_id = generate_registration_id(moment)

    record = {
        "registrationId": registration_id,
        "orbitId": request.orbit_id,
        "eventId": request.event_id,
        "eventName": request.event_name,
        "eventDate": request.event_date,
        "qrSignature": signature,
        "firstName": request.first_name,
        "lastName": request.last_name,
        "email": request.email,
        "collegeName": request.college_name,
        "gender": request.gender,
        "govIdType": request.gov_id_type,
        "attendanceStatus": False,
        "checkInTime": None,
        "createdAt": to_iso(moment),
    }
    remote.put_registration(request.event_id, registration_id, record)

    emit_receipt("pass_issued", {
        "event_id": request.event_id,
        "registration_id": registration_id,
        "orbit_id": request.orbit_id,
    }, now=moment)

    return IssuedPass(registration_id=registration_id, qr_signature=signature, record=record)
