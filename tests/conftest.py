"""Pytest fixtures for GatePass tests.

FakeRemoteStore: in-memory document store with injectable failures
Fixtures: temporary LocalStore, fake remote, fixed clock, cached roster
"""
from datetime import datetime, timezone

import pytest

from gatepass.remote import (
    RemoteRecordExists,
    RemoteRecordNotFound,
    RemoteStoreError,
    document_key,
)
from gatepass.scanner import download_roster
from gatepass.store import LocalStore, set_store

T0 = datetime(2026, 3, 14, 9, 0, tzinfo=timezone.utc)


class FakeRemoteStore:
    """In-memory stand-in for the remote document store."""

    def __init__(self):
        self.docs: dict[str, dict] = {}
        self.fetch_error: Exception | None = None
        self.failing_keys: set[str] = set()
        self.updates: list[tuple[str, dict]] = []
        self.available = True

    def add(self, doc: dict) -> dict:
        self.docs[document_key(doc["eventId"], doc["registrationId"])] = dict(doc)
        return doc

    def fail_updates_for(self, event_id: str, registration_id: str) -> None:
        self.failing_keys.add(document_key(event_id, registration_id))

    def fetch_by_event(self, event_id: str) -> list[dict]:
        if self.fetch_error is not None:
            raise self.fetch_error
        return [dict(d) for d in self.docs.values() if d.get("eventId") == event_id]

    def update_by_key(self, event_id: str, registration_id: str, fields: dict) -> None:
        key = document_key(event_id, registration_id)
        if key in self.failing_keys:
            raise RemoteStoreError(f"simulated outage for {key}")
        if key not in self.docs:
            raise RemoteRecordNotFound(key)
        self.docs[key].update(fields)
        self.updates.append((key, dict(fields)))

    def put_registration(self, event_id: str, registration_id: str, record: dict) -> None:
        key = document_key(event_id, registration_id)
        signatures = {d.get("qrSignature") for d in self.docs.values()}
        if key in self.docs or record.get("qrSignature") in signatures:
            raise RemoteRecordExists(key)
        self.docs[key] = dict(record)

    def is_available(self) -> bool:
        return self.available

    def get(self, event_id: str, registration_id: str) -> dict:
        return self.docs[document_key(event_id, registration_id)]


def make_doc(
    event_id: str,
    registration_id: str,
    qr_signature: str,
    first_name: str = "Asha",
    **extra,
) -> dict:
    """Build a remote event_reg document."""
    doc = {
        "registrationId": registration_id,
        "orbitId": f"ORB-{registration_id}",
        "eventId": event_id,
        "qrSignature": qr_signature,
        "firstName": first_name,
        "lastName": "Rao",
        "email": f"{registration_id.lower()}@example.org",
        "collegeName": "City College",
        "attendanceStatus": False,
        "checkInTime": None,
    }
    doc.update(extra)
    return doc


@pytest.fixture
def t0() -> datetime:
    """Fixed download time for TTL arithmetic."""
    return T0


@pytest.fixture
def local_store(tmp_path) -> LocalStore:
    """Provide temporary LocalStore with tmp_path."""
    return LocalStore(tmp_path / "scanner.sqlite3")


@pytest.fixture(autouse=True)
def default_store(tmp_path):
    """Keep module-level default store off the user's home directory."""
    set_store(LocalStore(tmp_path / "default.sqlite3"))
    yield
    set_store(None)


@pytest.fixture
def remote() -> FakeRemoteStore:
    return FakeRemoteStore()


@pytest.fixture
def e1_remote(remote) -> FakeRemoteStore:
    """Remote holding three E1 registrations (one is 'abc123') and one E2."""
    remote.add(make_doc("E1", "REG-1", "abc123", first_name="Asha"))
    remote.add(make_doc("E1", "REG-2", "def456", first_name="Bilal"))
    remote.add(make_doc("E1", "REG-3", "0f9e8d", first_name="Chen"))
    remote.add(make_doc("E2", "REG-9", "e2sig9", first_name="Dana"))
    return remote


@pytest.fixture
def cached_e1(local_store, e1_remote, t0) -> LocalStore:
    """LocalStore with the E1 roster downloaded at t0."""
    result = download_roster("E1", "Orientation Night", e1_remote, store=local_store, now=t0)
    assert result.success
    return local_store
