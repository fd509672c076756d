"""Remote document store capability and adapters.

The scanner core only ever talks to a RemoteStore:
    fetch_by_event: list the event_reg documents for one event
    update_by_key: overwrite attendance fields on one document
    put_registration: create a registration document (pass issuer only)
    is_available: whether the store can be reached right now

Documents are keyed "{event_id}_{registration_id}" and use camelCase fields.
"""
import fcntl
import json
import socket
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Protocol

from .core.constants import (
    CONNECT_TIMEOUT_SECONDS,
    DEFAULT_REMOTE_PATH,
    DEFAULT_REMOTE_PORT,
)


class RemoteStoreError(Exception):
    """Network or store failure talking to the remote document store."""
    pass


class RemoteRecordNotFound(RemoteStoreError):
    """Update targeted a composite key with no document behind it."""
    pass


class RemoteRecordExists(RemoteStoreError):
    """Create targeted a composite key or signature that is already taken."""
    pass


def document_key(event_id: str, registration_id: str) -> str:
    return f"{event_id}_{registration_id}"


class RemoteStore(Protocol):
    def fetch_by_event(self, event_id: str) -> list[dict]:
        ...

    def update_by_key(self, event_id: str, registration_id: str, fields: dict) -> None:
        ...

    def put_registration(self, event_id: str, registration_id: str, record: dict) -> None:
        ...

    def is_available(self) -> bool:
        ...


class FileRemoteStore:
    """Document store backed by one JSON file.

    Layout: {"event_reg": {doc_key: doc}, "qr_lookup": {signature: {...}}}.
    Reads take a shared lock, writes an exclusive lock.

    Attributes:
        path: Path to the JSON file
    """

    def __init__(self, path: str | Path = DEFAULT_REMOTE_PATH):
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        if not self.path.exists():
            self.path.write_text(json.dumps({"event_reg": {}, "qr_lookup": {}}))

    @contextmanager
    def _locked(self, exclusive: bool) -> Iterator[dict]:
        try:
            f = open(self.path, "r+")
        except OSError as e:
            raise RemoteStoreError(f"Cannot open remote store {self.path}: {e}") from e

        with f:
            fcntl.flock(f.fileno(), fcntl.LOCK_EX if exclusive else fcntl.LOCK_SH)
            try:
                try:
                    data = json.loads(f.read() or "{}")
                except json.JSONDecodeError as e:
                    raise RemoteStoreError(f"Corrupt remote store {self.path}: {e}") from e
                data.setdefault("event_reg", {})
                data.setdefault("qr_lookup", {})

                yield data

                if exclusive:
                    f.seek(0)
                    f.truncate()
                    f.write(json.dumps(data, sort_keys=True, indent=2))
                    f.flush()
            finally:
                fcntl.flock(f.fileno(), fcntl.LOCK_UN)

    def fetch_by_event(self, event_id: str) -> list[dict]:
        with self._locked(exclusive=False) as data:
            return [
                dict(doc) for doc in data["event_reg"].values()
                if doc.get("eventId") == event_id
            ]

    def update_by_key(self, event_id: str, registration_id: str, fields: dict) -> None:
        key = document_key(event_id, registration_id)
        with self._locked(exclusive=True) as data:
            doc = data["event_reg"].get(key)
            if doc is None:
                raise RemoteRecordNotFound(f"No registration document {key}")
            doc.update(fields)

    def put_registration(self, event_id: str, registration_id: str, record: dict) -> None:
        """Create a registration document. Never overwrites.

        Raises:
            RemoteRecordExists: If the key or the qrSignature is already stored
        """
        key = document_key(event_id, registration_id)
        signature = record.get("qrSignature")
        with self._locked(exclusive=True) as data:
            if key in data["event_reg"]:
                raise RemoteRecordExists(f"Registration document {key} already exists")
            if signature and signature in data["qr_lookup"]:
                raise RemoteRecordExists(f"Signature for {key} is already issued")
            data["event_reg"][key] = dict(record)
            if signature:
                data["qr_lookup"][signature] = {
                    "registrationId": registration_id,
                    "eventId": event_id,
                    "docId": key,
                    "createdAt": record.get("createdAt"),
                }

    def is_available(self) -> bool:
        """True when the store file can be opened and parsed."""
        try:
            with self._locked(exclusive=False):
                return True
        except RemoteStoreError:
            return False

    def get_document(self, event_id: str, registration_id: str) -> dict | None:
        with self._locked(exclusive=False) as data:
            doc = data["event_reg"].get(document_key(event_id, registration_id))
            return dict(doc) if doc is not None else None


def is_connected(
    host: str,
    port: int = DEFAULT_REMOTE_PORT,
    timeout: float = CONNECT_TIMEOUT_SECONDS,
) -> bool:
    """Check if the remote store endpoint is reachable.

    Args:
        host: Remote host
        port: Remote port
        timeout: Connection timeout in seconds

    Returns:
        True if a TCP connection could be opened
    """
    try:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.settimeout(timeout)
        result = sock.connect_ex((host, port))
        sock.close()
        return result == 0
    except (socket.error, OSError):
        return False
