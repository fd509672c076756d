"""Record and result types for the door scanner.

Entities (device-local):
    CachedRegistration: one row per registration pass
    CacheMetadata: one row per downloaded event roster
    SyncQueueEntry: one row per local attendance mutation

Results (returned, never raised):
    ScanResult, MarkResult, DownloadResult, SyncResult, ReadyStatus
"""
from dataclasses import asdict, dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from threading import Thread

from .receipt import from_iso, to_iso


class ScanStatus(str, Enum):
    VALID = "valid"
    ALREADY_SCANNED = "already-scanned"
    INVALID = "invalid"
    ERROR = "error"


class SyncStatus(str, Enum):
    PENDING = "pending"
    SYNCED = "synced"


class MarkStatus(str, Enum):
    MARKED = "marked"
    ALREADY_MARKED = "already-marked"
    NOT_FOUND = "not-found"


class ErrorKind(str, Enum):
    """Failure taxonomy surfaced to callers as values, not exceptions."""
    NOT_FOUND = "not_found"
    WRONG_EVENT = "wrong_event"
    SYNC_FAILURE = "sync_failure"
    STALE_CACHE = "stale_cache"
    STORE_ERROR = "store_error"


@dataclass
class CachedRegistration:
    qr_signature: str
    registration_id: str
    orbit_id: str
    event_id: str
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    college_name: str = ""
    attendance_marked: bool = False
    marked_at: str | None = None
    marked_by: str | None = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @classmethod
    def from_remote(cls, doc: dict) -> "CachedRegistration":
        """Map a remote event_reg document onto a cache row."""
        return cls(
            qr_signature=doc.get("qrSignature") or "",
            registration_id=doc.get("registrationId") or "",
            orbit_id=doc.get("orbitId") or "",
            event_id=doc.get("eventId") or "",
            first_name=doc.get("firstName") or "",
            last_name=doc.get("lastName") or "",
            email=doc.get("email") or "",
            college_name=doc.get("collegeName") or "",
            attendance_marked=bool(doc.get("attendanceStatus")),
            marked_at=doc.get("checkInTime") or None,
            marked_by=doc.get("checkedInBy") or None,
        )

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class CacheMetadata:
    event_id: str
    event_name: str
    fetched_at: str
    record_count: int
    ttl_hours: float

    @property
    def expires_at(self) -> str:
        return to_iso(from_iso(self.fetched_at) + timedelta(hours=self.ttl_hours))

    def is_valid(self, now: datetime) -> bool:
        return now < from_iso(self.expires_at)

    def to_dict(self) -> dict:
        return {**asdict(self), "expires_at": self.expires_at}


@dataclass
class SyncQueueEntry:
    id: str
    registration_id: str
    event_id: str
    qr_signature: str
    marked_at: str
    marked_by: str
    sync_status: SyncStatus = SyncStatus.PENDING
    attempts: int = 0
    last_error: str | None = None
    synced_at: str | None = None

    def to_dict(self) -> dict:
        return {**asdict(self), "sync_status": self.sync_status.value}


@dataclass
class ScanResult:
    status: ScanStatus
    message: str
    registration: CachedRegistration | None = None
    error_kind: ErrorKind | None = None

    @property
    def success(self) -> bool:
        return self.status in (ScanStatus.VALID, ScanStatus.ALREADY_SCANNED)

    @property
    def marked_at(self) -> str | None:
        return self.registration.marked_at if self.registration else None

    def to_dict(self) -> dict:
        return {
            "status": self.status.value,
            "success": self.success,
            "message": self.message,
            "registration": self.registration.to_dict() if self.registration else None,
        }


@dataclass
class MarkResult:
    status: MarkStatus
    registration: CachedRegistration | None = None
    queue_entry: SyncQueueEntry | None = None
    error_kind: ErrorKind | None = None
    sync_thread: Thread | None = field(default=None, repr=False, compare=False)

    @property
    def success(self) -> bool:
        return self.status != MarkStatus.NOT_FOUND

    def to_dict(self) -> dict:
        return {
            "status": self.status.value,
            "success": self.success,
            "error_kind": self.error_kind.value if self.error_kind else None,
            "registration": self.registration.to_dict() if self.registration else None,
            "queue_entry": self.queue_entry.to_dict() if self.queue_entry else None,
            "sync_scheduled": self.sync_thread is not None,
        }


@dataclass
class DownloadResult:
    success: bool
    count: int
    error: str | None = None
    error_kind: ErrorKind | None = None

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "count": self.count,
            "error": self.error,
            "error_kind": self.error_kind.value if self.error_kind else None,
        }


@dataclass
class SyncResult:
    synced: int = 0
    failed: int = 0
    skipped: bool = False

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class ReadyStatus:
    event_id: str
    ready: bool
    message: str
    metadata: CacheMetadata | None = None
    error_kind: ErrorKind | None = None

    def to_dict(self) -> dict:
        return {
            "event_id": self.event_id,
            "ready": self.ready,
            "message": self.message,
            "error_kind": self.error_kind.value if self.error_kind else None,
            "metadata": self.metadata.to_dict() if self.metadata else None,
        }
