"""Device-local persistent store for the door scanner.

Backed by a single SQLite file with three tables:
    registrations: cached roster rows keyed by qr_signature
    cache_metadata: one row per downloaded event roster
    sync_queue: attendance mutations awaiting push to the remote store

Every public method runs in its own transaction on a fresh connection,
so the background sync thread never shares a connection with the scan loop.
"""
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from ..core.constants import DEFAULT_DB_PATH, SQLITE_BUSY_TIMEOUT_SECONDS
from ..core.receipt import StopRule
from ..core.schemas import (
    CachedRegistration,
    CacheMetadata,
    MarkStatus,
    SyncQueueEntry,
    SyncStatus,
)

SCHEMA = """
CREATE TABLE IF NOT EXISTS registrations (
    qr_signature TEXT PRIMARY KEY,
    registration_id TEXT NOT NULL,
    orbit_id TEXT NOT NULL,
    event_id TEXT NOT NULL,
    first_name TEXT NOT NULL DEFAULT '',
    last_name TEXT NOT NULL DEFAULT '',
    email TEXT NOT NULL DEFAULT '',
    college_name TEXT NOT NULL DEFAULT '',
    attendance_marked INTEGER NOT NULL DEFAULT 0,
    marked_at TEXT,
    marked_by TEXT
);
CREATE INDEX IF NOT EXISTS idx_registrations_event ON registrations (event_id);

CREATE TABLE IF NOT EXISTS cache_metadata (
    event_id TEXT PRIMARY KEY,
    event_name TEXT NOT NULL,
    fetched_at TEXT NOT NULL,
    record_count INTEGER NOT NULL,
    ttl_hours REAL NOT NULL
);

CREATE TABLE IF NOT EXISTS sync_queue (
    id TEXT PRIMARY KEY,
    registration_id TEXT NOT NULL,
    event_id TEXT NOT NULL,
    qr_signature TEXT NOT NULL,
    marked_at TEXT NOT NULL,
    marked_by TEXT NOT NULL,
    sync_status TEXT NOT NULL DEFAULT 'pending',
    attempts INTEGER NOT NULL DEFAULT 0,
    last_error TEXT,
    synced_at TEXT
);
CREATE INDEX IF NOT EXISTS idx_sync_queue_status ON sync_queue (sync_status);
CREATE UNIQUE INDEX IF NOT EXISTS uq_sync_queue_pending
    ON sync_queue (event_id, registration_id) WHERE sync_status = 'pending';
"""

REGISTRATION_COLUMNS = (
    "qr_signature", "registration_id", "orbit_id", "event_id",
    "first_name", "last_name", "email", "college_name",
    "attendance_marked", "marked_at", "marked_by",
)

QUEUE_COLUMNS = (
    "id", "registration_id", "event_id", "qr_signature", "marked_at",
    "marked_by", "sync_status", "attempts", "last_error", "synced_at",
)


def _row_to_registration(row: sqlite3.Row) -> CachedRegistration:
    return CachedRegistration(
        qr_signature=row["qr_signature"],
        registration_id=row["registration_id"],
        orbit_id=row["orbit_id"],
        event_id=row["event_id"],
        first_name=row["first_name"],
        last_name=row["last_name"],
        email=row["email"],
        college_name=row["college_name"],
        attendance_marked=bool(row["attendance_marked"]),
        marked_at=row["marked_at"],
        marked_by=row["marked_by"],
    )


def _row_to_entry(row: sqlite3.Row) -> SyncQueueEntry:
    return SyncQueueEntry(
        id=row["id"],
        registration_id=row["registration_id"],
        event_id=row["event_id"],
        qr_signature=row["qr_signature"],
        marked_at=row["marked_at"],
        marked_by=row["marked_by"],
        sync_status=SyncStatus(row["sync_status"]),
        attempts=row["attempts"],
        last_error=row["last_error"],
        synced_at=row["synced_at"],
    )


def _row_to_metadata(row: sqlite3.Row) -> CacheMetadata:
    return CacheMetadata(
        event_id=row["event_id"],
        event_name=row["event_name"],
        fetched_at=row["fetched_at"],
        record_count=row["record_count"],
        ttl_hours=row["ttl_hours"],
    )


class LocalStore:
    """SQLite-backed scanner storage.

    Attributes:
        path: Path to the SQLite database file
    """

    def __init__(self, path: str | Path = DEFAULT_DB_PATH):
        """Initialize LocalStore and create tables if missing.

        Args:
            path: Path to SQLite file
        """
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        con = sqlite3.connect(self.path, timeout=SQLITE_BUSY_TIMEOUT_SECONDS)
        try:
            con.executescript(SCHEMA)
        finally:
            con.close()

    @contextmanager
    def _transaction(self, immediate: bool = True) -> Iterator[sqlite3.Connection]:
        """Open a connection and run one transaction on it.

        Commits on normal exit, rolls back on any exception.
        BEGIN IMMEDIATE takes the write lock up front so read-then-write
        sequences cannot interleave with another writer.
        """
        con = sqlite3.connect(
            self.path,
            timeout=SQLITE_BUSY_TIMEOUT_SECONDS,
            isolation_level=None,
        )
        con.row_factory = sqlite3.Row
        try:
            con.execute("BEGIN IMMEDIATE" if immediate else "BEGIN")
            try:
                yield con
            except BaseException:
                con.execute("ROLLBACK")
                raise
            con.execute("COMMIT")
        finally:
            con.close()

    # ===== Roster =====

    def replace_event_roster(
        self,
        event_id: str,
        event_name: str,
        registrations: list[CachedRegistration],
        fetched_at: str,
        ttl_hours: float,
    ) -> int:
        """Replace every cached row for event_id and rewrite its metadata.

        All-or-nothing: any insert failure (duplicate signature in the
        snapshot, or a signature already cached under another event)
        rolls back the whole replace and leaves the prior snapshot intact.
        Local marks survive the replace when the snapshot is still unmarked,
        including marks whose rows were cleared but whose queue entries are
        still pending.

        Returns:
            Number of rows cached
        """
        with self._transaction() as con:
            local_marks = {
                row["qr_signature"]: (row["marked_at"], row["marked_by"])
                for row in con.execute(
                    "SELECT qr_signature, marked_at, marked_by FROM sync_queue "
                    "WHERE event_id = ? AND sync_status = 'pending'",
                    (event_id,),
                )
            }
            local_marks.update({
                row["qr_signature"]: (row["marked_at"], row["marked_by"])
                for row in con.execute(
                    "SELECT qr_signature, marked_at, marked_by FROM registrations "
                    "WHERE event_id = ? AND attendance_marked = 1",
                    (event_id,),
                )
            })

            con.execute("DELETE FROM registrations WHERE event_id = ?", (event_id,))

            placeholders = ", ".join("?" for _ in REGISTRATION_COLUMNS)
            insert_sql = (
                f"INSERT INTO registrations ({', '.join(REGISTRATION_COLUMNS)}) "
                f"VALUES ({placeholders})"
            )
            for reg in registrations:
                marked = reg.attendance_marked
                marked_at, marked_by = reg.marked_at, reg.marked_by
                if not marked and reg.qr_signature in local_marks:
                    marked = True
                    marked_at, marked_by = local_marks[reg.qr_signature]
                con.execute(insert_sql, (
                    reg.qr_signature, reg.registration_id, reg.orbit_id, reg.event_id,
                    reg.first_name, reg.last_name, reg.email, reg.college_name,
                    int(marked), marked_at, marked_by,
                ))

            con.execute(
                "INSERT OR REPLACE INTO cache_metadata "
                "(event_id, event_name, fetched_at, record_count, ttl_hours) "
                "VALUES (?, ?, ?, ?, ?)",
                (event_id, event_name, fetched_at, len(registrations), ttl_hours),
            )

        return len(registrations)

    def get_registration(self, qr_signature: str) -> CachedRegistration | None:
        with self._transaction(immediate=False) as con:
            row = con.execute(
                "SELECT * FROM registrations WHERE qr_signature = ?", (qr_signature,)
            ).fetchone()
        return _row_to_registration(row) if row else None

    def registrations_for_event(self, event_id: str) -> list[CachedRegistration]:
        with self._transaction(immediate=False) as con:
            rows = con.execute(
                "SELECT * FROM registrations WHERE event_id = ? "
                "ORDER BY first_name, last_name, registration_id",
                (event_id,),
            ).fetchall()
        return [_row_to_registration(r) for r in rows]

    def get_metadata(self, event_id: str) -> CacheMetadata | None:
        with self._transaction(immediate=False) as con:
            row = con.execute(
                "SELECT * FROM cache_metadata WHERE event_id = ?", (event_id,)
            ).fetchone()
        return _row_to_metadata(row) if row else None

    def all_metadata(self) -> list[CacheMetadata]:
        with self._transaction(immediate=False) as con:
            rows = con.execute("SELECT * FROM cache_metadata ORDER BY event_id").fetchall()
        return [_row_to_metadata(r) for r in rows]

    def delete_event(self, event_id: str) -> int:
        """Remove an event's cached rows and metadata in one transaction.

        Queue entries are kept: pending ones still need pushing.

        Returns:
            Number of registration rows removed
        """
        with self._transaction() as con:
            removed = con.execute(
                "DELETE FROM registrations WHERE event_id = ?", (event_id,)
            ).rowcount
            con.execute("DELETE FROM cache_metadata WHERE event_id = ?", (event_id,))
        return removed

    # ===== Attendance =====

    def mark_attended(
        self,
        qr_signature: str,
        operator_id: str,
        marked_at: str,
        entry_id: str,
    ) -> tuple[MarkStatus, CachedRegistration | None, SyncQueueEntry | None]:
        """Mark a cached registration attended and enqueue its sync entry.

        Both writes share one transaction. An already-marked row is returned
        unchanged together with its pending entry, if one is still queued.

        Returns:
            (status, registration, queue_entry)

        Raises:
            StopRule: If the mark and the enqueue did not both land
        """
        with self._transaction() as con:
            row = con.execute(
                "SELECT * FROM registrations WHERE qr_signature = ?", (qr_signature,)
            ).fetchone()
            if row is None:
                return MarkStatus.NOT_FOUND, None, None

            reg = _row_to_registration(row)
            pending = con.execute(
                "SELECT * FROM sync_queue WHERE event_id = ? AND registration_id = ? "
                "AND sync_status = 'pending'",
                (reg.event_id, reg.registration_id),
            ).fetchone()
            if reg.attendance_marked:
                return MarkStatus.ALREADY_MARKED, reg, _row_to_entry(pending) if pending else None

            if pending is not None:
                # Row lost its mark while the queue still holds one; restore it.
                con.execute(
                    "UPDATE registrations SET attendance_marked = 1, marked_at = ?, marked_by = ? "
                    "WHERE qr_signature = ?",
                    (pending["marked_at"], pending["marked_by"], qr_signature),
                )
                reg.attendance_marked = True
                reg.marked_at = pending["marked_at"]
                reg.marked_by = pending["marked_by"]
                return MarkStatus.ALREADY_MARKED, reg, _row_to_entry(pending)

            updated = con.execute(
                "UPDATE registrations SET attendance_marked = 1, marked_at = ?, marked_by = ? "
                "WHERE qr_signature = ? AND attendance_marked = 0",
                (marked_at, operator_id, qr_signature),
            ).rowcount

            entry = SyncQueueEntry(
                id=entry_id,
                registration_id=reg.registration_id,
                event_id=reg.event_id,
                qr_signature=qr_signature,
                marked_at=marked_at,
                marked_by=operator_id,
            )
            inserted = con.execute(
                f"INSERT INTO sync_queue ({', '.join(QUEUE_COLUMNS)}) "
                f"VALUES ({', '.join('?' for _ in QUEUE_COLUMNS)})",
                (
                    entry.id, entry.registration_id, entry.event_id, entry.qr_signature,
                    entry.marked_at, entry.marked_by, entry.sync_status.value,
                    entry.attempts, entry.last_error, entry.synced_at,
                ),
            ).rowcount

            if updated != 1 or inserted != 1:
                raise StopRule(
                    f"Attendance mark for {qr_signature} did not pair with a queue entry"
                )

        reg.attendance_marked = True
        reg.marked_at = marked_at
        reg.marked_by = operator_id
        return MarkStatus.MARKED, reg, entry

    # ===== Sync queue =====

    def pending_entries(self) -> list[SyncQueueEntry]:
        with self._transaction(immediate=False) as con:
            rows = con.execute(
                "SELECT * FROM sync_queue WHERE sync_status = 'pending' ORDER BY marked_at, id"
            ).fetchall()
        return [_row_to_entry(r) for r in rows]

    def all_entries(self) -> list[SyncQueueEntry]:
        with self._transaction(immediate=False) as con:
            rows = con.execute("SELECT * FROM sync_queue ORDER BY marked_at, id").fetchall()
        return [_row_to_entry(r) for r in rows]

    def count_pending(self, event_id: str | None = None) -> int:
        sql = "SELECT COUNT(*) FROM sync_queue WHERE sync_status = 'pending'"
        params: tuple = ()
        if event_id is not None:
            sql += " AND event_id = ?"
            params = (event_id,)
        with self._transaction(immediate=False) as con:
            return con.execute(sql, params).fetchone()[0]

    def mark_synced(self, entry_id: str, synced_at: str) -> bool:
        """Flip a pending entry to synced. Returns False if it was not pending."""
        with self._transaction() as con:
            changed = con.execute(
                "UPDATE sync_queue SET sync_status = 'synced', synced_at = ?, last_error = NULL "
                "WHERE id = ? AND sync_status = 'pending'",
                (synced_at, entry_id),
            ).rowcount
        return changed == 1

    def record_sync_failure(self, entry_id: str, error: str) -> int:
        """Bump attempts on a pending entry. Returns the new attempt count."""
        with self._transaction() as con:
            con.execute(
                "UPDATE sync_queue SET attempts = attempts + 1, last_error = ? "
                "WHERE id = ? AND sync_status = 'pending'",
                (error, entry_id),
            )
            row = con.execute(
                "SELECT attempts FROM sync_queue WHERE id = ?", (entry_id,)
            ).fetchone()
        return row["attempts"] if row else 0

    def delete_synced_before(self, cutoff: str) -> int:
        """Delete synced entries whose synced_at is older than cutoff.

        Returns:
            Number of entries deleted
        """
        with self._transaction() as con:
            return con.execute(
                "DELETE FROM sync_queue WHERE sync_status = 'synced' "
                "AND COALESCE(synced_at, marked_at) < ?",
                (cutoff,),
            ).rowcount


# Default store instance (can be overridden)
_default_store: LocalStore | None = None


def get_store() -> LocalStore:
    """Get or create default LocalStore."""
    global _default_store
    if _default_store is None:
        from ..config import ScannerConfig
        _default_store = LocalStore(ScannerConfig.from_env().db_path)
    return _default_store


def set_store(store: LocalStore | None) -> None:
    """Set the default store instance (for testing)."""
    global _default_store
    _default_store = store
