"""Tests for the sync reconciler."""
import threading
from datetime import timedelta

from gatepass.core.schemas import SyncStatus
from gatepass.scanner import (
    get_pending_count,
    mark_attendance,
    mark_local,
    remote_fields,
    sync_pending,
)
from gatepass.scanner import sync as sync_module
from gatepass.scanner.cache import download_roster
from gatepass.store import LocalStore
from conftest import FakeRemoteStore, make_doc


class TestSyncPending:
    """Tests for sync_pending."""

    def test_empty_queue(self, cached_e1, e1_remote):
        result = sync_pending(e1_remote, store=cached_e1)
        assert (result.synced, result.failed, result.skipped) == (0, 0, False)

    def test_pushes_attendance_fields(self, cached_e1, e1_remote, t0):
        marked = mark_local("abc123", "ADM1", store=cached_e1, now=t0)

        result = sync_pending(e1_remote, store=cached_e1, now=t0 + timedelta(seconds=5))

        assert result.synced == 1
        assert result.failed == 0
        doc = e1_remote.get("E1", "REG-1")
        assert doc["attendanceStatus"] is True
        assert doc["checkInTime"] == marked.registration.marked_at
        assert doc["checkedInBy"] == "ADM1"

        entry = cached_e1.all_entries()[0]
        assert entry.sync_status == SyncStatus.SYNCED
        assert entry.synced_at.startswith("2026-03-14T09:00:05")

    def test_failure_stays_pending(self, cached_e1, e1_remote, t0):
        """A failed push leaves the entry pending and the local mark intact."""
        mark_local("abc123", "ADM1", store=cached_e1, now=t0)
        e1_remote.fail_updates_for("E1", "REG-1")

        result = sync_pending(e1_remote, store=cached_e1)

        assert result.synced == 0
        assert result.failed == 1
        entry = cached_e1.pending_entries()[0]
        assert entry.attempts == 1
        assert "simulated outage" in entry.last_error
        assert cached_e1.get_registration("abc123").attendance_marked

    def test_partial_failure_continues_batch(self, cached_e1, e1_remote, t0):
        """One failing entry never aborts the rest of the batch."""
        mark_local("abc123", "ADM1", store=cached_e1, now=t0)
        mark_local("def456", "ADM1", store=cached_e1, now=t0 + timedelta(seconds=1))
        e1_remote.fail_updates_for("E1", "REG-1")

        result = sync_pending(e1_remote, store=cached_e1)

        assert result.synced == 1
        assert result.failed == 1
        statuses = {e.registration_id: e for e in cached_e1.all_entries()}
        assert statuses["REG-1"].sync_status == SyncStatus.PENDING
        assert statuses["REG-1"].attempts == 1
        assert statuses["REG-2"].sync_status == SyncStatus.SYNCED
        assert statuses["REG-2"].attempts == 0

    def test_failed_entry_retried_next_run(self, cached_e1, e1_remote, t0):
        mark_local("abc123", "ADM1", store=cached_e1, now=t0)
        e1_remote.fail_updates_for("E1", "REG-1")
        sync_pending(e1_remote, store=cached_e1)
        sync_pending(e1_remote, store=cached_e1)
        assert cached_e1.pending_entries()[0].attempts == 2

        e1_remote.failing_keys.clear()
        result = sync_pending(e1_remote, store=cached_e1)

        assert result.synced == 1
        assert get_pending_count(store=cached_e1) == 0

    def test_missing_remote_document_counts_as_failure(self, cached_e1, e1_remote, t0):
        mark_local("abc123", "ADM1", store=cached_e1, now=t0)
        del e1_remote.docs["E1_REG-1"]

        result = sync_pending(e1_remote, store=cached_e1)

        assert result.failed == 1
        assert get_pending_count(store=cached_e1) == 1

    def test_synced_entry_not_pushed_again(self, cached_e1, e1_remote, t0):
        mark_local("abc123", "ADM1", store=cached_e1, now=t0)
        sync_pending(e1_remote, store=cached_e1)
        sync_pending(e1_remote, store=cached_e1)
        assert len(e1_remote.updates) == 1

    def test_concurrent_drain_skipped(self, cached_e1, e1_remote, t0):
        mark_local("abc123", "ADM1", store=cached_e1, now=t0)

        assert sync_module._sync_lock.acquire(blocking=False)
        try:
            result = sync_pending(e1_remote, store=cached_e1)
        finally:
            sync_module._sync_lock.release()

        assert result.skipped
        assert get_pending_count(store=cached_e1) == 1

    def test_remote_fields(self, cached_e1, t0):
        marked = mark_local("abc123", "ADM1", store=cached_e1, now=t0)
        assert remote_fields(marked.queue_entry) == {
            "attendanceStatus": True,
            "checkInTime": marked.queue_entry.marked_at,
            "checkedInBy": "ADM1",
        }


class TestMultiDevice:
    """Two scanners marking the same registration offline."""

    def test_devices_converge(self, tmp_path, e1_remote, t0):
        door_a = LocalStore(tmp_path / "door_a.sqlite3")
        door_b = LocalStore(tmp_path / "door_b.sqlite3")
        download_roster("E1", "Orientation Night", e1_remote, store=door_a, now=t0)
        download_roster("E1", "Orientation Night", e1_remote, store=door_b, now=t0)

        mark_local("abc123", "ADM1", store=door_a, now=t0 + timedelta(minutes=1))
        mark_local("abc123", "ADM2", store=door_b, now=t0 + timedelta(minutes=2))

        sync_pending(e1_remote, store=door_a)
        sync_pending(e1_remote, store=door_b)

        doc = e1_remote.get("E1", "REG-1")
        assert doc["attendanceStatus"] is True
        assert doc["checkedInBy"] == "ADM2"
        checked_in = [d for d in e1_remote.docs.values() if d["eventId"] == "E1" and d["attendanceStatus"]]
        assert len(checked_in) == 1


class GatedRemoteStore(FakeRemoteStore):
    """Remote whose first update blocks until the gate opens."""

    def __init__(self):
        super().__init__()
        self.entered = threading.Event()
        self.gate = threading.Event()

    def update_by_key(self, event_id: str, registration_id: str, fields: dict) -> None:
        if not self.entered.is_set():
            self.entered.set()
            assert self.gate.wait(timeout=5)
        super().update_by_key(event_id, registration_id, fields)


class TestInFlightDrain:
    """Marks queued while a drain is already running."""

    def test_mark_during_drain_is_synced(self, local_store, t0):
        gated = GatedRemoteStore()
        gated.add(make_doc("E1", "REG-1", "abc123"))
        gated.add(make_doc("E1", "REG-2", "def456", first_name="Bilal"))
        download_roster("E1", "Orientation Night", gated, store=local_store, now=t0)

        first = mark_attendance("abc123", "ADM1", remote=gated, online=True, store=local_store, now=t0)
        assert gated.entered.wait(timeout=5)
        second = mark_attendance("def456", "ADM1", remote=gated, online=True, store=local_store, now=t0)

        gated.gate.set()
        first.sync_thread.join(timeout=5)
        second.sync_thread.join(timeout=5)

        assert get_pending_count(store=local_store) == 0
        assert gated.get("E1", "REG-2")["attendanceStatus"] is True

    def test_drain_picks_up_entries_queued_mid_batch(self, cached_e1, e1_remote, t0):
        """A single call keeps going until no untried entry is left."""
        mark_local("abc123", "ADM1", store=cached_e1, now=t0)
        original = e1_remote.update_by_key

        def update_then_mark(event_id, registration_id, fields):
            original(event_id, registration_id, fields)
            if registration_id == "REG-1":
                mark_local("def456", "ADM1", store=cached_e1, now=t0 + timedelta(seconds=1))

        e1_remote.update_by_key = update_then_mark

        result = sync_pending(e1_remote, store=cached_e1)

        assert result.synced == 2
        assert get_pending_count(store=cached_e1) == 0

    def test_failing_entry_tried_once_per_call(self, cached_e1, e1_remote, t0):
        mark_local("abc123", "ADM1", store=cached_e1, now=t0)
        e1_remote.fail_updates_for("E1", "REG-1")

        result = sync_pending(e1_remote, store=cached_e1)

        assert result.failed == 1
        assert cached_e1.pending_entries()[0].attempts == 1


class TestSyncedCount:
    """synced counts only entries this drain flipped."""

    def test_entry_flipped_elsewhere_not_counted(self, cached_e1, e1_remote, t0, monkeypatch):
        mark_local("abc123", "ADM1", store=cached_e1, now=t0)
        monkeypatch.setattr(cached_e1, "mark_synced", lambda entry_id, synced_at: False)

        result = sync_pending(e1_remote, store=cached_e1)

        assert result.synced == 0
        assert result.failed == 0
