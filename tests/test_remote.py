"""Tests for the file-backed remote store and connectivity check."""
import json

import pytest

from gatepass.remote import (
    FileRemoteStore,
    RemoteRecordExists,
    RemoteRecordNotFound,
    RemoteStoreError,
    document_key,
    is_connected,
)
from conftest import make_doc


@pytest.fixture
def file_remote(tmp_path) -> FileRemoteStore:
    return FileRemoteStore(tmp_path / "remote.json")


class TestFileRemoteStore:
    """Tests for FileRemoteStore."""

    def test_document_key(self):
        assert document_key("E1", "REG-1") == "E1_REG-1"

    def test_put_and_fetch(self, file_remote):
        file_remote.put_registration("E1", "REG-1", make_doc("E1", "REG-1", "abc123"))
        file_remote.put_registration("E2", "REG-2", make_doc("E2", "REG-2", "def456"))

        docs = file_remote.fetch_by_event("E1")

        assert len(docs) == 1
        assert docs[0]["qrSignature"] == "abc123"

    def test_qr_lookup_written(self, file_remote):
        file_remote.put_registration("E1", "REG-1", make_doc("E1", "REG-1", "abc123"))

        data = json.loads(file_remote.path.read_text())

        assert data["qr_lookup"]["abc123"]["docId"] == "E1_REG-1"
        assert data["qr_lookup"]["abc123"]["eventId"] == "E1"

    def test_update_by_key(self, file_remote):
        file_remote.put_registration("E1", "REG-1", make_doc("E1", "REG-1", "abc123"))

        file_remote.update_by_key("E1", "REG-1", {"attendanceStatus": True, "checkedInBy": "ADM1"})

        doc = file_remote.get_document("E1", "REG-1")
        assert doc["attendanceStatus"] is True
        assert doc["checkedInBy"] == "ADM1"
        assert doc["firstName"] == "Asha"

    def test_update_missing_key(self, file_remote):
        with pytest.raises(RemoteRecordNotFound):
            file_remote.update_by_key("E1", "REG-404", {"attendanceStatus": True})

    def test_corrupt_file(self, file_remote):
        file_remote.path.write_text("{not json")
        with pytest.raises(RemoteStoreError):
            file_remote.fetch_by_event("E1")

    def test_failed_update_does_not_write(self, file_remote):
        file_remote.put_registration("E1", "REG-1", make_doc("E1", "REG-1", "abc123"))
        before = file_remote.path.read_text()

        with pytest.raises(RemoteRecordNotFound):
            file_remote.update_by_key("E1", "REG-404", {"attendanceStatus": True})

        assert file_remote.path.read_text() == before

    def test_put_rejects_existing_key(self, file_remote):
        file_remote.put_registration("E1", "REG-1", make_doc("E1", "REG-1", "abc123"))

        with pytest.raises(RemoteRecordExists):
            file_remote.put_registration("E1", "REG-1", make_doc("E1", "REG-1", "fff000", first_name="Eve"))

        assert file_remote.get_document("E1", "REG-1")["firstName"] == "Asha"

    def test_put_rejects_reused_signature(self, file_remote):
        """A signature maps to exactly one registration document."""
        file_remote.put_registration("E1", "REG-1", make_doc("E1", "REG-1", "abc123"))

        with pytest.raises(RemoteRecordExists):
            file_remote.put_registration("E2", "REG-2", make_doc("E2", "REG-2", "abc123"))

        data = json.loads(file_remote.path.read_text())
        assert data["qr_lookup"]["abc123"]["docId"] == "E1_REG-1"
        assert file_remote.get_document("E2", "REG-2") is None

    def test_is_available(self, file_remote):
        assert file_remote.is_available() is True
        file_remote.path.write_text("{not json")
        assert file_remote.is_available() is False

    def test_persists_across_instances(self, tmp_path):
        path = tmp_path / "remote.json"
        FileRemoteStore(path).put_registration("E1", "REG-1", make_doc("E1", "REG-1", "abc123"))
        assert len(FileRemoteStore(path).fetch_by_event("E1")) == 1


class TestConnectivity:
    """Test connectivity checking."""

    def test_unreachable_port(self):
        """A refused connection reports offline rather than raising."""
        assert is_connected("127.0.0.1", 1, timeout=0.5) is False
