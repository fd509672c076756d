"""GatePass constants and thresholds.

All magic numbers live here. No exceptions.
"""
from pathlib import Path

# Roster cache
CACHE_TTL_HOURS = 24

# Sync queue retention for entries already pushed to the remote store
SYNC_RETENTION_MINUTES = 60

# Pass signatures
RANDOM_TOKEN_BYTES = 16        # 128 bits of entropy
SIGNATURE_HEX_LENGTH = 64      # SHA-256 hex digest
GOV_ID_SUFFIX_LENGTH = 4
PAYLOAD_SEPARATOR = "|"
REGISTRATION_ID_PREFIX = "REG"
REGISTRATION_ID_SUFFIX_LENGTH = 6
REGISTRATION_ID_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"

# Local storage
DEFAULT_DATA_DIR = Path.home() / ".gatepass"
DEFAULT_DB_PATH = DEFAULT_DATA_DIR / "scanner.sqlite3"
DEFAULT_REMOTE_PATH = DEFAULT_DATA_DIR / "remote_store.json"
SQLITE_BUSY_TIMEOUT_SECONDS = 5.0

# Connectivity check (empty host: no network hop to the remote store)
DEFAULT_REMOTE_HOST = ""
DEFAULT_REMOTE_PORT = 8765
CONNECT_TIMEOUT_SECONDS = 2.0

# SLO thresholds
VERIFY_LATENCY_MS = 50

# Operator-facing messages
INVALID_QR_MESSAGE = "QR code not valid for this event."
VALID_QR_MESSAGE = "Valid registration. Ready to mark attendance."
SCAN_ERROR_MESSAGE = "Error verifying QR code."
STALE_CACHE_MESSAGE = "Roster cache expired or missing. Re-download before scanning."
UNKNOWN_TIME = "Unknown time"
