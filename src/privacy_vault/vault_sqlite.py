"""Persistent mapping store backed by SQLite; survives process restarts.

This is the durable tier behind ``Vault``.  It only stores and looks up
records; caching and fallback policy live in the vault.

Usage:
    store = SqliteStore("~/.privacy-vault/vault.db")
    vault = Vault(store)
    vault.warm_cache()

A store whose database can't be opened stays disconnected
(``is_connected()`` is False) instead of raising, so the vault can run in
memory-only mode.
"""

from __future__ import annotations
import logging
import sqlite3
import threading
from pathlib import Path

from .errors import DuplicateMappingError, StoreUnavailableError
from .types import MappingRecord, PIIType

logger = logging.getLogger(__name__)

_NOW = "strftime('%Y-%m-%dT%H:%M:%fZ', 'now')"

_SCHEMA = f"""
CREATE TABLE IF NOT EXISTS token_mappings (
    normalized_value TEXT NOT NULL PRIMARY KEY,
    token TEXT NOT NULL UNIQUE,
    pii_type TEXT NOT NULL CHECK (pii_type IN ('NAME', 'EMAIL', 'PHONE')),
    original_value TEXT NOT NULL,
    created_at TEXT NOT NULL DEFAULT ({_NOW}),
    last_used_at TEXT NOT NULL DEFAULT ({_NOW}),
    usage_count INTEGER NOT NULL DEFAULT 0
);
CREATE INDEX IF NOT EXISTS idx_token_mappings_type
    ON token_mappings(pii_type);
"""

_COLUMNS = (
    "normalized_value, token, pii_type, original_value, "
    "created_at, last_used_at, usage_count"
)


def _to_record(row: tuple) -> MappingRecord:
    value, token, ptype, original, created, last_used, count = row
    return MappingRecord(
        normalized_value=value,
        token=token,
        pii_type=PIIType(ptype),
        original_value=original,
        created_at=created,
        last_used_at=last_used,
        usage_count=count,
    )


class SqliteStore:
    """Value ↔ token records in a single SQLite table."""

    __slots__ = ("_path", "_timeout", "_db", "_lock")

    def __init__(self, db_path: str | Path = "vault.db", *, timeout: float = 5.0,
                 connect: bool = True) -> None:
        self._path = db_path if str(db_path) == ":memory:" else Path(db_path).expanduser()
        self._timeout = timeout
        self._db: sqlite3.Connection | None = None
        self._lock = threading.Lock()
        if connect:
            self.connect()

    # ------------------------------------------------------------------
    # Connection lifecycle
    # ------------------------------------------------------------------

    def connect(self) -> bool:
        """Open the database and create the schema; False on failure."""
        if self._db is not None:
            return True
        try:
            if isinstance(self._path, Path):
                self._path.parent.mkdir(parents=True, exist_ok=True)
            db = sqlite3.connect(str(self._path), timeout=self._timeout,
                                 check_same_thread=False)
            db.executescript(_SCHEMA)
        except (OSError, sqlite3.Error) as e:
            logger.error("could not open mapping store at %s: %s", self._path, e)
            return False
        self._db = db
        logger.info("mapping store connected: %s", self._path)
        return True

    def is_connected(self) -> bool:
        return self._db is not None

    def close(self) -> None:
        with self._lock:
            if self._db is not None:
                self._db.close()
                self._db = None

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def _fetch_one(self, where: str, param: str) -> MappingRecord | None:
        row = self._run(
            lambda db: db.execute(
                f"SELECT {_COLUMNS} FROM token_mappings WHERE {where} = ?", (param,)
            ).fetchone()
        )
        return _to_record(row) if row else None

    def find_by_normalized_value(self, value: str) -> MappingRecord | None:
        return self._fetch_one("normalized_value", value.lower())

    def find_by_token(self, token: str) -> MappingRecord | None:
        return self._fetch_one("token", token)

    def insert(self, record: MappingRecord) -> MappingRecord:
        """Insert a new mapping; DuplicateMappingError if value or token exists."""
        def op(db: sqlite3.Connection) -> tuple:
            with db:
                db.execute(
                    "INSERT INTO token_mappings "
                    "(normalized_value, token, pii_type, original_value) VALUES (?, ?, ?, ?)",
                    (record.normalized_value, record.token,
                     PIIType(record.pii_type).value, record.original_value),
                )
            return db.execute(
                f"SELECT {_COLUMNS} FROM token_mappings WHERE token = ?", (record.token,)
            ).fetchone()
        return _to_record(self._run(op))

    def increment_usage(self, record: MappingRecord) -> None:
        def op(db: sqlite3.Connection) -> None:
            with db:
                db.execute(
                    f"UPDATE token_mappings SET usage_count = usage_count + 1, "
                    f"last_used_at = {_NOW} WHERE token = ?",
                    (record.token,),
                )
        self._run(op)
        record.usage_count += 1

    def list_all(self) -> list[MappingRecord]:
        rows = self._run(
            lambda db: db.execute(
                f"SELECT {_COLUMNS} FROM token_mappings ORDER BY created_at"
            ).fetchall()
        )
        return [_to_record(r) for r in rows]

    def count(self) -> int:
        return self._run(
            lambda db: db.execute("SELECT COUNT(*) FROM token_mappings").fetchone()[0]
        )

    def _run(self, op):
        """Run op(connection) under the lock, translating sqlite errors."""
        with self._lock:
            if self._db is None:
                raise StoreUnavailableError("mapping store is not connected")
            try:
                return op(self._db)
            except sqlite3.IntegrityError as e:
                raise DuplicateMappingError(str(e)) from e
            except sqlite3.Error as e:
                raise StoreUnavailableError(str(e)) from e
