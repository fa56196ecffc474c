"""Vault: process-wide bidirectional mapping between PII values and tokens.

Design goals:
  - Deterministic: a value's token is a digest of its normalized form, so the
    same value gets the same token in every process, store or no store
  - Fast: two dict lookups in front of an optional persistent store
  - Degradable: store failures are logged and absorbed; the vault keeps
    working from memory

    vault = Vault(SqliteStore("vault.db"))
    vault.warm_cache()
    vault.get_or_create_token("john@acme.com", PIIType.EMAIL)   # "EMAIL_6f1d..."
    vault.resolve_token("6f1d...")                               # ResolvedToken(...)

The store is any object with ``find_by_normalized_value``, ``find_by_token``,
``insert``, ``increment_usage``, ``list_all``, ``count`` and
``is_connected`` (see ``SqliteStore``).  Usage statistics are written only
when a lookup had to go to the store; cache hits never write.
"""

from __future__ import annotations
import logging
import threading
from typing import TYPE_CHECKING

from .errors import DuplicateMappingError, StoreError
from .tokens import TokenCodec, normalize
from .types import MappingRecord, PIIType, ResolvedToken

if TYPE_CHECKING:
    from .vault_sqlite import SqliteStore

logger = logging.getLogger(__name__)


class Vault:
    """Two-tier (memory + persistent store) PII ↔ token mapping."""

    __slots__ = ("_store", "codec", "_value_to_token", "_token_to_value", "_lock")

    def __init__(self, store: SqliteStore | None = None, *,
                 codec: TokenCodec | None = None) -> None:
        self._store = store
        self.codec = codec or TokenCodec()
        self._value_to_token: dict[str, str] = {}             # "john@x.com" → "6f1d03aa"
        self._token_to_value: dict[str, ResolvedToken] = {}   # "6f1d03aa" → ResolvedToken
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Core API
    # ------------------------------------------------------------------

    def get_or_create_token(self, value: str, pii_type: PIIType | str) -> str:
        """Return the formatted token for value, creating the mapping if new."""
        if not isinstance(value, str):
            raise TypeError(f"value must be a str, not {type(value).__name__}")
        pii_type = PIIType(pii_type)
        normalized = normalize(value)

        with self._lock:
            token = self._value_to_token.get(normalized)
            entry = self._token_to_value.get(token) if token else None
        if token and entry:
            if entry.pii_type is not pii_type:
                logger.warning(
                    "value already tokenized as %s, requested as %s; keeping %s",
                    entry.pii_type.value, pii_type.value, entry.pii_type.value,
                )
            return self.codec.format(entry.pii_type, token)

        if self.backend_available:
            try:
                record = self._store.find_by_normalized_value(normalized)
            except StoreError as e:
                logger.warning("store lookup failed, generating token locally: %s", e)
                record = None
            if record is not None:
                self._remember(record)
                return self.codec.format(record.pii_type, record.token)

        record = MappingRecord(
            normalized_value=normalized,
            token=self.codec.compute_token(normalized),
            pii_type=pii_type,
            original_value=value,
        )
        self._remember(record)
        self._persist(record)
        return self.codec.format(pii_type, record.token)

    def resolve_token(self, token: str) -> ResolvedToken | None:
        """Return what a token body stands for, or None if unknown."""
        with self._lock:
            entry = self._token_to_value.get(token)
        if entry is not None:
            return entry
        if not self.backend_available:
            return None

        try:
            record = self._store.find_by_token(token)
        except StoreError as e:
            logger.warning("store lookup for token %s failed: %s", token, e)
            return None
        if record is None:
            return None

        entry = self._remember(record)
        try:
            self._store.increment_usage(record)
        except StoreError as e:
            logger.warning("could not update usage for token %s: %s", token, e)
        return entry

    @property
    def backend_available(self) -> bool:
        return self._store is not None and self._store.is_connected()

    def warm_cache(self) -> int:
        """Load every stored mapping into memory; returns how many were loaded."""
        if not self.backend_available:
            logger.warning("mapping store unavailable; running in memory-only mode")
            return 0
        try:
            records = self._store.list_all()
        except StoreError as e:
            logger.error("could not load mappings into cache: %s", e)
            return 0
        for record in records:
            self._remember(record)
        logger.info("loaded %d mappings into memory cache", len(records))
        return len(records)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _remember(self, record: MappingRecord) -> ResolvedToken:
        entry = ResolvedToken(
            normalized_value=record.normalized_value,
            pii_type=PIIType(record.pii_type),
            original_value=record.original_value,
        )
        with self._lock:
            existing = self._token_to_value.get(record.token)
            if existing is not None and existing.normalized_value != record.normalized_value:
                logger.warning("token collision on %s; keeping the first mapping", record.token)
                self._value_to_token[record.normalized_value] = record.token
                return existing
            self._value_to_token[record.normalized_value] = record.token
            self._token_to_value[record.token] = entry
        return entry

    def _persist(self, record: MappingRecord) -> None:
        if self._store is None:
            return
        if not self._store.is_connected():
            logger.warning("mapping store not connected; token %s kept in memory only",
                           record.token)
            return
        try:
            self._store.insert(record)
        except DuplicateMappingError:
            logger.warning("token %s already stored (concurrent insert)", record.token)
        except StoreError as e:
            logger.error("could not persist token %s: %s", record.token, e)

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def size(self) -> int:
        return len(self._token_to_value)

    def dump(self) -> dict[str, str]:
        """Return formatted token → original value (for debugging)."""
        with self._lock:
            return {
                self.codec.format(e.pii_type, token): e.original_value
                for token, e in self._token_to_value.items()
            }

    def stats(self) -> dict:
        stored = 0
        connected = self.backend_available
        if connected:
            try:
                stored = self._store.count()
            except StoreError as e:
                logger.warning("could not count stored mappings: %s", e)
                connected = False
        return {
            "tokens_in_memory": len(self._value_to_token),
            "tokens_in_store": stored,
            "store_connected": connected,
        }

    def close(self) -> None:
        if self._store is not None:
            self._store.close()
