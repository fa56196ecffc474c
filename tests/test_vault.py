"""Tests for the vault (memory cache + persistent store)."""

import logging

import pytest

from conftest import FakeStore
from privacy_vault import MappingRecord, PIIType, SqliteStore, TokenCodec, Vault


def record(value, pii_type=PIIType.NAME, original=None):
    return MappingRecord(
        normalized_value=value.lower(),
        token=TokenCodec().compute_token(value.lower()),
        pii_type=pii_type,
        original_value=original or value,
    )


# ── Memory-only ──────────────────────────────────────────────────────

def test_vault_deterministic():
    vault = Vault()
    t1 = vault.get_or_create_token("dborda@gmail.com", PIIType.EMAIL)
    t2 = vault.get_or_create_token("dborda@gmail.com", PIIType.EMAIL)
    assert t1 == t2 == "EMAIL_8004719c"


def test_vault_same_token_across_instances():
    assert (Vault().get_or_create_token("John Smith", PIIType.NAME)
            == Vault().get_or_create_token("john smith", PIIType.NAME)
            == "NAME_32ddaf65")


def test_vault_case_insensitive_key_keeps_first_surface_form():
    vault = Vault()
    vault.get_or_create_token("John Smith", PIIType.NAME)
    vault.get_or_create_token("JOHN SMITH", PIIType.NAME)
    entry = vault.resolve_token("32ddaf65")
    assert entry.normalized_value == "john smith"
    assert entry.original_value == "John Smith"
    assert vault.size == 1


def test_vault_type_mismatch_keeps_stored_type(caplog):
    vault = Vault()
    vault.get_or_create_token("Dago Borda", PIIType.NAME)
    with caplog.at_level(logging.WARNING):
        token = vault.get_or_create_token("dago borda", PIIType.EMAIL)
    assert token.startswith("NAME_")
    assert "already tokenized as NAME" in caplog.text


def test_vault_rejects_non_string():
    with pytest.raises(TypeError):
        Vault().get_or_create_token(12345, PIIType.PHONE)


def test_vault_rejects_unknown_type():
    with pytest.raises(ValueError):
        Vault().get_or_create_token("x", "PERSON")


def test_vault_unknown_token():
    assert Vault().resolve_token("deadbeef") is None


def test_vault_memory_stats():
    vault = Vault()
    vault.get_or_create_token("555-123-4567", PIIType.PHONE)
    assert vault.stats() == {"tokens_in_memory": 1, "tokens_in_store": 0, "store_connected": False}
    assert vault.dump() == {"PHONE_d36e8308": "555-123-4567"}


# ── With a store ─────────────────────────────────────────────────────

def test_new_value_is_persisted():
    store = FakeStore()
    vault = Vault(store)
    vault.get_or_create_token("Maria Garcia", PIIType.NAME)
    stored = store.records["maria garcia"]
    assert stored.token == "f50eb080"
    assert stored.original_value == "Maria Garcia"


def test_store_hit_populates_cache():
    store = FakeStore([record("Dago Borda")])
    vault = Vault(store)
    token = vault.get_or_create_token("DAGO BORDA", PIIType.NAME)
    assert token == "NAME_" + TokenCodec().compute_token("dago borda")
    assert "insert" not in store.calls
    # second call is served from memory
    store.calls.clear()
    vault.get_or_create_token("dago borda", PIIType.NAME)
    assert store.calls == []


def test_resolve_falls_back_to_store_and_bumps_usage():
    rec = record("dborda@gmail.com", PIIType.EMAIL)
    store = FakeStore([rec])
    vault = Vault(store)
    entry = vault.resolve_token("8004719c")
    assert entry.original_value == "dborda@gmail.com"
    assert entry.pii_type is PIIType.EMAIL
    assert rec.usage_count == 1
    # cached now: no further store reads or usage writes
    store.calls.clear()
    vault.resolve_token("8004719c")
    assert store.calls == []
    assert vault.get_or_create_token("dborda@gmail.com", PIIType.EMAIL) == "EMAIL_8004719c"


def test_duplicate_insert_is_absorbed(caplog):
    rec = record("Dago Borda")
    store = FakeStore([rec])
    # simulate a concurrent writer: lookup misses, insert collides
    store.find_by_normalized_value = lambda value: None
    vault = Vault(store)
    with caplog.at_level(logging.WARNING):
        token = vault.get_or_create_token("Dago Borda", PIIType.NAME)
    assert token == f"NAME_{rec.token}"
    assert "already stored" in caplog.text


def test_warm_cache_loads_everything():
    store = FakeStore([record("Dago Borda"), record("dborda@gmail.com", PIIType.EMAIL)])
    vault = Vault(store)
    assert vault.warm_cache() == 2
    assert vault.size == 2
    store.calls.clear()
    assert vault.resolve_token("8004719c").original_value == "dborda@gmail.com"
    assert store.calls == []


def test_stats_with_store():
    store = FakeStore([record("Dago Borda")])
    vault = Vault(store)
    vault.get_or_create_token("555-123-4567", PIIType.PHONE)
    assert vault.stats() == {"tokens_in_memory": 1, "tokens_in_store": 2, "store_connected": True}


# ── Degraded store ───────────────────────────────────────────────────

def test_disconnected_store_is_not_queried():
    store = FakeStore(connected=False)
    vault = Vault(store)
    assert not vault.backend_available
    assert vault.get_or_create_token("Dago Borda", PIIType.NAME).startswith("NAME_")
    assert vault.resolve_token("deadbeef") is None
    assert vault.warm_cache() == 0
    assert store.calls == []
    assert vault.stats()["store_connected"] is False


def test_failing_store_degrades_to_memory(caplog):
    store = FakeStore(fail=True)
    vault = Vault(store)
    with caplog.at_level(logging.WARNING):
        token = vault.get_or_create_token("dborda@gmail.com", PIIType.EMAIL)
        assert vault.resolve_token("8004719c").original_value == "dborda@gmail.com"
        assert vault.resolve_token("deadbeef") is None
        assert vault.warm_cache() == 0
        stats = vault.stats()
    assert token == "EMAIL_8004719c"
    assert stats["store_connected"] is False
    assert "could not persist" in caplog.text


# ── SQLite store ─────────────────────────────────────────────────────

def test_sqlite_survives_restart(tmp_path):
    db = tmp_path / "vault.db"
    vault = Vault(SqliteStore(db))
    token = vault.get_or_create_token("Dago Borda", PIIType.NAME)
    vault.close()

    restarted = Vault(SqliteStore(db))
    assert restarted.warm_cache() == 1
    entry = restarted.resolve_token(token.split("_", 1)[1])
    assert entry.original_value == "Dago Borda"
    assert restarted.stats()["tokens_in_store"] == 1
    restarted.close()


def test_sqlite_resolve_without_warm_cache_bumps_usage(tmp_path):
    db = tmp_path / "vault.db"
    first = Vault(SqliteStore(db))
    first.get_or_create_token("3152319157", PIIType.PHONE)
    first.close()

    store = SqliteStore(db)
    vault = Vault(store)
    token = TokenCodec().compute_token("3152319157")
    assert vault.resolve_token(token).original_value == "3152319157"
    assert store.find_by_token(token).usage_count == 1
    store.close()


def test_sqlite_duplicate_raises_duplicate_error(tmp_path):
    from privacy_vault import DuplicateMappingError

    store = SqliteStore(tmp_path / "vault.db")
    store.insert(record("Dago Borda"))
    with pytest.raises(DuplicateMappingError):
        store.insert(record("Dago Borda"))
    store.close()


def test_sqlite_closed_store_raises_unavailable(tmp_path):
    from privacy_vault import StoreUnavailableError

    store = SqliteStore(tmp_path / "vault.db")
    store.close()
    assert not store.is_connected()
    with pytest.raises(StoreUnavailableError):
        store.count()


def test_sqlite_unopenable_path_degrades(tmp_path):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("")
    store = SqliteStore(blocker / "vault.db")
    assert not store.is_connected()
    vault = Vault(store)
    assert vault.get_or_create_token("Dago Borda", PIIType.NAME).startswith("NAME_")


def test_sqlite_deferred_connect(tmp_path):
    store = SqliteStore(tmp_path / "vault.db", connect=False)
    vault = Vault(store)
    assert not vault.backend_available
    vault.get_or_create_token("Dago Borda", PIIType.NAME)

    assert store.connect() is True
    assert store.connect() is True
    assert vault.backend_available
    vault.get_or_create_token("dborda@gmail.com", PIIType.EMAIL)
    # only mappings created after connecting reach the store
    assert store.count() == 1
    store.close()
