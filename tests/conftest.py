"""Shared fixtures: a fake mapping store and a fake LLM client."""

import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

import pytest

from privacy_vault import DuplicateMappingError, StoreUnavailableError, Vault
from privacy_vault.anonymizer import Anonymizer
from privacy_vault.deanonymizer import Deanonymizer


class FakeStore:
    """Dict-backed stand-in for SqliteStore that can be switched off."""

    def __init__(self, records=(), *, connected=True, fail=False):
        self.records = {r.normalized_value: r for r in records}
        self.connected = connected
        self.fail = fail
        self.calls = []

    def _check(self, name):
        self.calls.append(name)
        if self.fail:
            raise StoreUnavailableError(f"{name}: store down")

    def is_connected(self):
        return self.connected

    def find_by_normalized_value(self, value):
        self._check("find_by_normalized_value")
        return self.records.get(value)

    def find_by_token(self, token):
        self._check("find_by_token")
        return next((r for r in self.records.values() if r.token == token), None)

    def insert(self, record):
        self._check("insert")
        if record.normalized_value in self.records or any(
            r.token == record.token for r in self.records.values()
        ):
            raise DuplicateMappingError(record.token)
        self.records[record.normalized_value] = record
        return record

    def increment_usage(self, record):
        self._check("increment_usage")
        record.usage_count += 1

    def list_all(self):
        self._check("list_all")
        return list(self.records.values())

    def count(self):
        self._check("count")
        return len(self.records)

    def close(self):
        self.connected = False


class FakeLLM:
    """Echoes the prompt back, recording what the provider would see."""

    def __init__(self, reply=None, error=None):
        self.reply = reply
        self.error = error
        self.prompts = []

    def complete(self, text, *, model=None, temperature=None, max_tokens=None):
        self.prompts.append(text)
        if self.error is not None:
            raise self.error
        return self.reply(text) if self.reply else f"Noted: {text}"


@pytest.fixture
def vault():
    return Vault()


@pytest.fixture
def anonymizer(vault):
    return Anonymizer(vault)


@pytest.fixture
def deanonymizer(vault):
    return Deanonymizer(vault)
