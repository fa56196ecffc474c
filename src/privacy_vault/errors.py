"""Exception hierarchy.

Store errors are raised by persistence backends and absorbed by the
vault; they never reach callers of the anonymize/deanonymize paths.
"""

from __future__ import annotations


class VaultError(Exception):
    """Base class for all privacy-vault errors."""


class StoreError(VaultError):
    """A persistent-store operation failed."""


class StoreUnavailableError(StoreError):
    """The store is not connected or the operation could not complete."""


class DuplicateMappingError(StoreError):
    """A uniqueness constraint rejected an insert (concurrent first encounter)."""


class InvalidInputError(VaultError, ValueError):
    """A request field is missing or has the wrong type."""


class CompletionError(VaultError):
    """The LLM provider call failed."""


class CompletionNotConfiguredError(CompletionError):
    """No LLM credentials are configured."""
