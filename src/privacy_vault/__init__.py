"""Privacy Vault: reversible PII tokenization for LLM pipelines."""

__version__ = "1.0.0"

from .tokens import TokenCodec, normalize
from .types import PIIType, EntityMatch, MappingRecord, ResolvedToken, AnonymizedMessage
from .vault import Vault
from .vault_sqlite import SqliteStore
from .anonymizer import Anonymizer, AnonymizerConfig
from .deanonymizer import Deanonymizer
from .middleware import PrivacyMiddleware
from .config import create_middleware, load_config, load_from_yaml
from .errors import (
    VaultError, StoreError, StoreUnavailableError, DuplicateMappingError,
    InvalidInputError, CompletionError, CompletionNotConfiguredError,
)

__all__ = [
    "TokenCodec", "normalize",
    "PIIType", "EntityMatch", "MappingRecord", "ResolvedToken", "AnonymizedMessage",
    "Vault", "SqliteStore",
    "Anonymizer", "AnonymizerConfig",
    "Deanonymizer",
    "PrivacyMiddleware",
    "create_middleware", "load_config", "load_from_yaml",
    "VaultError", "StoreError", "StoreUnavailableError", "DuplicateMappingError",
    "InvalidInputError", "CompletionError", "CompletionNotConfiguredError",
]
