"""Core types."""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum


class PIIType(str, Enum):
    """Closed set of PII categories the vault tokenizes."""
    NAME = "NAME"
    EMAIL = "EMAIL"
    PHONE = "PHONE"


@dataclass(frozen=True, slots=True)
class EntityMatch:
    """A single detected PII span.

    ``score`` is informational: it ranks the tiers by precision and is
    reported by ``privacy-vault anonymize --json``.  No decision reads it.
    """
    entity_type: PIIType
    start: int
    end: int
    text: str
    score: float           # 0.0–1.0 confidence of the detecting tier
    source: str            # "email" | "phone" | "capitalized" | "indicator" | "lowercase"


@dataclass(slots=True)
class MappingRecord:
    """A persisted value ↔ token mapping."""
    normalized_value: str
    token: str
    pii_type: PIIType
    original_value: str                 # surface form at first encounter
    created_at: str | None = None
    last_used_at: str | None = None
    usage_count: int = 0


@dataclass(frozen=True, slots=True)
class ResolvedToken:
    """What a token body resolves back to."""
    normalized_value: str
    pii_type: PIIType
    original_value: str


@dataclass(slots=True)
class AnonymizedMessage:
    """Result of anonymizing a message."""
    text: str                                   # tokenized text
    entities: list[EntityMatch] = field(default_factory=list)
    token_map: dict[str, str] = field(default_factory=dict)  # formatted token → original
