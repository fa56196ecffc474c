"""Token codec: deterministic value → token mapping and the token grammar.

    codec = TokenCodec()
    token = codec.compute_token(normalize("John@Acme.com"))   # "1f0c...", 8 hex chars
    codec.format(PIIType.EMAIL, token)                         # "EMAIL_1f0c..."
    codec.parse("EMAIL_1f0c9a2b")                              # ParsedToken(EMAIL, "1f0c9a2b")

Tokens are a truncated SHA-256 of the normalized value, so the same value
yields the same token across processes without consulting any store.
"""

from __future__ import annotations
import hashlib
import re
from dataclasses import dataclass

from .types import PIIType

DEFAULT_TOKEN_LENGTH = 8

_TYPE_ALTERNATION = "|".join(t.value for t in PIIType)


def normalize(value: str) -> str:
    """Canonical mapping key: lowercase, whitespace left as-is."""
    return value.lower()


@dataclass(frozen=True, slots=True)
class ParsedToken:
    pii_type: PIIType
    token: str


class TokenCodec:
    """Computes, formats and parses tokens of a fixed hex length."""

    __slots__ = ("length", "_exact", "_search")

    def __init__(self, length: int = DEFAULT_TOKEN_LENGTH) -> None:
        if not 4 <= length <= 64:
            raise ValueError(f"token length must be between 4 and 64, got {length}")
        self.length = length
        self._exact = re.compile(rf"({_TYPE_ALTERNATION})_([a-f0-9]{{{length}}})")
        self._search = re.compile(
            rf"(?<![A-Za-z0-9])({_TYPE_ALTERNATION})_([a-f0-9]{{{length}}})(?![a-f0-9])"
        )

    def compute_token(self, normalized_value: str) -> str:
        digest = hashlib.sha256(normalized_value.encode("utf-8")).hexdigest()
        return digest[: self.length]

    def format(self, pii_type: PIIType | str, token: str) -> str:
        return f"{PIIType(pii_type).value}_{token}"

    def parse(self, formatted: str) -> ParsedToken | None:
        """Split a formatted token; None when it doesn't follow the grammar."""
        if not isinstance(formatted, str):
            return None
        m = self._exact.fullmatch(formatted)
        if m is None:
            return None
        return ParsedToken(pii_type=PIIType(m.group(1)), token=m.group(2))

    @property
    def pattern(self) -> re.Pattern:
        """Regex locating formatted tokens inside free text."""
        return self._search
