"""Deanonymizer: puts original values back in place of vault tokens.

Unknown tokens are left exactly as they appear (fail-open): the output may
then still contain ``NAME_deadbeef``-style text, but never an error.
"""

from __future__ import annotations
import logging
import re

from .types import PIIType, ResolvedToken
from .vault import Vault

logger = logging.getLogger(__name__)


class Deanonymizer:

    def __init__(self, vault: Vault) -> None:
        self.vault = vault

    def deanonymize(self, text: str) -> str:
        """Replace every resolvable formatted token in text."""
        if not isinstance(text, str):
            raise TypeError(f"text must be a str, not {type(text).__name__}")
        pattern = self.vault.codec.pattern

        resolved: dict[str, ResolvedToken | None] = {}
        for m in pattern.finditer(text):
            token = m.group(2)
            if token in resolved:
                continue
            entry = self.vault.resolve_token(token)
            resolved[token] = entry
            if entry is None:
                logger.warning("token %s not found in cache or store; left as-is", m.group())
            elif entry.pii_type is not PIIType(m.group(1)):
                logger.warning("token %s is stored as %s", m.group(), entry.pii_type.value)

        if not resolved:
            return text

        def substitute(m: re.Match) -> str:
            entry = resolved.get(m.group(2))
            return entry.original_value if entry else m.group()

        return pattern.sub(substitute, text)
