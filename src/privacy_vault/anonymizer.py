"""Anonymizer: replaces detected PII with vault tokens.

Usage:
    from privacy_vault import Anonymizer, Vault

    vault = Vault()                  # one per process
    anonymizer = Anonymizer(vault)

    result = anonymizer.anonymize("Email Dago Borda at dborda@gmail.com")
    print(result.text)               # "Email NAME_5e0c1a77 at EMAIL_8d3f21b0"

Tiers run in a fixed order (see ``patterns``).  Each tier detects on the
text produced by the previous one.
"""

from __future__ import annotations
import logging
import re
from dataclasses import dataclass, field

from .patterns import Detector, lenient_pipeline, strict_pipeline
from .tokens import normalize
from .types import AnonymizedMessage, EntityMatch, PIIType
from .vault import Vault

logger = logging.getLogger(__name__)


@dataclass
class AnonymizerConfig:
    """Configuration for the Anonymizer."""
    lenient_names: bool = False       # enable indicator + lowercase name tiers
    # PII types to leave untouched
    skip_types: set[PIIType] = field(default_factory=set)
    # Values that should NEVER be tokenized (compared case-insensitively)
    allow_list: set[str] = field(default_factory=set)


class Anonymizer:
    """Ordered pipeline of detectors in front of a Vault."""

    def __init__(self, vault: Vault, config: AnonymizerConfig | None = None) -> None:
        self.vault = vault
        self.config = config or AnonymizerConfig()
        self._allowed = {normalize(v) for v in self.config.allow_list}
        self._skipped = {PIIType(t) for t in self.config.skip_types}

    def pipeline(self, lenient_names: bool) -> list[Detector]:
        return lenient_pipeline() if lenient_names else strict_pipeline()

    def anonymize(self, text: str, *, lenient_names: bool | None = None) -> AnonymizedMessage:
        """Replace PII in text with formatted tokens.

        ``lenient_names=None`` falls back to the configured default.
        """
        if not isinstance(text, str):
            raise TypeError(f"text must be a str, not {type(text).__name__}")
        lenient = self.config.lenient_names if lenient_names is None else lenient_names

        result = AnonymizedMessage(text=text)
        for detector in self.pipeline(lenient):
            if detector.pii_type in self._skipped:
                continue
            matches = [m for m in detector.detect(result.text)
                       if normalize(m.text) not in self._allowed]
            if not matches:
                continue
            logger.debug("%s tier: %d candidate(s)", detector.source, len(matches))
            if detector.replace_all:
                result.text = self._replace_all(result, matches, detector.ignore_case)
            else:
                result.text = self._replace_spans(result, matches)
        return result

    def _replace_spans(self, result: AnonymizedMessage, matches: list[EntityMatch]) -> str:
        """Tokens are requested in text order; splices go right to left."""
        tokens = []
        for match in matches:
            token = self.vault.get_or_create_token(match.text, match.entity_type)
            tokens.append(token)
            result.token_map[token] = match.text
            result.entities.append(match)

        text = result.text
        for match, token in sorted(zip(matches, tokens), key=lambda p: p[0].start, reverse=True):
            text = text[:match.start] + token + text[match.end:]
        return text

    def _replace_all(self, result: AnonymizedMessage, matches: list[EntityMatch],
                     ignore_case: bool) -> str:
        """Replace every word-bounded occurrence of each candidate."""
        text = result.text
        flags = re.IGNORECASE if ignore_case else 0
        for match in matches:
            occurrence = re.compile(rf"(?<!\w){re.escape(match.text)}(?!\w)", flags)
            if not occurrence.search(text):
                logger.debug("%s candidate already replaced: %r", match.source, match.text)
                continue
            token = self.vault.get_or_create_token(match.text, match.entity_type)
            result.token_map[token] = match.text
            result.entities.append(match)
            text = occurrence.sub(lambda _m: token, text)
        return text
