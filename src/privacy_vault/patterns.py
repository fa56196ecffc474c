"""Detection tiers: regex strategies for emails, phones and names.

Each tier is a small strategy object with ``detect(text)``.  The anonymizer
runs them as an ordered pipeline; every tier sees the text left by the
previous one, so tokens produced earlier are never re-detected:

    email  →  phone  →  capitalized name  →  indicator name  →  lowercase pair
    '------------ strict ------------'    '-------- lenient only --------'

Later tiers trade precision for recall.  The lenient tiers return
*candidates* that the anonymizer substitutes everywhere they occur
(``replace_all``); the strict tiers return exact spans.
"""

from __future__ import annotations
import logging
import re

from .types import EntityMatch, PIIType
from .wordlists import INVALID_FIRST_WORDS, is_common_word, is_stopword

logger = logging.getLogger(__name__)

# Latin-1 letter classes (covers Spanish accents and ñ/ü)
_UPPER = "A-ZÀ-ÖØ-Þ"
_LOWER = "a-zß-öø-ÿ"
_LETTER = _UPPER + _LOWER

_CAPITALIZED_WORD = rf"[{_UPPER}][{_LOWER}]+"

_EMAIL = re.compile(r"\b[A-Za-z0-9._%+\-]+@[A-Za-z0-9.\-]+\.[A-Za-z]{2,}\b")

# Deliberately broad; is_valid_phone() does the real filtering
_PHONE = re.compile(
    r"(?<![\w+])"
    r"\+?"
    r"(?:\(\d{1,4}\)[ \-]?)?"
    r"\d[\d \-()]{5,}\d"
    r"(?!\w)"
)

_CAPITALIZED_RUN = re.compile(
    rf"\b{_CAPITALIZED_WORD}(?:[ \t]+{_CAPITALIZED_WORD})*\b"
)

_INTRODUCER = (
    r"(?i:\b(?:"
    r"(?:nombre\s+es|llamad[oa]|me\s+llamo|se\s+llama|de\s+nombre"
    r"|name\s+is|called|named)\s+"
    r"|(?:nombre|name)\s*:\s*"
    r"))"
)
_INDICATOR_NAME = re.compile(
    _INTRODUCER
    + rf"({_CAPITALIZED_WORD}(?:[ \t]+{_CAPITALIZED_WORD})+"
    + rf"|[{_LETTER}]{{3,}}[ \t]+[{_LETTER}]{{3,}})"
    + r"(?!\w)"
)

_LOWERCASE_WORD = re.compile(rf"[{_LOWER}]{{2,}}")
_UPPERCASE_WORD = re.compile(rf"[{_UPPER}]{{2,}}")
_WORD_GAP = re.compile(r"[ \t]+")

_WORD = re.compile(r"\S+")
_TEXT_WORD = re.compile(r"\w+")

MIN_PHONE_DIGITS = 7
MAX_PHONE_DIGITS = 15
MIN_NAME_LENGTH = 3
MIN_INDICATOR_NAME_LENGTH = 6


def is_valid_phone(candidate: str) -> bool:
    """True when the candidate carries a plausible number of digits."""
    digits = sum(ch.isdigit() for ch in candidate)
    return MIN_PHONE_DIGITS <= digits <= MAX_PHONE_DIGITS


def is_valid_name(candidate: str) -> bool:
    """Reject common words and anything too short to be a name."""
    if len(candidate) < MIN_NAME_LENGTH:
        return False
    return not is_common_word(candidate)


class Detector:
    """Base strategy: scan text, return spans of one PII type."""

    pii_type: PIIType
    source: str = ""
    score: float = 1.0
    # True: the anonymizer replaces every occurrence of each candidate
    replace_all: bool = False
    ignore_case: bool = False

    def detect(self, text: str) -> list[EntityMatch]:
        raise NotImplementedError

    def _match(self, start: int, end: int, text: str) -> EntityMatch:
        return EntityMatch(
            entity_type=self.pii_type,
            start=start,
            end=end,
            text=text,
            score=self.score,
            source=self.source,
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class EmailDetector(Detector):
    pii_type = PIIType.EMAIL
    source = "email"
    score = 1.0

    def detect(self, text: str) -> list[EntityMatch]:
        return [self._match(m.start(), m.end(), m.group()) for m in _EMAIL.finditer(text)]


class PhoneDetector(Detector):
    pii_type = PIIType.PHONE
    source = "phone"
    score = 0.85

    def detect(self, text: str) -> list[EntityMatch]:
        matches: list[EntityMatch] = []
        for m in _PHONE.finditer(text):
            if is_valid_phone(m.group()):
                matches.append(self._match(m.start(), m.end(), m.group()))
            else:
                logger.debug("phone candidate rejected (digit count): %r", m.group())
        return matches


class CapitalizedNameDetector(Detector):
    """Runs of capitalized words, minus sentence-initial common words."""

    pii_type = PIIType.NAME
    source = "capitalized"
    score = 0.7

    def detect(self, text: str) -> list[EntityMatch]:
        matches: list[EntityMatch] = []
        for m in _CAPITALIZED_RUN.finditer(text):
            words = [(w.start(), w.end()) for w in _WORD.finditer(m.group())]
            # "Contact John Smith" → "John Smith"
            while words and is_common_word(m.group()[words[0][0]:words[0][1]]):
                words.pop(0)
            while words and is_common_word(m.group()[words[-1][0]:words[-1][1]]):
                words.pop()
            if not words:
                logger.debug("capitalized candidate rejected (common word): %r", m.group())
                continue
            start = m.start() + words[0][0]
            end = m.start() + words[-1][1]
            candidate = text[start:end]
            if not is_valid_name(candidate):
                logger.debug("capitalized candidate rejected: %r", candidate)
                continue
            matches.append(self._match(start, end, candidate))
        return matches


class IndicatorNameDetector(Detector):
    """Names right after an introducer ("cuyo nombre es", "named", ...).

    Candidates are deduplicated case-insensitively and returned in
    reverse text position.
    """

    pii_type = PIIType.NAME
    source = "indicator"
    score = 0.6
    replace_all = True
    ignore_case = True

    def detect(self, text: str) -> list[EntityMatch]:
        seen: set[str] = set()
        matches: list[EntityMatch] = []
        for m in _INDICATOR_NAME.finditer(text):
            candidate = m.group(1)
            if len(candidate) < MIN_INDICATOR_NAME_LENGTH:
                continue
            words = candidate.split()
            if words[0].lower() in INVALID_FIRST_WORDS or any(is_stopword(w) for w in words):
                logger.debug("indicator candidate rejected (stopword): %r", candidate)
                continue
            key = candidate.lower()
            if key in seen:
                continue
            seen.add(key)
            matches.append(self._match(m.start(1), m.end(1), candidate))
        matches.sort(key=lambda e: e.start, reverse=True)
        return matches


class LowercaseNameDetector(Detector):
    """Broad fallback: any adjacent pair of lowercase (or all-caps) words that
    survives the stopword, first-word and length filters.  Deduplicated, in
    text order.
    """

    pii_type = PIIType.NAME
    source = "lowercase"
    score = 0.4
    replace_all = True

    def detect(self, text: str) -> list[EntityMatch]:
        seen: set[str] = set()
        matches: list[EntityMatch] = []
        words = list(_TEXT_WORD.finditer(text))
        i = 0
        while i < len(words) - 1:
            first, second = words[i], words[i + 1]
            if not (_WORD_GAP.fullmatch(text, first.end(), second.start())
                    and self._plausible(first.group(), second.group())):
                i += 1
                continue
            # an accepted pair consumes both words
            i += 2
            candidate = text[first.start():second.end()]
            if candidate in seen:
                continue
            seen.add(candidate)
            matches.append(self._match(first.start(), second.end(), candidate))
        return matches

    @staticmethod
    def _plausible(first: str, second: str) -> bool:
        # both lowercase or both all-caps; title case is the capitalized tier's
        same_case = any(
            shape.fullmatch(first) and shape.fullmatch(second)
            for shape in (_LOWERCASE_WORD, _UPPERCASE_WORD)
        )
        if not same_case:
            return False
        if is_stopword(first) or is_stopword(second) or first.lower() in INVALID_FIRST_WORDS:
            return False
        return len(first) >= MIN_NAME_LENGTH and len(second) >= MIN_NAME_LENGTH


def strict_pipeline() -> list[Detector]:
    """Default tiers, in the order they must run."""
    return [EmailDetector(), PhoneDetector(), CapitalizedNameDetector()]


def lenient_pipeline() -> list[Detector]:
    """Strict tiers followed by the higher-recall name tiers."""
    return strict_pipeline() + [IndicatorNameDetector(), LowercaseNameDetector()]
