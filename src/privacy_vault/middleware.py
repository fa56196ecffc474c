"""Privacy middleware: anonymize, call the LLM, deanonymize.

Usage:

    mw = PrivacyMiddleware.create(llm=LLMClient())

    answer = mw.secure_complete("Write to maria garcia at maria@x.com")
    # the provider only ever sees "Write to NAME_… at EMAIL_…"

Prompts always go through lenient name detection: natural-language prompts
often carry names that don't satisfy the capitalization heuristic.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .anonymizer import Anonymizer, AnonymizerConfig
from .deanonymizer import Deanonymizer
from .errors import CompletionNotConfiguredError
from .vault import Vault

if TYPE_CHECKING:
    from .llm_client import LLMClient

logger = logging.getLogger(__name__)


@dataclass
class PrivacyMiddleware:
    """Sits between a client and the LLM provider."""

    vault: Vault
    anonymizer: Anonymizer
    deanonymizer: Deanonymizer
    llm: LLMClient | None = None

    @classmethod
    def create(
        cls,
        *,
        vault: Vault | None = None,
        config: AnonymizerConfig | None = None,
        llm: LLMClient | None = None,
    ) -> "PrivacyMiddleware":
        """Wire anonymizer and deanonymizer around one vault."""
        vault = vault or Vault()
        return cls(
            vault=vault,
            anonymizer=Anonymizer(vault, config),
            deanonymizer=Deanonymizer(vault),
            llm=llm,
        )

    @property
    def completion_configured(self) -> bool:
        return self.llm is not None

    def anonymize_text(self, text: str, *, lenient_names: bool | None = None) -> str:
        return self.anonymizer.anonymize(text, lenient_names=lenient_names).text

    def deanonymize_text(self, text: str) -> str:
        return self.deanonymizer.deanonymize(text)

    def secure_complete(
        self,
        prompt: str,
        *,
        model: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> str:
        """Round-trip a prompt through the LLM without exposing its PII.

        Raises:
            CompletionNotConfiguredError: no LLM client is configured.
            CompletionError: the provider call failed; nothing is returned.
        """
        if self.llm is None:
            raise CompletionNotConfiguredError("no LLM client is configured")

        anonymized = self.anonymizer.anonymize(prompt, lenient_names=True)
        logger.info("sending prompt with %d token(s) to the LLM", len(anonymized.token_map))
        raw_answer = self.llm.complete(
            anonymized.text, model=model, temperature=temperature, max_tokens=max_tokens
        )
        return self.deanonymizer.deanonymize(raw_answer)

    @property
    def stats(self) -> dict:
        return self.vault.stats()
