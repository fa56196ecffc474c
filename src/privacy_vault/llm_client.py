"""Thin wrapper around the OpenAI SDK for single-prompt completions.

The rest of the package only relies on ``complete(text, ...) -> str``;
any object with that method can stand in for this client.
"""

from __future__ import annotations
import logging
import os

from openai import OpenAI, OpenAIError

from .errors import CompletionError, CompletionNotConfiguredError

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-4o-mini"
DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_TOKENS = 256
DEFAULT_TIMEOUT = 30.0
SYSTEM_PROMPT = "You are a helpful assistant."


class LLMClient:
    """Chat-completions client returning plain text."""

    def __init__(
        self,
        api_key: str | None = None,
        *,
        model: str = DEFAULT_MODEL,
        temperature: float = DEFAULT_TEMPERATURE,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        timeout: float = DEFAULT_TIMEOUT,
        base_url: str | None = None,
    ) -> None:
        resolved_key = api_key or os.environ.get("OPENAI_API_KEY")
        if not resolved_key:
            raise CompletionNotConfiguredError(
                "OPENAI_API_KEY is required. Set it in the environment or config."
            )
        self.client = OpenAI(api_key=resolved_key, base_url=base_url, timeout=timeout)
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens

    def complete(
        self,
        text: str,
        *,
        model: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> str:
        """Send text as the user message and return the stripped answer.

        Raises:
            ValueError: text is empty.
            CompletionError: the provider call failed.
        """
        if not isinstance(text, str) or not text.strip():
            raise ValueError("Prompt must be a non-empty string.")

        chosen_model = model or self.model
        try:
            response = self.client.chat.completions.create(
                model=chosen_model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": text},
                ],
                temperature=self.temperature if temperature is None else temperature,
                max_tokens=max_tokens or self.max_tokens,
            )
        except OpenAIError as e:
            logger.error("completion request to %s failed: %s", chosen_model, e)
            raise CompletionError(f"OpenAI API call failed: {e}") from e

        if not response.choices:
            return ""
        return (response.choices[0].message.content or "").strip()
