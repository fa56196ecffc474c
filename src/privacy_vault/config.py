"""YAML/dict config loader for privacy-vault.

Supports loading from a YAML file or a plain dict (for embedding
in a larger service config).

Example YAML:

    privacy_vault:
      lenient_names: false
      token_length: 8
      warm_cache: true
      allow_list:
        - support@example.com
      skip_types:
        - PHONE
      vault:
        backend: sqlite          # "memory" or "sqlite"
        path: ~/.privacy-vault/vault.db
        timeout: 5
      openai:
        api_key: null            # falls back to OPENAI_API_KEY
        model: gpt-4o-mini
        temperature: 0.7
        max_tokens: 256
        timeout: 30
"""

from __future__ import annotations
import logging
import os
from pathlib import Path
from typing import Any

from .anonymizer import Anonymizer, AnonymizerConfig
from .deanonymizer import Deanonymizer
from .errors import CompletionNotConfiguredError
from .llm_client import (
    DEFAULT_MAX_TOKENS, DEFAULT_MODEL, DEFAULT_TEMPERATURE, DEFAULT_TIMEOUT, LLMClient,
)
from .middleware import PrivacyMiddleware
from .tokens import DEFAULT_TOKEN_LENGTH, TokenCodec
from .types import PIIType
from .vault import Vault
from .vault_sqlite import SqliteStore

logger = logging.getLogger(__name__)

DEFAULT_DB = str(Path.home() / ".privacy-vault" / "vault.db")


def load_config(data: dict[str, Any] | None) -> dict[str, Any]:
    """Normalize a config dict (from YAML or inline)."""
    data = data or {}
    # Support nested under "privacy_vault" key or flat
    if "privacy_vault" in data:
        data = data["privacy_vault"] or {}

    vault = data.get("vault") or {}
    openai = data.get("openai") or {}
    return {
        "lenient_names": bool(data.get("lenient_names", False)),
        "token_length": int(data.get("token_length", DEFAULT_TOKEN_LENGTH)),
        "warm_cache": bool(data.get("warm_cache", True)),
        "allow_list": set(data.get("allow_list") or []),
        "skip_types": {PIIType(str(t).upper()) for t in data.get("skip_types") or []},
        "vault_backend": vault.get("backend", "sqlite"),
        "vault_path": vault.get("path", DEFAULT_DB),
        "vault_timeout": float(vault.get("timeout", 5.0)),
        "openai_api_key": openai.get("api_key") or os.environ.get("OPENAI_API_KEY"),
        "openai_model": openai.get("model", DEFAULT_MODEL),
        "openai_base_url": openai.get("base_url"),
        "openai_temperature": float(openai.get("temperature", DEFAULT_TEMPERATURE)),
        "openai_max_tokens": int(openai.get("max_tokens", DEFAULT_MAX_TOKENS)),
        "openai_timeout": float(openai.get("timeout", DEFAULT_TIMEOUT)),
    }


def load_from_yaml(path: str | Path) -> dict[str, Any]:
    """Load config from a YAML file."""
    import yaml
    with open(Path(path).expanduser()) as f:
        return load_config(yaml.safe_load(f))


def create_middleware(config: dict[str, Any] | None = None) -> PrivacyMiddleware:
    """Create a fully configured middleware from a config dict."""
    cfg = config if config and "vault_backend" in config else load_config(config)

    codec = TokenCodec(cfg["token_length"])
    if cfg["vault_backend"] == "sqlite":
        vault = Vault(SqliteStore(cfg["vault_path"], timeout=cfg["vault_timeout"]), codec=codec)
        if cfg["warm_cache"]:
            vault.warm_cache()
    elif cfg["vault_backend"] == "memory":
        vault = Vault(codec=codec)
    else:
        raise ValueError(f"unknown vault backend: {cfg['vault_backend']!r}")

    anonymizer_config = AnonymizerConfig(
        lenient_names=cfg["lenient_names"],
        skip_types=cfg["skip_types"],
        allow_list=cfg["allow_list"],
    )

    llm = None
    if cfg["openai_api_key"]:
        try:
            llm = LLMClient(
                cfg["openai_api_key"],
                model=cfg["openai_model"],
                temperature=cfg["openai_temperature"],
                max_tokens=cfg["openai_max_tokens"],
                timeout=cfg["openai_timeout"],
                base_url=cfg["openai_base_url"],
            )
        except CompletionNotConfiguredError as e:
            logger.warning("LLM client not initialized: %s", e)
    else:
        logger.warning("OPENAI_API_KEY not set; secure completion is disabled")

    return PrivacyMiddleware(
        vault=vault,
        anonymizer=Anonymizer(vault, anonymizer_config),
        deanonymizer=Deanonymizer(vault),
        llm=llm,
    )
