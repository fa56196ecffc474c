"""CLI interface for privacy-vault.

Usage:
    # Anonymize text (stdin → stdout)
    echo 'Call Dago Borda at 3152319157' | privacy-vault anonymize

    # Lenient name detection for lowercase names
    echo 'cuyo nombre es maria garcia' | privacy-vault anonymize --lenient

    # Deanonymize text (stdin → stdout)
    echo 'Call NAME_1b2c3d4e at PHONE_5f6a7b8c' | privacy-vault deanonymize

    # Anonymize → LLM → deanonymize
    echo 'Summarize the CV of the person called john doe' | privacy-vault secure-complete

    # Inspect the vault
    privacy-vault stats
    privacy-vault dump

    # Run the HTTP server
    privacy-vault serve --port 3001

Mappings persist in SQLite (``--db``) unless ``--memory`` is given.
"""

from __future__ import annotations
import argparse
import json
import logging
import os
import sys

from .config import DEFAULT_DB, create_middleware, load_config, load_from_yaml
from .errors import CompletionError, CompletionNotConfiguredError
from .middleware import PrivacyMiddleware


def _build_middleware(args: argparse.Namespace) -> PrivacyMiddleware:
    cfg = load_from_yaml(args.config) if args.config else load_config({})
    if args.memory:
        cfg["vault_backend"] = "memory"
    elif args.db:
        cfg["vault_backend"] = "sqlite"
        cfg["vault_path"] = args.db
    return create_middleware(cfg)


def cmd_anonymize(args: argparse.Namespace, mw: PrivacyMiddleware) -> int:
    """Anonymize plain text on stdin."""
    text = sys.stdin.read()
    result = mw.anonymizer.anonymize(text, lenient_names=args.lenient or None)
    if args.json:
        output = {
            "anonymizedMessage": result.text,
            "entities": [
                {"type": e.entity_type.value, "text": e.text, "score": e.score, "source": e.source}
                for e in result.entities
            ],
            "token_count": len(result.token_map),
        }
        json.dump(output, sys.stdout, ensure_ascii=False)
        sys.stdout.write("\n")
    else:
        sys.stdout.write(result.text)
    return 0


def cmd_deanonymize(args: argparse.Namespace, mw: PrivacyMiddleware) -> int:
    """Deanonymize tokens in text on stdin."""
    sys.stdout.write(mw.deanonymize_text(sys.stdin.read()))
    return 0


def cmd_secure_complete(args: argparse.Namespace, mw: PrivacyMiddleware) -> int:
    """Send a stdin prompt through anonymize → LLM → deanonymize."""
    prompt = sys.stdin.read()
    if not prompt.strip():
        sys.stderr.write("error: prompt is empty\n")
        return 2
    try:
        answer = mw.secure_complete(
            prompt, model=args.model, temperature=args.temperature, max_tokens=args.max_tokens,
        )
    except CompletionNotConfiguredError as e:
        sys.stderr.write(f"error: {e} (set OPENAI_API_KEY)\n")
        return 3
    except CompletionError as e:
        sys.stderr.write(f"error: {e}\n")
        return 1
    sys.stdout.write(answer + "\n")
    return 0


def cmd_stats(args: argparse.Namespace, mw: PrivacyMiddleware) -> int:
    """Print token counts and store status as JSON."""
    json.dump(mw.stats, sys.stdout, indent=2)
    sys.stdout.write("\n")
    return 0


def cmd_dump(args: argparse.Namespace, mw: PrivacyMiddleware) -> int:
    """Dump cached mappings as JSON."""
    json.dump(mw.vault.dump(), sys.stdout, indent=2, ensure_ascii=False)
    sys.stdout.write("\n")
    return 0


def cmd_serve(args: argparse.Namespace, mw: PrivacyMiddleware) -> int:
    from .server import serve
    serve(mw, host=args.host, port=args.port)
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="privacy-vault",
        description="Reversible PII tokenization for LLM pipelines",
    )
    parser.add_argument("--db", default=os.environ.get("PRIVACY_VAULT_DB"),
                        help=f"SQLite store path (default: {DEFAULT_DB})")
    parser.add_argument("--memory", action="store_true", help="Memory-only vault, nothing persisted")
    parser.add_argument("--config", default=os.environ.get("PRIVACY_VAULT_CONFIG"),
                        help="YAML config file")
    parser.add_argument("--log-level", default="WARNING", help="Logging level")

    sub = parser.add_subparsers(dest="command", required=True)
    p = sub.add_parser("anonymize", help="Anonymize plain text (stdin)")
    p.add_argument("--lenient", action="store_true", help="Enable lenient name detection")
    p.add_argument("--json", action="store_true", help="Emit entities as JSON")
    sub.add_parser("deanonymize", help="Deanonymize tokens (stdin)")
    p = sub.add_parser("secure-complete", help="Anonymized LLM completion (stdin)")
    p.add_argument("--model", default=None)
    p.add_argument("--temperature", type=float, default=None)
    p.add_argument("--max-tokens", type=int, default=None)
    sub.add_parser("stats", help="Show vault statistics")
    sub.add_parser("dump", help="Dump cached mappings")
    p = sub.add_parser("serve", help="Run the HTTP server")
    p.add_argument("--host", default=os.environ.get("PRIVACY_VAULT_HOST", "127.0.0.1"))
    p.add_argument("--port", type=int, default=int(os.environ.get("PRIVACY_VAULT_PORT", "3001")))

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    cmds = {
        "anonymize": cmd_anonymize,
        "deanonymize": cmd_deanonymize,
        "secure-complete": cmd_secure_complete,
        "stats": cmd_stats,
        "dump": cmd_dump,
        "serve": cmd_serve,
    }
    mw = _build_middleware(args)
    try:
        return cmds[args.command](args, mw)
    finally:
        mw.vault.close()


if __name__ == "__main__":
    sys.exit(main())
