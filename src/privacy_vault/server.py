"""HTTP server for privacy-vault.

Runs as a lightweight stdlib HTTP server (one thread per request).

Endpoints:
    POST /anonymize       {"message"}            → {"anonymizedMessage"}
    POST /deanonymize     {"anonymizedMessage"}  → {"message"}
    POST /secure-complete {"prompt", "model"?, "temperature"?, "maxTokens"?} → {"answer"}
    POST /secureChatGPT   alias of /secure-complete
    GET  /stats           token counts and store status
    GET  /health          health check

All endpoints expect/return JSON.  Errors use
{"error": "<HTTP reason>", "details": "..."}.
"""

from __future__ import annotations
import json
import logging
import os
from datetime import datetime, timezone
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any

from . import __version__
from .config import create_middleware, load_config, load_from_yaml
from .errors import CompletionError, CompletionNotConfiguredError, InvalidInputError
from .middleware import PrivacyMiddleware

logger = logging.getLogger(__name__)

SERVICE_NAME = "Data Privacy Vault"
DEFAULT_HOST = os.environ.get("PRIVACY_VAULT_HOST", "127.0.0.1")
DEFAULT_PORT = int(os.environ.get("PRIVACY_VAULT_PORT", "3001"))
# /secureChatGPT kept for clients of the earlier service
SECURE_COMPLETE_PATHS = ("/secure-complete", "/secureChatGPT")

# Shared state
_middleware: PrivacyMiddleware | None = None


def _require_string(body: dict[str, Any], field: str) -> str:
    value = body.get(field)
    if value is None or value == "":
        raise InvalidInputError(f"{field} field is required")
    if not isinstance(value, str):
        raise InvalidInputError(f"{field} must be a string")
    return value


def _optional(body: dict[str, Any], field: str, kinds: tuple[type, ...]) -> Any:
    value = body.get(field)
    if value is None:
        return None
    # bool is an int subclass; only accept it where asked for
    if (isinstance(value, bool) and bool not in kinds) or not isinstance(value, kinds):
        raise InvalidInputError(f"{field} has an invalid type")
    return value


class PrivacyHandler(BaseHTTPRequestHandler):
    """HTTP request handler for the privacy vault."""

    server_version = "privacy-vault/" + __version__

    def _read_body(self) -> bytes:
        header = self.headers.get("Content-Length", "0")
        try:
            length = int(header)
        except ValueError as e:
            raise InvalidInputError(f"invalid Content-Length: {header!r}") from e
        return self.rfile.read(length) if length > 0 else b""

    @staticmethod
    def _parse_json(raw: bytes) -> dict[str, Any]:
        try:
            data = json.loads(raw.decode("utf-8")) if raw else {}
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise InvalidInputError(f"invalid JSON body: {e}") from e
        if not isinstance(data, dict):
            raise InvalidInputError("request body must be a JSON object")
        return data

    def _respond(self, status: int, data: Any) -> None:
        body = json.dumps(data, ensure_ascii=False).encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def _error(self, status: int, error: str, details: str) -> None:
        self._respond(status, {"error": error, "details": details})

    def log_message(self, format: str, *args: Any) -> None:
        logger.debug("%s - %s", self.address_string(), format % args)

    def do_GET(self) -> None:
        mw = _middleware
        if self.path == "/health":
            self._respond(200, {
                "status": "healthy",
                "service": SERVICE_NAME,
                "version": __version__,
                "timestamp": datetime.now(timezone.utc).isoformat(),
            })
        elif self.path == "/stats":
            stats = mw.stats
            self._respond(200, {
                "tokensInMemory": stats["tokens_in_memory"],
                "tokensInPersistentStore": stats["tokens_in_store"],
                "backingStoreConnected": stats["store_connected"],
            })
        else:
            self._error(404, "Not Found", "The requested endpoint does not exist")

    def do_POST(self) -> None:
        mw = _middleware
        try:
            # read the body before any early response
            raw = self._read_body()
            if self.path == "/anonymize":
                body = self._parse_json(raw)
                message = _require_string(body, "message")
                lenient = _optional(body, "lenientNames", (bool,))
                self._respond(200, {
                    "anonymizedMessage": mw.anonymize_text(message, lenient_names=lenient),
                })

            elif self.path == "/deanonymize":
                body = self._parse_json(raw)
                text = _require_string(body, "anonymizedMessage")
                self._respond(200, {"message": mw.deanonymize_text(text)})

            elif self.path in SECURE_COMPLETE_PATHS:
                if not mw.completion_configured:
                    self._error(501, "Not Implemented", "OpenAI is not configured on this server")
                    return
                body = self._parse_json(raw)
                prompt = _require_string(body, "prompt")
                answer = mw.secure_complete(
                    prompt,
                    model=_optional(body, "model", (str,)),
                    temperature=_optional(body, "temperature", (int, float)),
                    max_tokens=_optional(body, "maxTokens", (int,)),
                )
                self._respond(200, {"answer": answer})

            else:
                self._error(404, "Not Found", "The requested endpoint does not exist")

        except (InvalidInputError, ValueError) as e:
            self._error(400, "Bad Request", str(e))
        except CompletionNotConfiguredError:
            self._error(501, "Not Implemented", "OpenAI is not configured on this server")
        except CompletionError:
            logger.exception("error in %s", self.path)
            self._error(500, "Internal Server Error", "Failed to process completion request")
        except Exception:
            logger.exception("error in %s", self.path)
            self._error(500, "Internal Server Error",
                        "An error occurred while processing the request")


def create_server(middleware: PrivacyMiddleware, host: str = DEFAULT_HOST,
                  port: int = DEFAULT_PORT) -> ThreadingHTTPServer:
    """Bind a server for middleware without starting it."""
    global _middleware
    _middleware = middleware
    return ThreadingHTTPServer((host, port), PrivacyHandler)


def serve(middleware: PrivacyMiddleware | None = None, host: str = DEFAULT_HOST,
          port: int = DEFAULT_PORT) -> None:
    """Start the privacy vault HTTP server."""
    mw = middleware or create_middleware()
    server = create_server(mw, host, port)
    stats = mw.stats
    print(f"{SERVICE_NAME} listening on http://{host}:{server.server_port}")
    print(f"  store: {'connected' if stats['store_connected'] else 'memory only'}"
          f" ({stats['tokens_in_memory']} tokens cached)")
    print(f"  secure completion: {'enabled' if mw.completion_configured else 'disabled'}")
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        print("\nShutting down...")
    finally:
        server.server_close()
        mw.vault.close()


if __name__ == "__main__":
    import argparse
    parser = argparse.ArgumentParser(description="Privacy vault HTTP server")
    parser.add_argument("--host", default=DEFAULT_HOST)
    parser.add_argument("--port", type=int, default=DEFAULT_PORT)
    parser.add_argument("--config", default=os.environ.get("PRIVACY_VAULT_CONFIG"))
    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO)
    cfg = load_from_yaml(args.config) if args.config else load_config({})
    serve(create_middleware(cfg), host=args.host, port=args.port)
