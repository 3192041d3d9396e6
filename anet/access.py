"""Access-check HTTP service for the VPN server, as a WSGI application."""

from __future__ import annotations

import json
import logging
import sqlite3
from dataclasses import asdict, dataclass
from http import HTTPStatus
from typing import Any, Callable, Iterable

from anet.users import UserStore

log = logging.getLogger(__name__)

MIN_FINGERPRINT_LENGTH = 10
AUTH_HEADER = "X-Auth-Key"
_AUTH_ENVIRON = "HTTP_X_AUTH_KEY"


class AccessValidationError(ValueError):
    """A request did not pass validation."""


@dataclass(frozen=True)
class CheckAccessRequest:
    fingerprint: str

    def __post_init__(self) -> None:
        if not isinstance(self.fingerprint, str):
            raise AccessValidationError("fingerprint must be a string")
        if len(self.fingerprint) < MIN_FINGERPRINT_LENGTH:
            raise AccessValidationError(
                f"fingerprint must be at least {MIN_FINGERPRINT_LENGTH} characters"
            )


@dataclass(frozen=True)
class CheckAccessResponse:
    allowed: bool
    message: str


def check_access(store: UserStore, fingerprint: str) -> CheckAccessResponse:
    """Decide whether the client with this key fingerprint may connect."""
    request = CheckAccessRequest(fingerprint)
    user = store.find_by_fingerprint(request.fingerprint)
    if user is None:
        return CheckAccessResponse(False, "User not found")
    if user.is_active:
        return CheckAccessResponse(True, "Access granted")
    return CheckAccessResponse(False, "Account is banned or inactive")


StartResponse = Callable[..., Any]
WsgiApp = Callable[[dict, StartResponse], Iterable[bytes]]


def _status(code: HTTPStatus) -> str:
    return f"{code.value} {code.phrase}"


def _respond(start_response, code: HTTPStatus, body: bytes, content_type: str):
    start_response(
        _status(code),
        [("Content-Type", content_type), ("Content-Length", str(len(body)))],
    )
    return [body]


def _json(start_response, code: HTTPStatus, payload: Any):
    return _respond(
        start_response, code, json.dumps(payload).encode("utf-8"), "application/json"
    )


class ApiKeyMiddleware:
    """Let through requests carrying the right X-Auth-Key, plus documentation paths."""

    def __init__(self, app: WsgiApp, key: str) -> None:
        self.app = app
        self.key = key

    def __call__(self, environ: dict, start_response: StartResponse):
        if environ.get(_AUTH_ENVIRON) == self.key:
            return self.app(environ, start_response)
        path = environ.get("PATH_INFO", "")
        if "/swagger" in path or "/spec" in path:
            return self.app(environ, start_response)
        log.warning("invalid auth header")
        return _respond(
            start_response,
            HTTPStatus.UNAUTHORIZED,
            f"Invalid or missing {AUTH_HEADER}".encode("utf-8"),
            "text/plain; charset=utf-8",
        )


_SPEC = {
    "openapi": "3.0.0",
    "info": {"title": "ANet Auth", "version": "0.1.0"},
    "paths": {
        "/check_access": {
            "post": {
                "summary": "Access check for the VPN server",
                "requestBody": {
                    "required": True,
                    "content": {
                        "application/json": {
                            "schema": {
                                "type": "object",
                                "required": ["fingerprint"],
                                "properties": {
                                    "fingerprint": {
                                        "type": "string",
                                        "minLength": MIN_FINGERPRINT_LENGTH,
                                    }
                                },
                            }
                        }
                    },
                },
                "responses": {
                    "200": {
                        "description": "Access decision",
                        "content": {
                            "application/json": {
                                "schema": {
                                    "type": "object",
                                    "properties": {
                                        "allowed": {"type": "boolean"},
                                        "message": {"type": "string"},
                                    },
                                }
                            }
                        },
                    }
                },
            }
        }
    },
}


def _read_body(environ: dict) -> bytes:
    try:
        length = int(environ.get("CONTENT_LENGTH") or 0)
    except ValueError:
        length = 0
    return environ["wsgi.input"].read(length) if length > 0 else b""


def create_app(store: UserStore, key: str) -> ApiKeyMiddleware:
    """Build the access-check WSGI application guarded by the API key."""

    def app(environ: dict, start_response: StartResponse):
        path = environ.get("PATH_INFO", "")
        method = environ.get("REQUEST_METHOD", "GET").upper()

        if path == "/check_access":
            if method != "POST":
                return _json(
                    start_response,
                    HTTPStatus.METHOD_NOT_ALLOWED,
                    {"error": "method not allowed"},
                )
            try:
                payload = json.loads(_read_body(environ) or b"null")
                if not isinstance(payload, dict) or "fingerprint" not in payload:
                    raise AccessValidationError("missing field `fingerprint`")
                result = check_access(store, payload["fingerprint"])
            except (ValueError, AccessValidationError) as exc:
                return _json(start_response, HTTPStatus.BAD_REQUEST, {"error": str(exc)})
            except sqlite3.Error as exc:
                log.error("Error DB %s", exc)
                return _json(
                    start_response,
                    HTTPStatus.INTERNAL_SERVER_ERROR,
                    {"error": "internal server error"},
                )
            return _json(start_response, HTTPStatus.OK, asdict(result))

        if path == "/spec" and method == "GET":
            return _json(start_response, HTTPStatus.OK, _SPEC)

        return _json(start_response, HTTPStatus.NOT_FOUND, {"error": "not found"})

    return ApiKeyMiddleware(app, key)