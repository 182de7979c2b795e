"""WSGI authentication middleware that resolves tenant and user identity."""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass
from typing import Any, Callable, Iterable

from agentforge.ids import new_id
from agentforge.metrics import observe_request_metrics

AUTH_MODE_HEADER = "header"
AUTH_MODE_TRUSTED = "trusted"

HEADER_TENANT_ID = "X-Tenant-Id"
HEADER_USER_ID = "X-User-Id"
HEADER_TRUSTED_TENANT_ID = "X-Authenticated-Tenant-Id"
HEADER_TRUSTED_USER_ID = "X-Authenticated-User-Id"

_TENANT_ENVIRON_KEY = "agentforge.tenant"

logger = logging.getLogger("agentforge.api")

WSGIApp = Callable[[dict, Callable[..., Any]], Iterable[bytes]]


@dataclass(frozen=True)
class TenantInfo:
    """Authenticated identity attached to a request."""

    tenant_id: str
    user_id: str
    request_id: str


def _environ_header(environ: dict, name: str) -> str:
    return environ.get("HTTP_" + name.upper().replace("-", "_"), "")


def get_tenant(environ: dict) -> TenantInfo | None:
    """Return the TenantInfo stored on the request, if any."""
    return environ.get(_TENANT_ENVIRON_KEY)


def effective_auth_mode() -> str:
    """Pick the auth mode from AGENTFORGE_AUTH_MODE, falling back on the runtime."""
    mode = os.environ.get("AGENTFORGE_AUTH_MODE", "").strip().lower()
    if mode == AUTH_MODE_HEADER:
        return AUTH_MODE_HEADER
    if mode in (AUTH_MODE_TRUSTED, "trusted_claims", "claims"):
        return AUTH_MODE_TRUSTED
    if os.environ.get("AGENTFORGE_RUNTIME", "").strip().lower() == "aws":
        return AUTH_MODE_TRUSTED
    return AUTH_MODE_HEADER


def extract_identity(environ: dict, mode: str) -> tuple[str, str]:
    """Read (tenant_id, user_id) from the headers that the mode trusts."""
    if mode == AUTH_MODE_TRUSTED:
        tenant_header, user_header = HEADER_TRUSTED_TENANT_ID, HEADER_TRUSTED_USER_ID
    else:
        tenant_header, user_header = HEADER_TENANT_ID, HEADER_USER_ID
    return (
        _environ_header(environ, tenant_header).strip(),
        _environ_header(environ, user_header).strip(),
    )


def _status_code(status: str) -> int:
    try:
        return int(status.split(None, 1)[0])
    except (ValueError, IndexError):
        return 0


class AuthMiddleware:
    """Rejects requests without identity, tags them with a request id, logs and counts them."""

    def __init__(self, app: WSGIApp) -> None:
        self.app = app

    def __call__(self, environ: dict, start_response: Callable[..., Any]) -> list[bytes]:
        started = time.monotonic()
        mode = effective_auth_mode()
        request_id = _environ_header(environ, "X-Request-Id") or new_id("req_")
        tenant_id, user_id = extract_identity(environ, mode)

        if not tenant_id:
            return self._reject(
                environ, start_response, started, request_id, tenant_id, user_id,
                "missing authenticated tenant identity",
            )
        if not user_id:
            return self._reject(
                environ, start_response, started, request_id, tenant_id, user_id,
                "missing authenticated user identity",
            )

        environ[_TENANT_ENVIRON_KEY] = TenantInfo(
            tenant_id=tenant_id, user_id=user_id, request_id=request_id
        )

        status_holder = {"code": 0}
        written = {"bytes": 0}

        def _start(status: str, headers: list, exc_info: Any = None) -> Callable[[bytes], Any]:
            status_holder["code"] = _status_code(status)
            if not any(name.lower() == "x-request-id" for name, _ in headers):
                headers = list(headers) + [("X-Request-Id", request_id)]
            write = start_response(status, headers, exc_info)

            def _write(data: bytes) -> Any:
                written["bytes"] += len(data)
                return write(data)

            return _write

        result = self.app(environ, _start)
        try:
            chunks = list(result)
        finally:
            close = getattr(result, "close", None)
            if close is not None:
                close()
        written["bytes"] += sum(len(chunk) for chunk in chunks)

        self._log(environ, started, status_holder["code"] or 200, request_id,
                  tenant_id, user_id, written["bytes"])
        return chunks

    def _reject(
        self,
        environ: dict,
        start_response: Callable[..., Any],
        started: float,
        request_id: str,
        tenant_id: str,
        user_id: str,
        message: str,
    ) -> list[bytes]:
        body = (
            '{"error":"' + message + '","request_id":"' + request_id + '"}\n'
        ).encode("utf-8")
        start_response(
            "401 Unauthorized",
            [
                ("Content-Type", "text/plain; charset=utf-8"),
                ("X-Content-Type-Options", "nosniff"),
                ("X-Request-Id", request_id),
                ("Content-Length", str(len(body))),
            ],
        )
        self._log(environ, started, 401, request_id, tenant_id, user_id, len(body))
        return [body]

    @staticmethod
    def _log(
        environ: dict,
        started: float,
        status: int,
        request_id: str,
        tenant_id: str,
        user_id: str,
        written: int,
    ) -> None:
        latency_ms = int((time.monotonic() - started) * 1000)
        observe_request_metrics(status, latency_ms)
        path = environ.get("SCRIPT_NAME", "") + environ.get("PATH_INFO", "")
        logger.info(
            "request method=%s path=%s status=%d latency_ms=%d request_id=%s "
            "tenant_id=%s user_id=%s bytes=%d",
            environ.get("REQUEST_METHOD", ""),
            path,
            status,
            latency_ms,
            request_id,
            tenant_id,
            user_id,
            written,
        )