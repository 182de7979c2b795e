"""WebSocket ``$connect`` handler: authenticates the caller and records the connection."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Mapping

logger = logging.getLogger("agentforge.wsconnect")

CONNECTION_TTL = timedelta(hours=2)

_TENANT_JWT_CLAIMS = ("tenant_id", "tenantId", "custom:tenant_id")
_TENANT_LAMBDA_CLAIMS = ("tenant_id", "tenantId", "custom:tenant_id")
_USER_JWT_CLAIMS = ("sub", "user_id", "userId", "cognito:username")
_USER_LAMBDA_CLAIMS = ("sub", "user_id", "userId", "username", "cognito:username")


@dataclass(frozen=True)
class GatewayResponse:
    """Response returned to the API gateway."""

    status_code: int
    body: str

    def as_dict(self) -> dict[str, Any]:
        """Return the wire form with gateway field names."""
        return {"statusCode": self.status_code, "body": self.body}


@dataclass
class Connection:
    """A registered WebSocket connection."""

    connection_id: str
    tenant_id: str
    user_id: str
    task_id: str = ""
    run_id: str = ""
    connected_at: datetime | None = None
    ttl: int = 0


def _mapping(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def _request_context(event: Mapping[str, Any]) -> Mapping[str, Any]:
    return _mapping(event.get("requestContext"))


def _text(value: Any) -> str:
    return value if isinstance(value, str) else ""


def first_non_empty(*args: str) -> str:
    """Return the first argument that is non-empty after trimming, trimmed."""
    for value in args:
        trimmed = value.strip()
        if trimmed:
            return trimmed
    return ""


def lambda_claim_string(claims: Mapping[str, Any] | None, *args: str) -> str:
    """Return the first non-empty string or numeric claim among the given keys."""
    if not claims:
        return ""
    for key in args:
        value = claims.get(key)
        if value is None or isinstance(value, bool):
            continue
        if isinstance(value, str):
            if value.strip():
                return value.strip()
        elif isinstance(value, (int, float)):
            text = str(value).strip()
            if text:
                return text
    return ""


def extract_trusted_identity(event: Mapping[str, Any]) -> tuple[str, str]:
    """Return (tenant_id, user_id) from authorizer claims only; query and headers are ignored."""
    authorizer = _mapping(_request_context(event).get("authorizer"))
    jwt_claims = _mapping(_mapping(authorizer.get("jwt")).get("claims"))
    lambda_claims = _mapping(authorizer.get("lambda"))

    tenant_id = first_non_empty(
        *(_text(jwt_claims.get(name)) for name in _TENANT_JWT_CLAIMS),
        lambda_claim_string(lambda_claims, *_TENANT_LAMBDA_CLAIMS),
    )
    user_id = first_non_empty(
        *(_text(jwt_claims.get(name)) for name in _USER_JWT_CLAIMS),
        lambda_claim_string(lambda_claims, *_USER_LAMBDA_CLAIMS),
    )
    return tenant_id, user_id


def handle_connect(store: Any, event: Mapping[str, Any]) -> GatewayResponse:
    """Process a ``$connect`` event against a store with ``get_task`` and ``put_connection``."""
    conn_id = _text(_request_context(event).get("connectionId"))
    if not conn_id:
        return GatewayResponse(400, '{"error":"missing connectionId"}')

    tenant_id, user_id = extract_trusted_identity(event)
    if not tenant_id or not user_id:
        return GatewayResponse(401, '{"error":"authenticated tenant/user identity required"}')

    query = _mapping(event.get("queryStringParameters"))
    task_id = _text(query.get("task_id"))
    run_id = _text(query.get("run_id"))

    if task_id:
        try:
            task = store.get_task(task_id)
        except Exception:
            return GatewayResponse(404, '{"error":"task not found"}')
        if task.tenant_id != tenant_id:
            return GatewayResponse(403, '{"error":"forbidden"}')
        if task.user_id and task.user_id != user_id:
            return GatewayResponse(403, '{"error":"forbidden"}')

    now = datetime.now(timezone.utc)
    conn = Connection(
        connection_id=conn_id,
        tenant_id=tenant_id,
        user_id=user_id,
        task_id=task_id,
        run_id=run_id,
        connected_at=now,
        ttl=int((now + CONNECTION_TTL).timestamp()),
    )

    try:
        store.put_connection(conn)
    except Exception as exc:
        logger.error("ERROR: PutConnection failed: %s", exc)
        return GatewayResponse(500, '{"error":"internal"}')

    logger.info("Connected: conn=%s tenant=%s user=%s task=%s", conn_id, tenant_id, user_id, task_id)
    return GatewayResponse(200, '{"status":"connected"}')