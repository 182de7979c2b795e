"""WebSocket ``$disconnect`` handler: removes the recorded connection."""

from __future__ import annotations

import logging
from typing import Any, Mapping

from agentforge.wsconnect import GatewayResponse

logger = logging.getLogger("agentforge.wsdisconnect")


def handle_disconnect(store: Any, event: Mapping[str, Any]) -> GatewayResponse:
    """Process a ``$disconnect`` event against a store with ``delete_connection``."""
    context = event.get("requestContext")
    conn_id = context.get("connectionId") if isinstance(context, Mapping) else None
    if not isinstance(conn_id, str) or not conn_id:
        return GatewayResponse(400, '{"error":"missing connectionId"}')

    try:
        store.delete_connection(conn_id)
    except Exception as exc:
        logger.error("ERROR: DeleteConnection failed: %s", exc)
        return GatewayResponse(500, '{"error":"internal"}')

    logger.info("Disconnected: conn=%s", conn_id)
    return GatewayResponse(200, '{"status":"disconnected"}')