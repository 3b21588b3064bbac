# backend/roomchat/routes/realtime.py
"""
WebSocket endpoint for the realtime push channel.

Handshake: the token is validated before the socket is accepted. A refused
handshake is closed with policy-violation code 1008 and a reason string,
and no frames are ever processed for it.

After admission every text frame must be a JSON object
{"event": <name>, "data": <payload>}. Frames are handled one at a time per
connection, in arrival order. Anything malformed is logged and dropped;
the connection stays open. A connection the core evicts after a failed
send is closed with 1011 and its loop ends.
"""

import asyncio
import json
import logging
from typing import Any, Optional, Tuple

from fastapi import APIRouter, WebSocket, WebSocketDisconnect, status

from ..auth_ws import authenticate_handshake
from ..core.constants import REALTIME_PATH
from ..core.exceptions import ForbiddenException, UnauthorizedException
from ..core.metrics import REALTIME_HANDSHAKES_TOTAL
from ..services.realtime.broadcast import BroadcastCore

logger = logging.getLogger(__name__)

router = APIRouter(tags=["realtime"])


def get_broadcast_core(websocket: WebSocket) -> BroadcastCore:
    return websocket.app.state.realtime


def _parse_frame(raw: str) -> Optional[Tuple[str, Any]]:
    try:
        frame = json.loads(raw)
    except (TypeError, ValueError):
        return None
    if not isinstance(frame, dict) or not isinstance(frame.get("event"), str):
        return None
    return frame["event"], frame.get("data")


@router.websocket(REALTIME_PATH)
async def realtime_endpoint(websocket: WebSocket) -> None:
    core = get_broadcast_core(websocket)

    try:
        user_id = authenticate_handshake(websocket)
    except (UnauthorizedException, ForbiddenException) as e:
        REALTIME_HANDSHAKES_TOTAL.labels(outcome=e.code).inc()
        logger.info(f"[REALTIME] Handshake refused: {e.message}")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason=e.message)
        return

    await websocket.accept()
    REALTIME_HANDSHAKES_TOTAL.labels(outcome="admitted").inc()
    connection = await core.admit(websocket, user_id)

    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
            if not connection.is_open:
                # Evicted by the core after a failed send
                break

            raw = message.get("text")
            if raw is None and message.get("bytes") is not None:
                raw = message["bytes"].decode("utf-8", errors="replace")

            parsed = _parse_frame(raw) if raw is not None else None
            if parsed is None:
                logger.warning(
                    f"[REALTIME] Dropping malformed frame from connection {connection.connection_id}"
                )
                continue

            event, data = parsed
            # Let the handler finish even if this connection goes away mid-fetch
            await asyncio.shield(core.dispatch(connection, event, data))
            if not connection.is_open:
                break
    except WebSocketDisconnect:
        logger.debug(f"[REALTIME] Client disconnected: {connection.connection_id}")
    finally:
        core.release(connection)
