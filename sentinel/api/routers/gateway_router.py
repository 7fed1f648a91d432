# =============================================================================
# File: sentinel/api/routers/gateway_router.py
# Description: WebSocket endpoint for the Connection Gateway
# =============================================================================

import logging
from typing import Optional

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from sentinel.config.gateway_config import get_gateway_config
from sentinel.realtime.core.types import ErrorCode, GatewayEvent
from sentinel.realtime.websocket.gateway_connection import GatewayConnection
from sentinel.realtime.websocket.gateway_handlers import GatewayHandler
from sentinel.realtime.websocket.gateway_manager import ConnectionGateway
from sentinel.security.jwt_auth import extract_handshake_token

log = logging.getLogger("sentinel.api.gateway")
router = APIRouter()


def _frame_text(message: dict) -> Optional[str]:
    if message.get("text") is not None:
        return message["text"]
    data = message.get("bytes")
    if data is not None:
        return data.decode("utf-8", errors="replace")
    return None


@router.websocket("/ws")
async def gateway_endpoint(websocket: WebSocket) -> None:
    """
    Connection Gateway socket.

    Handshake token: ?token=, Authorization: Bearer, or the access_token cookie.
    """
    # Accept first so an auth failure can be reported as a frame before closing
    await websocket.accept()

    gateway: ConnectionGateway = websocket.app.state.gateway
    config = get_gateway_config()

    client_ip = websocket.client.host if websocket.client else "unknown"
    connection = GatewayConnection(ws=websocket, send_timeout=config.send_timeout_seconds)
    log.info(f"WebSocket connection attempt {connection.conn_id} from {client_ip}")

    token = extract_handshake_token(websocket.query_params, websocket.headers, websocket.cookies)

    try:
        if not await gateway.authenticate(connection, token):
            return

        handler = GatewayHandler(
            connection,
            gateway,
            max_presence_query=config.max_presence_query,
            max_frame_size=config.max_frame_size,
        )

        while not connection.is_closed:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                log.info(f"WebSocket {connection.conn_id} disconnect message received")
                break

            text = _frame_text(message)
            if text is None:
                continue

            await handler.handle_raw(text)

    except WebSocketDisconnect:
        log.info(f"WebSocket {connection.conn_id} disconnected")

    except Exception as e:
        log.error(f"WebSocket {connection.conn_id} error: {e}", exc_info=True)
        await connection.send_frame(GatewayEvent.ERROR, {
            "code": ErrorCode.HANDLER_ERROR.value,
            "message": "Internal server error",
        })
        await connection.close(code=1011, reason="Server error")

    finally:
        await gateway.disconnect(connection)
        await connection.close(code=1000, reason="Normal closure")
        log.info(
            f"WebSocket {connection.conn_id} closed - "
            f"frames {connection.frames_sent}/{connection.frames_received}"
        )
