# =============================================================================
# File: tests/fakes/fake_websocket.py
# Description: Fake Starlette WebSocket for gateway unit tests
# =============================================================================

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

from starlette.websockets import WebSocketState


class FakeWebSocket:
    """
    Captures frames written by GatewayConnection.

    Usage:
        ws = FakeWebSocket()
        conn = GatewayConnection(ws=ws)
        await conn.send_frame("pong", {})
        assert ws.frame_types() == ["pong"]
    """

    def __init__(self, fail_sends: bool = False):
        self.client_state = WebSocketState.CONNECTED
        self.application_state = WebSocketState.CONNECTED
        self.sent: List[str] = []
        self.close_code: Optional[int] = None
        self.close_reason: Optional[str] = None
        self.fail_sends = fail_sends

    async def send_text(self, data: str) -> None:
        if self.fail_sends:
            raise RuntimeError("socket is broken")
        self.sent.append(data)

    async def close(self, code: int = 1000, reason: str = "") -> None:
        self.close_code = code
        self.close_reason = reason
        self.application_state = WebSocketState.DISCONNECTED

    # =========================================================================
    # Test Verification Methods
    # =========================================================================

    @property
    def closed(self) -> bool:
        return self.close_code is not None

    def frames(self) -> List[Dict[str, Any]]:
        return [json.loads(s) for s in self.sent]

    def frame_types(self) -> List[str]:
        return [f["t"] for f in self.frames()]

    def frames_of(self, event: str) -> List[Dict[str, Any]]:
        return [f["p"] for f in self.frames() if f["t"] == event]

    def clear(self) -> None:
        self.sent.clear()
