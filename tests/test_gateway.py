# =============================================================================
# File: tests/test_gateway.py
# Description: Connection Gateway - handshake, rooms, typing, presence, disconnect
# =============================================================================

import pytest

from sentinel.realtime.core.types import ConnectionState, ErrorCode, WS_POLICY_VIOLATION
from sentinel.realtime.websocket.gateway_connection import GatewayConnection
from sentinel.realtime.websocket.gateway_handlers import GatewayHandler

from tests.fakes.fake_websocket import FakeWebSocket


@pytest.fixture
def connect(gateway, make_token):
    async def _connect(user_id: str):
        ws = FakeWebSocket()
        conn = GatewayConnection(ws=ws)
        assert await gateway.authenticate(conn, make_token(user_id))
        return conn, ws, GatewayHandler(conn, gateway)
    return _connect


async def test_bad_token_is_rejected_with_policy_close(gateway):
    ws = FakeWebSocket()
    conn = GatewayConnection(ws=ws)

    assert await gateway.authenticate(conn, "not-a-jwt") is False

    assert conn.state == ConnectionState.REJECTED
    [error] = ws.frames_of("error")
    assert error["code"] == ErrorCode.AUTH_FAILED.value
    assert ws.close_code == WS_POLICY_VIOLATION
    assert gateway.connection_count == 0


async def test_token_for_unknown_user_is_rejected(gateway, make_token):
    ws = FakeWebSocket()
    conn = GatewayConnection(ws=ws)

    assert await gateway.authenticate(conn, make_token("nobody")) is False
    assert ws.close_code == WS_POLICY_VIOLATION


async def test_missing_token_is_rejected(gateway):
    ws = FakeWebSocket()
    assert await gateway.authenticate(GatewayConnection(ws=ws), None) is False
    assert ws.frames_of("error")[0]["code"] == "AUTH_FAILED"


async def test_server_ready_carries_identity(connect):
    conn, ws, _ = await connect("alice")

    [ready] = ws.frames_of("server_ready")
    assert ready["user_id"] == "alice"
    assert ready["username"] == "Alice"
    assert ready["connection_id"] == conn.conn_id
    assert conn.state == ConnectionState.AUTHENTICATED


async def test_frames_from_rejected_connection_are_dropped(gateway):
    ws = FakeWebSocket()
    conn = GatewayConnection(ws=ws)
    await gateway.authenticate(conn, "bad")
    ws.clear()

    await GatewayHandler(conn, gateway).handle_message({"t": "ping", "p": {}})

    assert ws.sent == []


async def test_join_and_leave_are_acknowledged_and_idempotent(connect, gateway):
    conn, ws, handler = await connect("alice")

    await handler.handle_message({"t": "join_room", "p": {"room_id": "r1"}})
    await handler.handle_message({"type": "join_room", "payload": {"room_id": "r1"}})
    assert gateway.bus.subscriber_count("r1") == 1
    assert ws.frames_of("room_joined") == [{"room_id": "r1"}, {"room_id": "r1"}]

    await handler.handle_message({"t": "leave_room", "p": {"room_id": "r1"}})
    await handler.handle_message({"t": "leave_room", "p": {"room_id": "r1"}})
    assert gateway.bus.subscriber_count("r1") == 0
    assert len(ws.frames_of("room_left")) == 2


async def test_typing_reaches_others_but_not_sender(connect):
    alice, alice_ws, alice_handler = await connect("alice")
    _, bob_ws, bob_handler = await connect("bob")
    for handler in (alice_handler, bob_handler):
        await handler.handle_message({"t": "join_room", "p": {"room_id": "r1"}})

    await alice_handler.handle_message({"t": "typing", "p": {"room_id": "r1", "is_typing": True}})

    assert alice_ws.frames_of("typing") == []
    assert bob_ws.frames_of("typing") == [
        {"room_id": "r1", "user_id": "alice", "username": "Alice", "is_typing": True}
    ]


async def test_malformed_and_unknown_frames_produce_errors(connect):
    _, ws, handler = await connect("alice")

    await handler.handle_message({"t": "join_room", "p": {}})
    await handler.handle_message({"t": "typing", "p": {"room_id": "r1", "is_typing": "yes"}})
    await handler.handle_message({"t": "dance", "p": {}})
    await handler.handle_message(["not", "an", "object"])
    await handler.handle_message({"t": ["join_room"], "p": {}})
    await handler.handle_message({"t": {"name": "ping"}, "p": {}})
    await handler.handle_message({"p": {}})

    codes = [e["code"] for e in ws.frames_of("error")]
    assert codes == [
        "INVALID_PAYLOAD", "INVALID_PAYLOAD", "UNKNOWN_TYPE", "INVALID_PAYLOAD",
        "INVALID_PAYLOAD", "INVALID_PAYLOAD", "INVALID_PAYLOAD",
    ]

    await handler.handle_message({"t": "ping", "p": {}})
    assert len(ws.frames_of("pong")) == 1


async def test_raw_frames_are_size_checked_and_decoded(gateway, make_token):
    ws = FakeWebSocket()
    conn = GatewayConnection(ws=ws)
    await gateway.authenticate(conn, make_token("alice"))
    handler = GatewayHandler(conn, gateway, max_frame_size=32)

    await handler.handle_raw("{not json")
    await handler.handle_raw('{"t": "ping", "p": {"pad": "' + "x" * 40 + '"}}')
    await handler.handle_raw('{"t": "ping"}')

    assert [e["code"] for e in ws.frames_of("error")] == ["INVALID_JSON", "FRAME_TOO_LARGE"]
    assert len(ws.frames_of("pong")) == 1
    assert not ws.closed


async def test_ping_and_presence_request(connect):
    _, ws, handler = await connect("alice")
    await connect("bob")

    await handler.handle_message({"t": "ping", "p": {"timestamp": 123}})
    await handler.handle_message({"t": "presence_request", "p": {"user_ids": ["bob", "carol"]}})

    [pong] = ws.frames_of("pong")
    assert pong["client_timestamp"] == 123
    assert ws.frames_of("presence_state") == [{"users": {"bob": True, "carol": False}}]


async def test_presence_is_broadcast_on_zero_crossings_only(connect, gateway, presence):
    _, watcher_ws, _ = await connect("carol")
    watcher_ws.clear()

    first, _, _ = await connect("alice")
    second, _, _ = await connect("alice")
    assert watcher_ws.frames_of("presence:update") == [{"user_id": "alice", "online": True}]

    await gateway.disconnect(first)
    assert presence.is_online("alice")
    assert len(watcher_ws.frames_of("presence:update")) == 1

    await gateway.disconnect(second)
    assert not presence.is_online("alice")
    assert watcher_ws.frames_of("presence:update")[-1] == {"user_id": "alice", "online": False}


async def test_disconnected_connection_receives_nothing(connect, gateway):
    alice, alice_ws, alice_handler = await connect("alice")
    await alice_handler.handle_message({"t": "join_room", "p": {"room_id": "r1"}})

    await gateway.disconnect(alice)
    await gateway.disconnect(alice)
    alice_ws.clear()

    delivered = await gateway.emit_to_room("r1", "message:new", {"id": "m1"})

    assert delivered == 0
    assert alice_ws.sent == []
    assert alice.state == ConnectionState.DISCONNECTED
    assert gateway.connection_count == 0


async def test_emit_reaches_every_subscriber_including_sender(connect, gateway):
    _, alice_ws, alice_handler = await connect("alice")
    _, bob_ws, bob_handler = await connect("bob")
    for handler in (alice_handler, bob_handler):
        await handler.handle_message({"t": "join_room", "p": {"room_id": "r1"}})

    delivered = await gateway.emit_to_room("r1", "message:new", {"id": "m1"})

    assert delivered == 2
    assert alice_ws.frames_of("message:new") == [{"id": "m1"}]
    assert bob_ws.frames_of("message:new") == [{"id": "m1"}]


async def test_failing_socket_does_not_abort_fanout(connect, gateway):
    _, alice_ws, alice_handler = await connect("alice")
    _, bob_ws, bob_handler = await connect("bob")
    for handler in (alice_handler, bob_handler):
        await handler.handle_message({"t": "join_room", "p": {"room_id": "r1"}})
    alice_ws.fail_sends = True

    delivered = await gateway.emit_to_room("r1", "message:new", {"id": "m1"})

    assert delivered == 1
    assert bob_ws.frames_of("message:new") == [{"id": "m1"}]


async def test_emit_to_empty_room_is_not_an_error(gateway):
    assert await gateway.emit_to_room("nobody-here", "message:new", {}) == 0
