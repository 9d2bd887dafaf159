"""
Tests for the connection registry and broadcast dispatcher.
"""

import asyncio

import pytest

from conftest import make_websocket, sent_messages
from pathz_api.realtime import (
    BroadcastDispatcher,
    Connection,
    ConnectionRegistry,
    ConnectionState,
    EncodingError,
    SendResult,
    encode_payload,
)


class TestEncodePayload:
    def test_mapping_is_compact_json_in_key_order(self):
        payload = {"type": "PathzChoosed", "storyId": 3, "letter": "z"}
        assert encode_payload(payload) == '{"type":"PathzChoosed","storyId":3,"letter":"z"}'

    def test_string_is_sent_verbatim(self):
        assert encode_payload("ping") == "ping"

    def test_scalar(self):
        assert encode_payload(42) == "42"

    @pytest.mark.parametrize("payload", [{"when": object()}, {1, 2}, b"raw", {"x": float("nan")}])
    def test_unencodable_payload(self, payload):
        with pytest.raises(EncodingError):
            encode_payload(payload)


class TestConnection:
    @pytest.mark.asyncio
    async def test_send_success(self):
        ws = make_websocket()
        conn = Connection(ws)

        result = await conn.send("hello")

        assert result == SendResult.success()
        assert sent_messages(ws) == ["hello"]

    @pytest.mark.asyncio
    async def test_send_failure_is_a_result(self):
        conn = Connection(make_websocket(fail_with=RuntimeError("socket is gone")))

        result = await conn.send("hello")

        assert not result.ok
        assert "socket is gone" in result.reason

    @pytest.mark.asyncio
    async def test_send_timeout(self):
        ws = make_websocket()

        async def stall(message):
            await asyncio.sleep(1)

        ws.send_text.side_effect = stall
        conn = Connection(ws, send_timeout=0.01)

        result = await conn.send("hello")

        assert not result.ok
        assert "timed out" in result.reason

    @pytest.mark.asyncio
    async def test_closed_connection_does_not_send(self):
        ws = make_websocket()
        conn = Connection(ws)
        conn.mark_closed("bye")

        result = await conn.send("hello")

        assert not result.ok
        ws.send_text.assert_not_called()

    @pytest.mark.asyncio
    async def test_failed_send_marks_connection_closed(self):
        conn = Connection(make_websocket(fail_with=RuntimeError("gone")))

        result = await conn.send("hello")

        assert not result.ok
        assert conn.state is ConnectionState.CLOSED

    @pytest.mark.asyncio
    async def test_send_queued_behind_timeout_skips_socket(self):
        ws = make_websocket()

        async def stall(message):
            await asyncio.sleep(1)

        ws.send_text.side_effect = stall
        conn = Connection(ws, send_timeout=0.05)

        first, second = await asyncio.gather(conn.send("a"), conn.send("b"))

        assert not first.ok
        assert not second.ok
        assert ws.send_text.await_count == 1
        assert conn.state is ConnectionState.CLOSED

    def test_mark_closed_is_one_way(self):
        conn = Connection(make_websocket())
        conn.mark_closed("first")
        conn.mark_closed("second")

        assert conn.state is ConnectionState.CLOSED
        assert conn.close_reason == "first"

    def test_identities_are_unique(self):
        assert Connection(make_websocket()).connection_id != Connection(make_websocket()).connection_id


class TestConnectionRegistry:
    @pytest.mark.asyncio
    async def test_register_then_deregister(self):
        registry = ConnectionRegistry()
        conn = Connection(make_websocket())

        await registry.register(conn)
        await registry.deregister(conn)

        assert conn not in await registry.snapshot()
        assert len(registry) == 0

    @pytest.mark.asyncio
    async def test_register_twice_keeps_one(self):
        registry = ConnectionRegistry()
        conn = Connection(make_websocket())

        await registry.register(conn)
        await registry.register(conn)

        assert await registry.snapshot() == [conn]

    @pytest.mark.asyncio
    async def test_deregister_unknown_is_noop(self):
        registry = ConnectionRegistry()
        known = Connection(make_websocket())
        await registry.register(known)

        await registry.deregister(Connection(make_websocket()))

        assert await registry.snapshot() == [known]

    @pytest.mark.asyncio
    async def test_closed_connection_is_never_registered(self):
        registry = ConnectionRegistry()
        conn = Connection(make_websocket())
        await registry.register(conn)
        conn.mark_closed()
        await registry.deregister(conn)

        await registry.register(conn)

        assert len(registry) == 0

    @pytest.mark.asyncio
    async def test_deregistered_connection_cannot_register_again(self):
        registry = ConnectionRegistry()
        conn = Connection(make_websocket())
        await registry.register(conn)
        await registry.deregister(conn)

        await registry.register(conn)

        assert conn not in await registry.snapshot()
        assert conn.state is ConnectionState.CLOSED

    @pytest.mark.asyncio
    async def test_deregister_unknown_connection_marks_closed(self):
        registry = ConnectionRegistry()
        conn = Connection(make_websocket())

        await registry.deregister(conn)
        await registry.register(conn)

        assert len(registry) == 0
        assert conn.state is ConnectionState.CLOSED

    @pytest.mark.asyncio
    async def test_snapshot_is_a_copy(self):
        registry = ConnectionRegistry()
        conn = Connection(make_websocket())
        await registry.register(conn)

        members = await registry.snapshot()
        members.clear()

        assert len(registry) == 1

    @pytest.mark.asyncio
    async def test_concurrent_register_and_deregister(self):
        registry = ConnectionRegistry()
        keep = [Connection(make_websocket()) for _ in range(50)]
        drop = [Connection(make_websocket()) for _ in range(50)]

        await asyncio.gather(*(registry.register(c) for c in keep + drop))
        await asyncio.gather(
            *(registry.deregister(c) for c in drop),
            *(registry.register(c) for c in keep),
        )

        assert set(await registry.snapshot()) == set(keep)


class TestBroadcastDispatcher:
    @pytest.mark.asyncio
    async def test_failing_connection_is_pruned(self):
        registry = ConnectionRegistry()
        dispatcher = BroadcastDispatcher(registry)
        sockets = [make_websocket() for _ in range(4)]
        sockets[2] = make_websocket(fail_with=RuntimeError("closed"))
        conns = [Connection(ws) for ws in sockets]
        for conn in conns:
            await registry.register(conn)

        await dispatcher.broadcast({"type": "PathzChoosed", "storyId": 1})

        remaining = await registry.snapshot()
        assert len(remaining) == 3
        assert conns[2] not in remaining
        assert conns[2].state is ConnectionState.CLOSED
        delivered = [sent_messages(ws) for i, ws in enumerate(sockets) if i != 2]
        assert all(len(messages) == 1 for messages in delivered)
        assert len({messages[0] for messages in delivered}) == 1

    @pytest.mark.asyncio
    async def test_unencodable_payload_sends_nothing(self):
        registry = ConnectionRegistry()
        dispatcher = BroadcastDispatcher(registry)
        ws = make_websocket()
        await registry.register(Connection(ws))

        with pytest.raises(EncodingError):
            await dispatcher.broadcast({"block": object()})

        ws.send_text.assert_not_called()
        assert len(registry) == 1

    @pytest.mark.asyncio
    async def test_each_broadcast_is_a_new_round(self):
        registry = ConnectionRegistry()
        dispatcher = BroadcastDispatcher(registry)
        first = make_websocket()
        await registry.register(Connection(first))

        await dispatcher.broadcast({"n": 1})
        second = make_websocket()
        await registry.register(Connection(second))
        await dispatcher.broadcast({"n": 1})

        assert sent_messages(first) == ['{"n":1}', '{"n":1}']
        assert sent_messages(second) == ['{"n":1}']

    @pytest.mark.asyncio
    async def test_pathz_choosed_scenario(self):
        registry = ConnectionRegistry()
        dispatcher = BroadcastDispatcher(registry)
        ws_a, ws_b = make_websocket(), make_websocket()
        ws_c = make_websocket(fail_with=ConnectionError("peer went away"))
        a, b, c = Connection(ws_a), Connection(ws_b), Connection(ws_c)
        for conn in (a, b, c):
            await registry.register(conn)

        await dispatcher.broadcast(
            {"type": "PathzChoosed", "storyId": 3, "letter": "z", "pathzId": 17, "blockNumber": 1000}
        )

        expected = '{"type":"PathzChoosed","storyId":3,"letter":"z","pathzId":17,"blockNumber":1000}'
        assert sent_messages(ws_a) == [expected]
        assert sent_messages(ws_b) == [expected]
        assert set(await registry.snapshot()) == {a, b}

    @pytest.mark.asyncio
    async def test_no_connections(self):
        dispatcher = BroadcastDispatcher(ConnectionRegistry())

        await dispatcher.broadcast({"anything": True})

    @pytest.mark.asyncio
    async def test_pruned_socket_is_closed(self):
        registry = ConnectionRegistry()
        ws_good = make_websocket()
        ws_bad = make_websocket(fail_with=RuntimeError("peer gone"))
        good, bad = Connection(ws_good), Connection(ws_bad)
        await registry.register(good)
        await registry.register(bad)

        await BroadcastDispatcher(registry).broadcast({"n": 1})

        ws_bad.close.assert_awaited_once_with(code=1011)
        ws_good.close.assert_not_called()
        assert await registry.snapshot() == [good]

    @pytest.mark.asyncio
    async def test_slow_peer_does_not_block_others(self):
        registry = ConnectionRegistry()
        dispatcher = BroadcastDispatcher(registry)
        slow = make_websocket()

        async def stall(message):
            await asyncio.sleep(1)

        slow.send_text.side_effect = stall
        fast = make_websocket()
        slow_conn = Connection(slow, send_timeout=0.05)
        await registry.register(slow_conn)
        await registry.register(Connection(fast))

        await asyncio.wait_for(dispatcher.broadcast("tick"), timeout=0.5)

        assert sent_messages(fast) == ["tick"]
        assert slow_conn not in await registry.snapshot()
