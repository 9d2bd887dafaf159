"""
WebSocket connection registry and broadcaster for contract events.

Clients connect to `/api/openContractEvent` and receive one JSON message per
relayed event. Delivery is best effort: a connection whose send fails is
closed and dropped from the registry, the rest of the batch continues.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional
import asyncio
import json
import uuid

from fastapi import WebSocket
from loguru import logger


class EncodingError(ValueError):
    """The broadcast payload cannot be serialized."""


class ConnectionState(str, Enum):
    OPEN = "open"
    CLOSED = "closed"


@dataclass(frozen=True)
class SendResult:
    ok: bool
    reason: Optional[str] = None

    @classmethod
    def success(cls) -> "SendResult":
        return cls(ok=True)

    @classmethod
    def failure(cls, reason: str) -> "SendResult":
        return cls(ok=False, reason=reason)


def encode_payload(payload: Any) -> str:
    """Serialize a payload to its wire form. Strings are sent verbatim."""
    if isinstance(payload, str):
        return payload
    try:
        return json.dumps(payload, separators=(",", ":"), allow_nan=False)
    except (TypeError, ValueError) as e:
        raise EncodingError(f"payload is not JSON serializable: {e}") from e


class Connection:
    """One accepted WebSocket. Moves from open to closed exactly once."""

    def __init__(self, websocket: WebSocket, send_timeout: float = 2.0):
        self.connection_id = f"conn_{uuid.uuid4().hex[:12]}"
        self.websocket = websocket
        self.send_timeout = send_timeout
        self.state = ConnectionState.OPEN
        self.close_reason: Optional[str] = None
        # one frame at a time per socket
        self._send_lock = asyncio.Lock()

    @property
    def is_open(self) -> bool:
        return self.state is ConnectionState.OPEN

    def mark_closed(self, reason: str = "closed") -> None:
        if self.state is ConnectionState.CLOSED:
            return
        self.state = ConnectionState.CLOSED
        self.close_reason = reason

    async def send(self, message: str) -> SendResult:
        if not self.is_open:
            return SendResult.failure(f"connection already closed: {self.close_reason}")
        async with self._send_lock:
            # a send queued behind a failed one must not touch the socket
            if not self.is_open:
                return SendResult.failure(f"connection already closed: {self.close_reason}")
            try:
                await asyncio.wait_for(self.websocket.send_text(message), timeout=self.send_timeout)
            except asyncio.TimeoutError:
                result = SendResult.failure(f"send timed out after {self.send_timeout}s")
            except Exception as e:
                result = SendResult.failure(f"{type(e).__name__}: {e}")
            else:
                return SendResult.success()
            self.mark_closed(result.reason)
            return result

    async def close(self, code: int = 1011) -> None:
        """Close the underlying socket, ignoring a peer that is already gone."""
        self.mark_closed("closed by server")
        try:
            await asyncio.wait_for(self.websocket.close(code=code), timeout=self.send_timeout)
        except Exception as e:
            logger.debug(f"Realtime: closing {self.connection_id} failed: {e}")

    def __repr__(self) -> str:
        return f"Connection({self.connection_id}, {self.state.value})"


class ConnectionRegistry:
    def __init__(self):
        self._connections: Dict[str, Connection] = {}
        self._lock = asyncio.Lock()

    async def register(self, connection: Connection) -> None:
        async with self._lock:
            if not connection.is_open:
                logger.warning(f"Realtime: refusing to register closed connection {connection.connection_id}")
                return
            if connection.connection_id in self._connections:
                return
            self._connections[connection.connection_id] = connection
            logger.info(f"Realtime: client connected {connection.connection_id} (total={len(self._connections)})")

    async def deregister(self, connection: Connection) -> None:
        async with self._lock:
            connection.mark_closed("deregistered")
            if self._connections.pop(connection.connection_id, None) is not None:
                logger.info(f"Realtime: client disconnected {connection.connection_id} (total={len(self._connections)})")

    async def snapshot(self) -> List[Connection]:
        async with self._lock:
            return list(self._connections.values())

    def __len__(self) -> int:
        return len(self._connections)


class BroadcastDispatcher:
    def __init__(self, registry: ConnectionRegistry):
        self.registry = registry

    async def broadcast(self, payload: Any) -> None:
        message = encode_payload(payload)
        connections = await self.registry.snapshot()
        if not connections:
            return

        results = await asyncio.gather(*(conn.send(message) for conn in connections))
        failed = 0
        for conn, result in zip(connections, results):
            if result.ok:
                continue
            failed += 1
            logger.warning(f"Realtime: failed to send to {conn.connection_id}, removing: {result.reason}")
            conn.mark_closed(result.reason or "send failed")
            await self.registry.deregister(conn)
            await conn.close()
        logger.debug(f"Realtime: broadcast delivered to {len(connections) - failed}/{len(connections)} clients")
