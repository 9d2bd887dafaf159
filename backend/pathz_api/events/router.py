"""
Contract event relay endpoint.

A WebSocket upgrade on `/api/openContractEvent` registers the client for
PathzChoosed broadcasts; a plain GET just answers with a status message.
"""

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect, status
from loguru import logger

from pathz_api.config import Settings
from pathz_api.dependencies import get_registry, get_settings
from pathz_api.models.contract import StatusMessage
from pathz_api.realtime import Connection, ConnectionRegistry, encode_payload
from pathz_api.utils.errors import ProxyError

router = APIRouter()

STATUS_MESSAGE = "Hello from openContractEvent. Connect via WebSocket for real-time updates."


@router.get("/openContractEvent", response_model=StatusMessage)
async def open_contract_event_status(network: str = "sepolia", settings: Settings = Depends(get_settings)):
    settings.rpc_url(network)
    return StatusMessage(message=STATUS_MESSAGE)


@router.websocket("/openContractEvent")
async def open_contract_event(
    websocket: WebSocket,
    network: str = "sepolia",
    settings: Settings = Depends(get_settings),
    registry: ConnectionRegistry = Depends(get_registry),
):
    try:
        settings.rpc_url(network)
    except ProxyError as e:
        logger.warning(f"Rejecting event subscription: {e.message}")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason=e.message)
        return

    await websocket.accept()
    connection = Connection(websocket, send_timeout=settings.ws_send_timeout)
    await registry.register(connection)
    reason = "client disconnected"
    try:
        # tells the client it is registered for broadcasts
        await connection.send(encode_payload({"type": "connected", "connectionId": connection.connection_id}))
        while True:
            message = await websocket.receive_text()
            logger.debug(f"Client {connection.connection_id} says: {message}")
    except WebSocketDisconnect as e:
        reason = f"client disconnected ({e.code})"
    except Exception as e:
        reason = f"connection error: {e}"
        logger.warning(f"Realtime: {connection.connection_id} errored: {e}")
    finally:
        connection.mark_closed(reason)
        await registry.deregister(connection)
