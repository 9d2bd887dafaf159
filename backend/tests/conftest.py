from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import WebSocket
from fastapi.testclient import TestClient

from pathz_api.config import Settings
from pathz_api.main import create_app


def make_websocket(fail_with=None):
    """A mocked WebSocket whose send_text records messages or raises `fail_with`."""
    ws = MagicMock(spec=WebSocket)
    ws.send_text = AsyncMock(side_effect=fail_with)
    ws.accept = AsyncMock()
    ws.close = AsyncMock()
    return ws


def sent_messages(ws):
    return [call.args[0] for call in ws.send_text.call_args_list]


@pytest.fixture
def settings():
    return Settings(
        alchemy_api_key="test-key",
        alchemy_network="sepolia",
        watcher_enabled=False,
        allowed_hosts=["pathz.xyz"],
        ws_send_timeout=0.5,
    )


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    with TestClient(app) as client:
        yield client
