"""Accessors for the per-process objects created in `create_app`."""

from starlette.requests import HTTPConnection

from pathz_api.blockchain.service import ContractReader
from pathz_api.config import Settings
from pathz_api.nfts.service import NFTService
from pathz_api.realtime import BroadcastDispatcher, ConnectionRegistry


def get_settings(conn: HTTPConnection) -> Settings:
    return conn.app.state.settings


def get_registry(conn: HTTPConnection) -> ConnectionRegistry:
    return conn.app.state.registry


def get_dispatcher(conn: HTTPConnection) -> BroadcastDispatcher:
    return conn.app.state.dispatcher


def get_contract_reader(conn: HTTPConnection) -> ContractReader:
    return conn.app.state.contract_reader


def get_nft_service(conn: HTTPConnection) -> NFTService:
    return conn.app.state.nft_service
