"""Pathz relay entrypoint: minimal, modular FastAPI app.

Builds the connection registry, broadcaster and contract event watcher once
per process and hands them to the routers through `app.state`. The HTTP
proxies live in the router modules under `pathz_api.*`.
"""

import sys
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from loguru import logger

from pathz_api.blockchain.service import ContractReader
from pathz_api.blockchain.watcher import ContractEventWatcher
from pathz_api.config import Settings, settings as default_settings
from pathz_api.contracts.router import router as contracts_router
from pathz_api.cors import PreflightCORSMiddleware, origin_regex
from pathz_api.events.router import router as events_router
from pathz_api.nfts.router import router as nfts_router
from pathz_api.nfts.service import NFTService
from pathz_api.realtime import BroadcastDispatcher, ConnectionRegistry
from pathz_api.utils.errors import ProxyError, proxy_error_handler


def configure_logging(level: str) -> None:
    logger.remove()
    logger.add(sys.stderr, level=level.upper())


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    logger.info(f"Starting {settings.app_name}")
    watcher = None
    if settings.watcher_enabled and settings.alchemy_api_key:
        watcher = ContractEventWatcher(settings, app.state.dispatcher, app.state.contract_reader)
        watcher.start()
    else:
        logger.info("Contract event watcher disabled")
    app.state.watcher = watcher
    yield
    logger.info(f"Shutting down {settings.app_name}")
    if watcher is not None:
        await watcher.stop()


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or default_settings
    configure_logging(settings.log_level)

    app = FastAPI(title=settings.app_name, version=settings.version, lifespan=lifespan)

    registry = ConnectionRegistry()
    contract_reader = ContractReader(settings)
    app.state.settings = settings
    app.state.registry = registry
    app.state.dispatcher = BroadcastDispatcher(registry)
    app.state.contract_reader = contract_reader
    app.state.nft_service = NFTService(contract_reader, settings)

    app.add_middleware(
        PreflightCORSMiddleware,
        allow_origin_regex=origin_regex(settings.allowed_hosts),
        allow_credentials=True,
        allow_methods=settings.allowed_methods,
        allow_headers=settings.allowed_headers,
    )
    app.add_exception_handler(ProxyError, proxy_error_handler)

    app.include_router(events_router, prefix="/api", tags=["Events"])
    app.include_router(nfts_router, prefix="/api", tags=["NFTs"])
    app.include_router(contracts_router, prefix="/api", tags=["Contracts"])

    @app.get("/", tags=["System"])
    async def root():
        return {"message": settings.app_name, "version": settings.version}

    @app.get("/health", tags=["System"])
    async def health():
        return {"status": "healthy", "connections": len(registry)}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=default_settings.host, port=default_settings.port)
