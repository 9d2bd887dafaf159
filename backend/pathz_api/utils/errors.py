"""
Error types surfaced to HTTP clients
"""

from typing import Any, Optional

from fastapi import Request
from fastapi.responses import JSONResponse
from loguru import logger


class ProxyError(Exception):
    """An error rendered as `{"error": message, "details": ...}`."""

    def __init__(self, status_code: int, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.details = details

    def to_body(self) -> dict:
        body = {"error": self.message}
        if self.details is not None:
            body["details"] = self.details
        return body


class InvalidNetworkError(ProxyError):
    def __init__(self):
        super().__init__(400, 'Invalid network parameter. Use "mainnet" or "sepolia".')


class MissingApiKeyError(ProxyError):
    def __init__(self):
        super().__init__(500, "Alchemy API key not configured in environment variables")


async def proxy_error_handler(request: Request, exc: ProxyError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.url.path} failed: {exc.message} ({exc.details})")
    return JSONResponse(status_code=exc.status_code, content=exc.to_body())
