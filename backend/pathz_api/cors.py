"""
Origin allow-list for browser clients: exact hosts and any of their subdomains.
"""

import re
from typing import Iterable

from fastapi.middleware.cors import CORSMiddleware
from starlette.datastructures import Headers
from starlette.responses import Response


def origin_regex(hosts: Iterable[str]) -> str:
    """Regex matching http(s) origins on `hosts` or their subdomains, any port."""
    alternatives = "|".join(re.escape(host.lower()) for host in hosts)
    return rf"(?i)https?://([a-z0-9-]+\.)*({alternatives})(:\d+)?"


class PreflightCORSMiddleware(CORSMiddleware):
    """CORSMiddleware answering accepted preflights with 204 No Content."""

    def preflight_response(self, request_headers: Headers) -> Response:
        response = super().preflight_response(request_headers=request_headers)
        if response.status_code != 200:
            return response
        headers = {
            key: value
            for key, value in response.headers.items()
            if key.lower() not in ("content-length", "content-type")
        }
        return Response(status_code=204, headers=headers)
