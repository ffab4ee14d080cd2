"""
HTTP client for GraphQL endpoints

Sends one JSON POST per call with aiohttp. There are no retries and no
timeouts beyond aiohttp's defaults.
"""

import json
import asyncio
import logging
from typing import Any
from dataclasses import dataclass

import aiohttp

logger = logging.getLogger(__name__)


class GraphQLTransportError(Exception):
    """Raised when the endpoint cannot be reached"""


@dataclass(frozen=True)
class HttpResponse:
    """Status and raw body of a GraphQL HTTP response"""
    status: int
    reason: str
    text: str

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    @property
    def status_text(self) -> str:
        return self.reason or str(self.status)

    def json(self) -> Any:
        return json.loads(self.text)


class GraphQLHttpClient:
    """Posts GraphQL requests to an endpoint"""

    def __init__(self, ssl_verify: bool = True):
        self.ssl_verify = ssl_verify
        if not ssl_verify:
            logger.warning("SSL certificate verification is DISABLED - use only in development!")

    async def post(self, url: str, payload: dict[str, Any], headers: dict[str, str]) -> HttpResponse:
        """
        POST a GraphQL request body as JSON.

        Raises:
            GraphQLTransportError: On a network failure or a request aiohttp refuses to send
        """
        request_headers = {"Content-Type": "application/json", **headers}
        logger.debug(f"POST {url} (header keys: {list(request_headers.keys())})")

        try:
            async with aiohttp.ClientSession() as session:
                async with session.post(
                    url,
                    data=json.dumps(payload),
                    headers=request_headers,
                    ssl=self.ssl_verify
                ) as resp:
                    text = await resp.text()
                    logger.debug(f"Response from {url}: {resp.status} ({len(text)} bytes)")
                    return HttpResponse(status=resp.status, reason=resp.reason or "", text=text)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.error(f"Request to {url} failed: {e}")
            raise GraphQLTransportError(str(e) or type(e).__name__) from e
