"""Shared test doubles: a recording GraphQL HTTP client and a fake clock"""

import json
import asyncio

from graphql import build_schema, get_introspection_query, graphql_sync

from graphql_http import HttpResponse

TEST_ENDPOINT = "http://localhost:4000/graphql"
TEST_SDL = "type Query { x: Int }"


def json_response(body, status: int = 200, reason: str = "OK") -> HttpResponse:
    """Build a fake HTTP response with a JSON body"""
    return HttpResponse(status=status, reason=reason, text=json.dumps(body))


def introspection_body(sdl: str = TEST_SDL) -> dict:
    """Introspection response for an SDL schema, as an endpoint would return it"""
    result = graphql_sync(build_schema(sdl), get_introspection_query())
    return {"data": result.data}


class FakeHttpClient:
    """Records every POST and answers with a responder function

    The responder receives (url, payload, headers) and returns an
    HttpResponse, or an exception instance to raise.
    """

    def __init__(self, responder=None, delay: float = 0.0):
        self.calls = []
        self.responder = responder or (lambda url, payload, headers: json_response({"data": {}}))
        self.delay = delay

    async def post(self, url, payload, headers):
        self.calls.append({"url": url, "payload": payload, "headers": headers})
        if self.delay:
            await asyncio.sleep(self.delay)
        result = self.responder(url, payload, headers)
        if isinstance(result, Exception):
            raise result
        return result


class FakeClock:
    """Settable epoch-seconds clock"""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds
