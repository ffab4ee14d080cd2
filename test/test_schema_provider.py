"""Test schema acquisition from local files and live introspection"""

import json
import dataclasses

import pytest

from config import ExternalToken
from graphql_http import GraphQLTransportError
from schema_provider import SchemaFetchError, SchemaProvider
from token_manager import TokenManager
from helpers import FakeHttpClient, TEST_SDL, introspection_body, json_response


def make_provider(config, http_client):
    return SchemaProvider(config, TokenManager(config.jwt), http_client)


@pytest.mark.asyncio
async def test_local_schema_returned_verbatim(config, schema_file):
    def unreachable(url, payload, headers):
        return GraphQLTransportError("endpoint is down")

    http_client = FakeHttpClient(unreachable)
    provider = make_provider(dataclasses.replace(config, schema_path=schema_file), http_client)

    schema = await provider.get_schema(endpoint="http://elsewhere/graphql")

    assert schema == TEST_SDL
    assert http_client.calls == []


@pytest.mark.asyncio
async def test_missing_local_schema(config, tmp_path, fake_http):
    provider = make_provider(dataclasses.replace(config, schema_path=str(tmp_path / "nope.graphql")), fake_http)

    with pytest.raises(SchemaFetchError, match="Could not read schema file"):
        await provider.get_schema()


@pytest.mark.asyncio
async def test_introspection_renders_sdl(config):
    http_client = FakeHttpClient(lambda url, payload, headers: json_response(introspection_body()))
    provider = make_provider(config, http_client)

    schema = await provider.get_schema()

    assert "type Query" in schema
    assert "x: Int" in schema
    assert len(http_client.calls) == 1
    call = http_client.calls[0]
    assert call["url"] == config.endpoint
    assert "__schema" in call["payload"]["query"]


@pytest.mark.asyncio
async def test_introspection_raw_json(config):
    body = introspection_body()
    http_client = FakeHttpClient(lambda url, payload, headers: json_response(body))
    provider = make_provider(config, http_client)

    schema = await provider.get_schema(sdl=False)

    assert json.loads(schema) == body


@pytest.mark.asyncio
async def test_introspection_uses_overrides_and_bearer(config):
    config = dataclasses.replace(
        config,
        headers={"X-Team": "a", "Authorization": "Basic nope"},
        jwt=ExternalToken(access_token="tok"),
    )
    http_client = FakeHttpClient(lambda url, payload, headers: json_response(introspection_body()))
    provider = make_provider(config, http_client)

    await provider.get_schema(endpoint="http://other:4000/graphql", headers='{"X-Team": "b"}')

    call = http_client.calls[0]
    assert call["url"] == "http://other:4000/graphql"
    assert call["headers"] == {"X-Team": "b", "Authorization": "Bearer tok"}


@pytest.mark.asyncio
async def test_http_error_status(config):
    http_client = FakeHttpClient(
        lambda url, payload, headers: json_response({}, status=503, reason="Service Unavailable")
    )
    provider = make_provider(config, http_client)

    with pytest.raises(SchemaFetchError, match="Service Unavailable"):
        await provider.get_schema()
    assert len(http_client.calls) == 1


@pytest.mark.asyncio
async def test_network_failure(config):
    http_client = FakeHttpClient(lambda url, payload, headers: GraphQLTransportError("Connection refused"))
    provider = make_provider(config, http_client)

    with pytest.raises(SchemaFetchError, match="Connection refused"):
        await provider.get_schema()


@pytest.mark.asyncio
async def test_introspection_errors(config):
    http_client = FakeHttpClient(
        lambda url, payload, headers: json_response({"errors": [{"message": "introspection disabled"}]})
    )
    provider = make_provider(config, http_client)

    with pytest.raises(SchemaFetchError, match="introspection disabled"):
        await provider.get_schema()


@pytest.mark.asyncio
async def test_missing_schema_in_response(config):
    http_client = FakeHttpClient(lambda url, payload, headers: json_response({"data": {}}))
    provider = make_provider(config, http_client)

    with pytest.raises(SchemaFetchError, match="no __schema"):
        await provider.get_schema()
