"""
GraphQL schema acquisition

Returns the schema from a local file when one is configured, otherwise from
a live introspection request against the endpoint.
"""

import json
import logging
from typing import Any, Optional

from graphql import GraphQLError, build_client_schema, get_introspection_query, print_schema

from config import Config
from graphql_http import GraphQLHttpClient, GraphQLTransportError
from headers import HeaderOverride, merge_headers
from token_manager import TokenManager

logger = logging.getLogger(__name__)


class SchemaFetchError(Exception):
    """Raised when the schema cannot be read or introspected"""


class SchemaProvider:
    """
    Source of the GraphQL schema text.

    Args:
        config: Server configuration (endpoint, headers, schema_path)
        token_manager: Bearer token source for introspection requests
        http_client: Client used for the introspection POST
    """

    def __init__(self, config: Config, token_manager: TokenManager, http_client: GraphQLHttpClient):
        self.config = config
        self.token_manager = token_manager
        self.http_client = http_client

    async def get_schema(
        self,
        endpoint: Optional[str] = None,
        headers: HeaderOverride = None,
        sdl: bool = True,
    ) -> str:
        """
        Get the schema as SDL text, or as the raw introspection JSON when sdl is False.

        A configured local schema file always wins and is returned verbatim.

        Raises:
            SchemaFetchError: If the file cannot be read or introspection fails
            HeaderParseError: If the header override is malformed
        """
        if self.config.schema_path:
            return self.read_local_schema(self.config.schema_path)

        use_endpoint = endpoint or self.config.endpoint
        use_headers = merge_headers(self.config.headers, headers, await self.token_manager.get_token_async())
        result = await self.introspect_endpoint(use_endpoint, use_headers)

        if not sdl:
            return json.dumps(result, indent=2)
        return self.render_sdl(result)

    @staticmethod
    def read_local_schema(path: str) -> str:
        """Read a schema file as UTF-8 text"""
        logger.debug(f"Reading local schema from {path}")
        try:
            with open(path, "r", encoding="utf-8") as f:
                return f.read()
        except OSError as e:
            raise SchemaFetchError(f"Could not read schema file {path}: {e}") from e

    async def introspect_endpoint(self, endpoint: str, headers: dict[str, str]) -> dict[str, Any]:
        """POST the introspection query and return the decoded response body"""
        logger.debug(f"Introspecting schema from {endpoint}")
        try:
            response = await self.http_client.post(
                endpoint,
                {"query": get_introspection_query()},
                headers
            )
        except GraphQLTransportError as e:
            raise SchemaFetchError(str(e)) from e

        if not response.ok:
            raise SchemaFetchError(f"GraphQL request failed: {response.status_text}")

        try:
            result = response.json()
        except json.JSONDecodeError as e:
            raise SchemaFetchError(f"Introspection response is not valid JSON: {e}") from e

        if not isinstance(result, dict):
            raise SchemaFetchError("Introspection response is not a JSON object")
        if result.get("errors"):
            raise SchemaFetchError(f"Introspection returned errors: {json.dumps(result['errors'])}")

        type_count = len(((result.get("data") or {}).get("__schema") or {}).get("types") or [])
        logger.info(f"GraphQL introspection completed. Found {type_count} types")
        return result

    @staticmethod
    def render_sdl(result: dict[str, Any]) -> str:
        """Build a client schema from an introspection result and print it as SDL"""
        data = result.get("data")
        if not isinstance(data, dict) or "__schema" not in data:
            raise SchemaFetchError("Introspection response has no __schema")
        try:
            schema = build_client_schema(data)
        except (GraphQLError, TypeError) as e:
            raise SchemaFetchError(f"Could not build schema from introspection: {e}") from e
        schema_sdl = print_schema(schema)
        logger.debug(f"Schema SDL generated: {len(schema_sdl)} characters")
        return schema_sdl
