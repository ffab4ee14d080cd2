"""
Tool dispatch for the GraphQL MCP server

Every transport calls RequestDispatcher.call_tool and gets back a ToolResult.
Downstream failures are reported as error results, never raised.
"""

import json
import logging
from typing import Any, Optional
from dataclasses import dataclass, field

from config import Config
from graphql_http import GraphQLHttpClient, GraphQLTransportError
from headers import HeaderOverride, HeaderParseError, merge_headers
from log_setup import log_query
from query_classifier import MutationNotAllowedError, QuerySyntaxError, check_query
from schema_provider import SchemaFetchError, SchemaProvider
from token_manager import TokenManager

logger = logging.getLogger(__name__)

INTROSPECT_SCHEMA_TOOL = "introspect-schema"
QUERY_GRAPHQL_TOOL = "query-graphql"
SCHEMA_RESOURCE_NAME = "graphql-schema"


@dataclass(frozen=True)
class TextBlock:
    text: str
    type: str = "text"


@dataclass(frozen=True)
class ToolResult:
    """Outcome of a tool call, passed verbatim to the protocol layer"""
    content: list[TextBlock] = field(default_factory=list)
    is_error: bool = False

    @classmethod
    def success(cls, text: str) -> "ToolResult":
        return cls(content=[TextBlock(text)], is_error=False)

    @classmethod
    def error(cls, text: str) -> "ToolResult":
        return cls(content=[TextBlock(text)], is_error=True)

    @property
    def text(self) -> str:
        return "\n".join(block.text for block in self.content)

    def to_dict(self) -> dict[str, Any]:
        return {
            "isError": self.is_error,
            "content": [{"type": block.type, "text": block.text} for block in self.content],
        }


def _header_override_schema(config: Config) -> dict:
    return {
        "anyOf": [
            {"type": "object", "additionalProperties": {"type": "string"}},
            {"type": "string"},
        ],
        "description": f"Optional: Add additional headers, the already used headers are: {json.dumps(config.headers)}",
    }


def _endpoint_override_schema(config: Config) -> dict:
    return {
        "type": "string",
        "format": "uri",
        "description": f"Optional: Override the default endpoint, the already used endpoint is: {config.endpoint}",
    }


def get_tools(config: Config) -> list[dict]:
    """Get list of available tools"""
    return [
        {
            "name": INTROSPECT_SCHEMA_TOOL,
            "description": "Introspect the GraphQL schema, use this tool before doing a query to get the schema information if you do not have it available as a resource already.",
            "inputSchema": {
                "type": "object",
                "properties": {
                    "endpoint": _endpoint_override_schema(config),
                    "headers": _header_override_schema(config),
                },
                "required": []
            }
        },
        {
            "name": QUERY_GRAPHQL_TOOL,
            "description": "Query a GraphQL endpoint with the given query and variables",
            "inputSchema": {
                "type": "object",
                "properties": {
                    "query": {
                        "type": "string",
                        "description": "The GraphQL query to execute"
                    },
                    "variables": {
                        "anyOf": [{"type": "string"}, {"type": "object"}],
                        "description": "Optional variables for the query, as a JSON string or object"
                    },
                    "endpoint": _endpoint_override_schema(config),
                    "headers": _header_override_schema(config),
                },
                "required": ["query"]
            }
        },
    ]


def parse_variables(variables: Any) -> Optional[dict[str, Any]]:
    """Accept variables as a JSON string or an object"""
    if variables is None or variables == "":
        return None
    if isinstance(variables, str):
        parsed = json.loads(variables)
    else:
        parsed = variables
    if not isinstance(parsed, dict):
        raise ValueError(f"expected an object, got {type(parsed).__name__}")
    return parsed


class RequestDispatcher:
    """
    Maps tool invocations onto the GraphQL endpoint.

    Args:
        config: Server configuration
        token_manager: Shared bearer token source (its cache outlives requests)
        http_client: Client used for the downstream POST
        schema_provider: Schema source, built from the other arguments when omitted
    """

    def __init__(
        self,
        config: Config,
        token_manager: TokenManager,
        http_client: GraphQLHttpClient,
        schema_provider: Optional[SchemaProvider] = None,
    ):
        self.config = config
        self.token_manager = token_manager
        self.http_client = http_client
        self.schema_provider = schema_provider or SchemaProvider(config, token_manager, http_client)

    def get_tools(self) -> list[dict]:
        return get_tools(self.config)

    async def call_tool(self, name: str, arguments: Optional[dict[str, Any]]) -> ToolResult:
        """Execute a tool and return its result"""
        arguments = arguments or {}
        logger.info(f"Tool call: {name}")
        log_query(name, arguments, endpoint=arguments.get("endpoint"))

        if name == INTROSPECT_SCHEMA_TOOL:
            result = await self.introspect_schema(
                endpoint=arguments.get("endpoint"),
                headers=arguments.get("headers"),
            )
        elif name == QUERY_GRAPHQL_TOOL:
            query = arguments.get("query")
            if not query or not isinstance(query, str):
                logger.warning("Query request missing required 'query' parameter")
                return ToolResult.error("query parameter is required")
            result = await self.query_graphql(
                query,
                variables=arguments.get("variables"),
                endpoint=arguments.get("endpoint"),
                headers=arguments.get("headers"),
            )
        else:
            logger.warning(f"Unknown tool requested: {name}")
            return ToolResult.error(f"Unknown tool: {name}")

        logger.debug(f"Tool {name} completed (isError={result.is_error}, {len(result.text)} chars)")
        return result

    async def introspect_schema(self, endpoint: Optional[str] = None, headers: HeaderOverride = None) -> ToolResult:
        """Return the schema as SDL text"""
        try:
            schema = await self.schema_provider.get_schema(endpoint=endpoint, headers=headers)
        except (SchemaFetchError, HeaderParseError) as e:
            logger.error(f"Failed to introspect schema: {e}")
            return ToolResult.error(f"Failed to introspect schema: {e}")
        return ToolResult.success(schema)

    async def read_schema_resource(self) -> str:
        """
        Read the graphql-schema resource.

        Raises:
            SchemaFetchError: If the schema cannot be obtained
        """
        try:
            return await self.schema_provider.get_schema()
        except SchemaFetchError as e:
            logger.error(f"Failed to get GraphQL schema: {e}")
            raise SchemaFetchError(f"Failed to get GraphQL schema: {e}") from e

    async def query_graphql(
        self,
        query: str,
        variables: Any = None,
        endpoint: Optional[str] = None,
        headers: HeaderOverride = None,
    ) -> ToolResult:
        """Gate, then execute a GraphQL query against the endpoint"""
        logger.debug(f"Query: {query[:200]}{'...' if len(query) > 200 else ''}")

        try:
            check_query(query, self.config.allow_mutations)
        except (QuerySyntaxError, MutationNotAllowedError) as e:
            return ToolResult.error(str(e))

        try:
            parsed_variables = parse_variables(variables)
        except ValueError as e:
            return ToolResult.error(f"Invalid variables JSON: {e}")

        use_endpoint = endpoint or self.config.endpoint
        try:
            use_headers = merge_headers(self.config.headers, headers, await self.token_manager.get_token_async())
        except HeaderParseError as e:
            return ToolResult.error(str(e))

        try:
            response = await self.http_client.post(
                use_endpoint,
                {"query": query, "variables": parsed_variables},
                use_headers
            )
        except GraphQLTransportError as e:
            return ToolResult.error(f"GraphQL request failed: {e}")

        if not response.ok:
            message = f"GraphQL request failed: {response.status_text}"
            if response.text:
                message += f"\n{response.text}"
            logger.warning(f"GraphQL request to {use_endpoint} failed with status {response.status}")
            return ToolResult.error(message)

        try:
            data = response.json()
        except json.JSONDecodeError as e:
            return ToolResult.error(f"GraphQL response is not valid JSON: {e}\n{response.text}")

        if isinstance(data, dict) and data.get("errors"):
            logger.info("GraphQL response contains errors")
            return ToolResult.error(
                f"The GraphQL response has errors, please fix the query: {json.dumps(data, indent=2)}"
            )

        logger.info("GraphQL query executed successfully")
        return ToolResult.success(json.dumps(data, indent=2))
