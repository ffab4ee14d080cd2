"""
GraphQL MCP Server
Provides tools for LLMs to introspect and query a GraphQL endpoint

Run with stdio transport:
    ENDPOINT=http://localhost:4000/graphql mcp-graphql
"""

import sys
import asyncio
import logging
from typing import Any

import mcp.types as types
from mcp.server.lowlevel import Server
from mcp.server.lowlevel.helper_types import ReadResourceContents

from version import __version__, SERVER_DESCRIPTION
from config import Config, ConfigError, check_deprecated_arguments, load_config
from dispatcher import SCHEMA_RESOURCE_NAME, RequestDispatcher
from graphql_http import GraphQLHttpClient
from log_setup import configure_logging
from token_manager import TokenManager

logger = logging.getLogger(__name__)


class ToolResultError(Exception):
    """Carries an error ToolResult's text; the SDK reports it with isError set"""


def create_dispatcher(config: Config) -> RequestDispatcher:
    """Wire the token manager, HTTP client and schema provider for a config"""
    token_manager = TokenManager(config.jwt)
    http_client = GraphQLHttpClient(ssl_verify=config.ssl_verify)
    return RequestDispatcher(config, token_manager, http_client)


def create_mcp_server(dispatcher: RequestDispatcher) -> Server:
    """Create and configure an MCP server bound to a dispatcher"""
    config = dispatcher.config
    mcp_app = Server(config.name, version=__version__, instructions=f"{SERVER_DESCRIPTION}: {config.endpoint}")

    @mcp_app.list_tools()
    async def list_tools() -> list[types.Tool]:
        """List available GraphQL tools"""
        return [types.Tool(**tool) for tool in dispatcher.get_tools()]

    @mcp_app.call_tool()
    async def call_tool(name: str, arguments: dict[str, Any]) -> list[types.TextContent]:
        """Handle tool calls"""
        result = await dispatcher.call_tool(name, arguments)
        if result.is_error:
            raise ToolResultError(result.text)
        return [types.TextContent(type="text", text=block.text) for block in result.content]

    @mcp_app.list_resources()
    async def list_resources() -> list[types.Resource]:
        """List the schema resource"""
        return [
            types.Resource(
                uri=config.endpoint,
                name=SCHEMA_RESOURCE_NAME,
                description="The GraphQL schema of the server",
                mimeType="text/plain",
            )
        ]

    @mcp_app.read_resource()
    async def read_resource(uri: Any) -> list[ReadResourceContents]:
        """Read the schema resource"""
        logger.debug(f"Resource read: {uri}")
        schema = await dispatcher.read_schema_resource()
        return [ReadResourceContents(content=schema, mime_type="text/plain")]

    return mcp_app


async def main(config: Config):
    """Run the MCP server using stdio transport"""
    from mcp.server.stdio import stdio_server

    dispatcher = create_dispatcher(config)
    server = create_mcp_server(dispatcher)

    logger.info(f"Started graphql mcp server {config.name} for endpoint: {config.endpoint}")
    async with stdio_server() as (read_stream, write_stream):
        await server.run(
            read_stream,
            write_stream,
            server.create_initialization_options()
        )


def run():
    """Console entry point for the stdio server"""
    configure_logging()
    check_deprecated_arguments()
    try:
        config = load_config()
    except ConfigError as e:
        logger.error(f"Invalid configuration: {e}")
        sys.exit(1)

    configure_logging(config.log_level, config.log_dir)
    try:
        asyncio.run(main(config))
    except Exception as e:
        logger.error(f"Fatal error in main(): {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    run()
