"""
GraphQL MCP Server with stateless Streamable HTTP transport

Every POST /mcp gets its own MCP server and transport, so JSON-RPC ids chosen
by concurrent clients can never collide. Both are torn down when the response
is finished. The bearer token cache is the only state shared between requests.
"""

import sys
import logging
from typing import Any, Callable, Optional

import anyio
from mcp.server.lowlevel import Server
from mcp.server.streamable_http import StreamableHTTPServerTransport
from starlette.applications import Starlette
from starlette.routing import Route
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.middleware.cors import CORSMiddleware
from starlette.types import Receive, Scope, Send
import uvicorn

from version import __version__
from config import Config, ConfigError, check_deprecated_arguments, load_config
from dispatcher import RequestDispatcher
from log_setup import configure_logging
from server import create_dispatcher, create_mcp_server

logger = logging.getLogger(__name__)

MCP_PATH = "/mcp"


def create_jsonrpc_error(id: Any, code: int, message: str) -> dict:
    """Create a JSON-RPC 2.0 error response"""
    return {
        "jsonrpc": "2.0",
        "error": {
            "code": code,
            "message": message
        },
        "id": id
    }


class StatelessMCPHandler:
    """ASGI endpoint that serves each request with a fresh server and transport"""

    def __init__(self, server_factory: Callable[[], Server]):
        self.server_factory = server_factory

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        response_started = False

        async def tracking_send(message):
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await self.handle_request(scope, receive, tracking_send)
        except Exception as e:
            logger.error(f"Error handling MCP request: {e}", exc_info=True)
            if not response_started:
                response = JSONResponse(
                    create_jsonrpc_error(None, -32603, "Internal server error"),
                    status_code=500
                )
                await response(scope, receive, send)

    async def handle_request(self, scope: Scope, receive: Receive, send: Send) -> None:
        mcp_server = self.server_factory()
        transport = StreamableHTTPServerTransport(
            mcp_session_id=None,
            is_json_response_enabled=True,
        )

        async with anyio.create_task_group() as tg:
            async def run_server(*, task_status=anyio.TASK_STATUS_IGNORED):
                async with transport.connect() as (read_stream, write_stream):
                    task_status.started()
                    await mcp_server.run(
                        read_stream,
                        write_stream,
                        mcp_server.create_initialization_options(),
                        stateless=True
                    )

            await tg.start(run_server)
            try:
                await transport.handle_request(scope, receive, send)
            finally:
                logger.debug("Request closed")
                await transport.terminate()
                tg.cancel_scope.cancel()


async def method_not_allowed(request: Request) -> JSONResponse:
    """GET and DELETE have no meaning without sessions"""
    logger.info(f"Received {request.method} MCP request")
    return JSONResponse(
        create_jsonrpc_error(None, -32000, "Method not allowed."),
        status_code=405
    )


def create_app(config: Config, dispatcher: Optional[RequestDispatcher] = None) -> Starlette:
    """
    Create the Starlette application.

    Args:
        config: Server configuration
        dispatcher: Shared dispatcher (and with it the token cache); built from
                    config when omitted
    """
    dispatcher = dispatcher or create_dispatcher(config)

    async def health_check(request: Request) -> JSONResponse:
        return JSONResponse({
            "status": "healthy",
            "server": config.name,
            "version": __version__,
            "endpoint": config.endpoint,
            "stateless": True
        })

    mcp_handler = StatelessMCPHandler(lambda: create_mcp_server(dispatcher))

    routes = [
        Route("/health", health_check, methods=["GET"]),
        Route(MCP_PATH, mcp_handler, methods=["POST"]),
        Route(MCP_PATH, method_not_allowed, methods=["GET", "DELETE"]),
    ]

    app = Starlette(
        debug=config.log_level == "DEBUG",
        routes=routes
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )
    return app


def run_server():
    """Run the stateless HTTP server"""
    configure_logging()
    check_deprecated_arguments()
    try:
        config = load_config()
    except ConfigError as e:
        logger.error(f"Invalid configuration: {e}")
        sys.exit(1)

    configure_logging(config.log_level, config.log_dir)

    logger.info("=" * 60)
    logger.info(f"GraphQL MCP Server v{__version__} (Stateless HTTP)")
    logger.info("=" * 60)
    logger.info(f"Host: {config.host}")
    logger.info(f"Port: {config.port}")
    logger.info(f"GraphQL Endpoint: {config.endpoint}")
    logger.info(f"Mutations: {'Allowed' if config.allow_mutations else 'Disabled'}")
    logger.info(f"Schema: {config.schema_path or 'Introspection'}")
    logger.info(f"JWT: {type(config.jwt).__name__}")
    logger.info("=" * 60)
    logger.info("Endpoints:")
    logger.info(f"  POST {MCP_PATH}    - MCP Streamable HTTP endpoint")
    logger.info("  GET  /health - Health check")
    logger.info("=" * 60)

    app = create_app(config)

    uvicorn_log_level = "debug" if config.log_level == "DEBUG" else "info"

    uvicorn.run(
        app,
        host=config.host,
        port=config.port,
        log_level=uvicorn_log_level
    )


if __name__ == "__main__":
    run_server()
