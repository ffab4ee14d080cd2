"""
mcp-graphql Version Information

Changelog:
- v2.1.0: Stateless Streamable HTTP server (fresh server per request)
          Generated RS256 bearer tokens with 4 minute lifetime and caching
          Schema dump command (mcp-graphql-dump-schema)
- v2.0.0: Configuration moved from command line arguments to environment variables
          Per-call endpoint and header overrides for both tools
- v1.0.0: Initial release with introspect-schema and query-graphql tools
"""

__version__ = "2.1.0"
__version_info__ = (2, 1, 0)
__author__ = "mcp-graphql Contributors"
__license__ = "MIT"

# Server identification
SERVER_NAME = "mcp-graphql"
SERVER_DESCRIPTION = "MCP server exposing a GraphQL endpoint"
