"""
Dump the GraphQL schema of an endpoint to a file

Uses the same environment as the server (ENDPOINT, HEADERS, JWT_CONFIGURATION)
and writes to SCHEMA, defaulting to ./schema.graphql. The schema is always
introspected from the endpoint, even when SCHEMA points at an existing file.
"""

import sys
import asyncio
import logging
import argparse
import dataclasses
from typing import Optional

from config import Config, ConfigError, load_config
from log_setup import configure_logging
from schema_provider import SchemaFetchError, SchemaProvider
from graphql_http import GraphQLHttpClient
from token_manager import TokenManager

logger = logging.getLogger(__name__)

DEFAULT_SCHEMA_FILE = "./schema.graphql"


async def dump_schema(config: Config, output_path: str, output_format: str = "sdl",
                      http_client: Optional[GraphQLHttpClient] = None) -> str:
    """Introspect the configured endpoint and write the schema to output_path"""
    # Force introspection: the output path is where the schema file will live
    introspect_config = dataclasses.replace(config, schema_path=None)
    provider = SchemaProvider(
        introspect_config,
        TokenManager(config.jwt),
        http_client or GraphQLHttpClient(ssl_verify=config.ssl_verify)
    )

    logger.info(f"Introspecting schema from {config.endpoint}...")
    schema = await provider.get_schema(sdl=output_format == "sdl")

    logger.info(f"Writing schema to {output_path}")
    with open(output_path, "w", encoding="utf-8") as f:
        f.write(schema)
    return schema


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Write the GraphQL schema of ENDPOINT to a file")
    parser.add_argument("--format", choices=["sdl", "json"], default="sdl",
                        help="sdl (default) or the raw introspection JSON")
    parser.add_argument("--output", help=f"Output file (default: $SCHEMA or {DEFAULT_SCHEMA_FILE})")
    args = parser.parse_args(argv)

    configure_logging()
    try:
        config = load_config()
    except ConfigError as e:
        logger.error(f"Invalid configuration: {e}")
        return 1

    output_path = args.output or config.schema_path or DEFAULT_SCHEMA_FILE
    try:
        asyncio.run(dump_schema(config, output_path, args.format))
    except (SchemaFetchError, OSError) as e:
        logger.error(f"Error: {e}")
        return 1

    logger.info("Schema successfully written to file.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
