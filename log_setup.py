"""
Logging setup for the GraphQL MCP server

Console output goes to stderr because stdout carries the stdio protocol.
When a log directory is configured, everything is also written to app.log
and each tool call gets one line in queries.log.
"""

import os
import sys
import json
import logging
from typing import Any, Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
APP_LOG_NAME = "app.log"
QUERY_LOG_NAME = "queries.log"

logger = logging.getLogger(__name__)

# Separate logger for the tool-call log file
query_logger = logging.getLogger("query_log")
query_logger.setLevel(logging.INFO)
query_logger.propagate = False  # Don't propagate to root logger


def configure_logging(log_level: str = "INFO", log_dir: Optional[str] = None) -> None:
    """Configure root logging and the optional log files"""
    level = getattr(logging, log_level.upper(), logging.INFO)
    logging.basicConfig(level=level, format=LOG_FORMAT, stream=sys.stderr)
    logging.getLogger().setLevel(level)

    # Reduce noise from third-party loggers
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("aiohttp").setLevel(logging.WARNING)

    if not log_dir:
        return

    try:
        os.makedirs(log_dir, exist_ok=True)
    except OSError as e:
        logger.warning(f"Could not create log directory {log_dir}: {e}")
        return

    app_handler = logging.FileHandler(os.path.join(log_dir, APP_LOG_NAME))
    app_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logging.getLogger().addHandler(app_handler)

    query_handler = logging.FileHandler(os.path.join(log_dir, QUERY_LOG_NAME))
    query_handler.setFormatter(logging.Formatter(
        "%(asctime)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    ))
    query_logger.addHandler(query_handler)
    logger.info(f"File logging enabled: {log_dir}")


def log_query(tool_name: str, arguments: Optional[dict[str, Any]], endpoint: Optional[str] = None) -> None:
    """Log a tool call to the query log file."""
    if not query_logger.handlers:
        return
    try:
        # Truncate large arguments for logging
        args_str = json.dumps(arguments, default=str)[:500] if arguments else "{}"
    except (TypeError, ValueError) as e:
        args_str = f"<unserializable: {e}>"
    query_logger.info(f"TOOL={tool_name} | ENDPOINT={endpoint or 'default'} | ARGS={args_str}")
