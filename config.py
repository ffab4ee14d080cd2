"""
Configuration for the GraphQL MCP server

Settings are read once from the environment (and an optional .env file)
into an immutable Config. Invalid values raise ConfigError, which the entry
points treat as fatal.
"""

import os
import sys
import json
import logging
from typing import Optional, Union
from dataclasses import dataclass, field
from urllib.parse import urlparse

from dotenv import load_dotenv

from version import SERVER_NAME

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINT = "http://localhost:4000/graphql"
DEFAULT_PORT = 3000
DEFAULT_JWT_ALGORITHM = "RS256"

# Command line flags accepted before configuration moved to the environment
DEPRECATED_ARGUMENTS = ["--endpoint", "--headers", "--enable-mutations", "--name", "--schema"]


class ConfigError(ValueError):
    """Raised when the process configuration is invalid"""


# ============================================================================
# JWT configuration variants
# ============================================================================

@dataclass(frozen=True)
class ExternalToken:
    """A static bearer token supplied by the operator"""
    access_token: str


@dataclass(frozen=True)
class GeneratedToken:
    """Short-lived tokens signed locally with a private key"""
    private_key_path: str
    issuer: Optional[str] = None
    algorithm: str = DEFAULT_JWT_ALGORITHM


@dataclass(frozen=True)
class JwtDisabled:
    """No bearer token is sent"""


JwtConfig = Union[ExternalToken, GeneratedToken, JwtDisabled]


@dataclass(frozen=True)
class Config:
    """Immutable server configuration"""
    name: str = SERVER_NAME
    endpoint: str = DEFAULT_ENDPOINT
    allow_mutations: bool = False
    headers: dict[str, str] = field(default_factory=dict)
    schema_path: Optional[str] = None
    jwt: JwtConfig = field(default_factory=JwtDisabled)
    log_dir: Optional[str] = None
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = DEFAULT_PORT
    ssl_verify: bool = True


# ============================================================================
# Parsing helpers
# ============================================================================

def parse_bool(name: str, value: Optional[str], default: bool = False) -> bool:
    """Parse a strict 'true'/'false' flag"""
    if value is None or value == "":
        return default
    lowered = value.strip().lower()
    if lowered not in ("true", "false"):
        raise ConfigError(f"{name} must be 'true' or 'false', got {value!r}")
    return lowered == "true"


def parse_url(name: str, value: str) -> str:
    """Check that a value is an absolute http(s) URL"""
    parsed = urlparse(value)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ConfigError(f"{name} must be a valid http(s) URL, got {value!r}")
    return value


def parse_headers(name: str, value: Optional[str]) -> dict[str, str]:
    """Parse a JSON object of header names to values"""
    if not value:
        return {}
    try:
        parsed = json.loads(value)
    except json.JSONDecodeError as e:
        raise ConfigError(f"{name} must be a valid JSON string: {e}") from e
    if not isinstance(parsed, dict):
        raise ConfigError(f"{name} must be a JSON object")
    return {str(key): str(val) for key, val in parsed.items()}


def parse_port(name: str, value: Optional[str]) -> int:
    if not value:
        return DEFAULT_PORT
    try:
        port = int(value)
    except ValueError as e:
        raise ConfigError(f"{name} must be an integer, got {value!r}") from e
    if not 0 < port < 65536:
        raise ConfigError(f"{name} must be between 1 and 65535, got {port}")
    return port


def parse_jwt_config(value: Optional[str], private_key_path: Optional[str] = None) -> JwtConfig:
    """
    Build the JWT variant from JWT_CONFIGURATION.

    Accepted shapes:
        {"accessToken": "..."}
        {"privateKeyPath": "...", "issuer": "...", "algorithm": "RS256"}

    When JWT_CONFIGURATION is unset, PRIVATE_KEY_PATH alone selects a
    generated RS256 token.
    """
    if not value:
        if private_key_path:
            return GeneratedToken(private_key_path=private_key_path)
        return JwtDisabled()

    try:
        raw = json.loads(value)
    except json.JSONDecodeError as e:
        raise ConfigError(f"JWT_CONFIGURATION must be a valid JSON string: {e}") from e
    if not isinstance(raw, dict):
        raise ConfigError("JWT_CONFIGURATION must be a JSON object")

    access_token = raw.get("accessToken")
    key_path = raw.get("privateKeyPath") or private_key_path

    if access_token and raw.get("privateKeyPath"):
        raise ConfigError("JWT_CONFIGURATION cannot set both accessToken and privateKeyPath")

    if access_token:
        if not isinstance(access_token, str):
            raise ConfigError("JWT_CONFIGURATION.accessToken must be a string")
        return ExternalToken(access_token=access_token)

    if key_path:
        issuer = raw.get("issuer")
        if issuer is not None and not isinstance(issuer, str):
            raise ConfigError("JWT_CONFIGURATION.issuer must be a string")
        algorithm = raw.get("algorithm") or DEFAULT_JWT_ALGORITHM
        return GeneratedToken(private_key_path=str(key_path), issuer=issuer, algorithm=str(algorithm))

    raise ConfigError("JWT_CONFIGURATION must contain accessToken or privateKeyPath")


def check_deprecated_arguments(argv: Optional[list[str]] = None) -> list[str]:
    """Warn about command line flags that were replaced by environment variables"""
    argv = sys.argv if argv is None else argv
    used = [arg for arg in DEPRECATED_ARGUMENTS if arg in argv]
    if used:
        logger.warning(f"Deprecated command line arguments detected: {', '.join(used)}")
        logger.warning("Command line arguments have been replaced with environment variables.")
        logger.warning("  Instead of: mcp-graphql --endpoint http://example.com/graphql")
        logger.warning("  Use: ENDPOINT=http://example.com/graphql mcp-graphql")
    return used


def load_config(environ: Optional[dict[str, str]] = None) -> Config:
    """
    Load configuration from the environment.

    Args:
        environ: Mapping to read instead of os.environ (the .env file is only
                 loaded when reading the real environment)

    Raises:
        ConfigError: If any variable is invalid
    """
    if environ is None:
        load_dotenv()
        environ = dict(os.environ)

    endpoint = parse_url("ENDPOINT", environ.get("ENDPOINT") or DEFAULT_ENDPOINT)

    return Config(
        name=environ.get("NAME") or SERVER_NAME,
        endpoint=endpoint,
        allow_mutations=parse_bool("ALLOW_MUTATIONS", environ.get("ALLOW_MUTATIONS")),
        headers=parse_headers("HEADERS", environ.get("HEADERS")),
        schema_path=environ.get("SCHEMA") or None,
        jwt=parse_jwt_config(environ.get("JWT_CONFIGURATION"), environ.get("PRIVATE_KEY_PATH") or None),
        log_dir=environ.get("LOG_DIR") or None,
        log_level=(environ.get("LOG_LEVEL") or "INFO").upper(),
        host=environ.get("MCP_HOST") or "0.0.0.0",
        port=parse_port("PORT", environ.get("PORT")),
        ssl_verify=parse_bool("SSL_VERIFY", environ.get("SSL_VERIFY"), default=True),
    )
