"""Test configuration loading from the environment"""

import json
import logging

import pytest

from config import (
    DEFAULT_ENDPOINT,
    DEFAULT_PORT,
    ConfigError,
    ExternalToken,
    GeneratedToken,
    JwtDisabled,
    check_deprecated_arguments,
    load_config,
    parse_jwt_config,
)


def test_defaults():
    config = load_config({})

    assert config.name == "mcp-graphql"
    assert config.endpoint == DEFAULT_ENDPOINT
    assert config.allow_mutations is False
    assert config.headers == {}
    assert config.schema_path is None
    assert config.jwt == JwtDisabled()
    assert config.port == DEFAULT_PORT
    assert config.ssl_verify is True


def test_full_environment():
    config = load_config({
        "NAME": "my-api",
        "ENDPOINT": "https://api.example.com/graphql",
        "ALLOW_MUTATIONS": "true",
        "HEADERS": json.dumps({"X-Api-Key": "abc"}),
        "SCHEMA": "./schema.graphql",
        "LOG_DIR": "/tmp/logs",
        "LOG_LEVEL": "debug",
        "PORT": "5900",
    })

    assert config.name == "my-api"
    assert config.endpoint == "https://api.example.com/graphql"
    assert config.allow_mutations is True
    assert config.headers == {"X-Api-Key": "abc"}
    assert config.schema_path == "./schema.graphql"
    assert config.log_dir == "/tmp/logs"
    assert config.log_level == "DEBUG"
    assert config.port == 5900


def test_config_is_immutable():
    config = load_config({})

    with pytest.raises(AttributeError):
        config.endpoint = "http://other"


@pytest.mark.parametrize("env", [
    {"ENDPOINT": "not a url"},
    {"ENDPOINT": "ftp://example.com/graphql"},
    {"ALLOW_MUTATIONS": "yes"},
    {"HEADERS": "{not json"},
    {"HEADERS": "[1, 2]"},
    {"PORT": "abc"},
    {"PORT": "70000"},
    {"JWT_CONFIGURATION": "{broken"},
    {"JWT_CONFIGURATION": "{}"},
])
def test_invalid_values_raise_config_error(env):
    with pytest.raises(ConfigError):
        load_config(env)


def test_jwt_external_token():
    assert parse_jwt_config('{"accessToken": "abc"}') == ExternalToken(access_token="abc")


def test_jwt_generated_token_with_options():
    jwt_config = parse_jwt_config(json.dumps({
        "privateKeyPath": "/keys/private.pem",
        "issuer": "my-issuer",
        "algorithm": "RS512",
    }))

    assert jwt_config == GeneratedToken(
        private_key_path="/keys/private.pem", issuer="my-issuer", algorithm="RS512"
    )


def test_jwt_generated_token_defaults_to_rs256():
    jwt_config = parse_jwt_config('{"privateKeyPath": "/keys/private.pem"}')

    assert jwt_config.algorithm == "RS256"
    assert jwt_config.issuer is None


def test_jwt_private_key_path_shorthand():
    config = load_config({"PRIVATE_KEY_PATH": "/keys/private.pem"})

    assert config.jwt == GeneratedToken(private_key_path="/keys/private.pem")


def test_jwt_rejects_both_variants():
    with pytest.raises(ConfigError, match="both"):
        parse_jwt_config('{"accessToken": "abc", "privateKeyPath": "/k.pem"}')


def test_deprecated_arguments_warn(caplog):
    with caplog.at_level(logging.WARNING):
        used = check_deprecated_arguments(["mcp-graphql", "--endpoint", "http://x", "--schema", "s"])

    assert used == ["--endpoint", "--schema"]
    assert "Deprecated command line arguments" in caplog.text


def test_no_deprecated_arguments():
    assert check_deprecated_arguments(["mcp-graphql"]) == []
