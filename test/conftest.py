"""Pytest configuration and fixtures

Provides shared fixtures: configs, dispatchers over a fake HTTP client,
throwaway RSA keys and schema files.
"""

import sys
from pathlib import Path

# Add project root and this directory to sys.path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))
sys.path.insert(0, str(Path(__file__).parent))

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from config import Config
from dispatcher import RequestDispatcher
from token_manager import TokenManager
from helpers import FakeHttpClient, TEST_ENDPOINT, TEST_SDL


@pytest.fixture
def fake_http():
    return FakeHttpClient()


@pytest.fixture
def config():
    return Config(endpoint=TEST_ENDPOINT)


@pytest.fixture
def make_dispatcher():
    """Factory for dispatchers over a config and a fake client"""

    def _make(config: Config, http_client: FakeHttpClient) -> RequestDispatcher:
        return RequestDispatcher(config, TokenManager(config.jwt), http_client)

    return _make


@pytest.fixture(scope="session")
def rsa_private_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture
def private_key_path(tmp_path, rsa_private_key):
    """PEM encoded RSA private key written to a temporary file"""
    pem = rsa_private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )
    path = tmp_path / "private.pem"
    path.write_bytes(pem)
    return str(path)


@pytest.fixture
def schema_file(tmp_path):
    """Local schema file containing TEST_SDL"""
    path = tmp_path / "schema.graphql"
    path.write_text(TEST_SDL, encoding="utf-8")
    return str(path)
