"""
Bearer Token Management

Produces the bearer credential sent with outbound GraphQL requests. Generated
tokens are signed locally with PyJWT, live for 4 minutes and are reused until
20 seconds before expiry.

Token failures never abort a request: they are logged and the request goes
out without an Authorization header.
"""

import time
import logging
import threading
from typing import Callable, Optional
from dataclasses import dataclass

import anyio
import jwt

from config import ExternalToken, GeneratedToken, JwtConfig, JwtDisabled

logger = logging.getLogger(__name__)

TOKEN_LIFETIME_SECONDS = 240
EXPIRY_SAFETY_MARGIN_SECONDS = 20


@dataclass(frozen=True)
class CachedToken:
    """A signed token and its expiry (epoch seconds)"""
    value: str
    expires_at: int

    def is_fresh(self, now: int) -> bool:
        return self.expires_at > now + EXPIRY_SAFETY_MARGIN_SECONDS


class TokenCache:
    """Holds at most one live token"""

    def __init__(self):
        self._token: Optional[CachedToken] = None

    def get(self, now: int) -> Optional[CachedToken]:
        token = self._token
        if token is not None and token.is_fresh(now):
            return token
        return None

    def store(self, token: CachedToken) -> None:
        self._token = token

    def clear(self) -> None:
        self._token = None


class TokenManager:
    """
    Bearer credential provider for a JwtConfig variant.

    Args:
        jwt_config: Which kind of token to produce
        clock: Returns the current time in epoch seconds (injectable for tests)
    """

    def __init__(self, jwt_config: JwtConfig, clock: Callable[[], float] = time.time):
        self.jwt_config = jwt_config
        self.cache = TokenCache()
        self._clock = clock
        self._lock = threading.Lock()

    def _now(self) -> int:
        return int(self._clock())

    def get_token(self) -> Optional[str]:
        """Return the current bearer token, or None when there is none"""
        config = self.jwt_config

        if isinstance(config, JwtDisabled):
            return None
        if isinstance(config, ExternalToken):
            return config.access_token
        if isinstance(config, GeneratedToken):
            return self._get_generated_token(config)

        raise TypeError(f"Unsupported JWT configuration: {config!r}")

    async def get_token_async(self) -> Optional[str]:
        """Run get_token in a worker thread so key reads and signing stay off the event loop"""
        return await anyio.to_thread.run_sync(self.get_token)

    def reset(self) -> None:
        """Drop any cached token"""
        with self._lock:
            self.cache.clear()

    def _get_generated_token(self, config: GeneratedToken) -> Optional[str]:
        cached = self.cache.get(self._now())
        if cached is not None:
            logger.debug("Using cached JWT token")
            return cached.value

        with self._lock:
            # Another caller may have signed while we waited for the lock
            now = self._now()
            cached = self.cache.get(now)
            if cached is not None:
                return cached.value

            token = self._sign(config, now)
            if token is None:
                return None

            self.cache.store(CachedToken(value=token, expires_at=now + TOKEN_LIFETIME_SECONDS))
            logger.debug("New JWT token generated successfully")
            return token

    def _sign(self, config: GeneratedToken, now: int) -> Optional[str]:
        try:
            with open(config.private_key_path, "r", encoding="utf-8") as f:
                private_key = f.read()
        except FileNotFoundError:
            logger.error(f"Private key file not found at {config.private_key_path}")
            return None
        except OSError as e:
            logger.error(f"Could not read private key {config.private_key_path}: {e}")
            return None

        payload = {
            "iat": now,
            "exp": now + TOKEN_LIFETIME_SECONDS,
        }
        if config.issuer:
            payload["iss"] = config.issuer

        try:
            return jwt.encode(payload, private_key, algorithm=config.algorithm)
        except (jwt.PyJWTError, ValueError, TypeError, NotImplementedError) as e:
            logger.error(f"Invalid private key or algorithm {config.algorithm}: {e}")
            return None
        except Exception as e:
            logger.error(f"Error generating JWT: {e}", exc_info=True)
            return None
