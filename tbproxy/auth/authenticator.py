"""
Upstream login and token refresh.

The Authenticator is the only component that sees the upstream credentials.
It logs in lazily, when the shared SessionCache has no usable token, and
serializes concurrent refreshes so that requests arriving together with a
stale cache trigger a single login.
"""

import logging
import threading
from typing import Optional

import requests

from tbproxy.auth.cache import SessionCache
from tbproxy.config import ProxyConfig
from tbproxy.exceptions import ConfigError, NetworkError, UpstreamAuthError

logger = logging.getLogger(__name__)

LOGIN_PATH = "/api/auth/login"

# Assumed token lifetime; the login response is not consulted for it
TOKEN_TTL = 3600


class Authenticator:
    """
    Guarantees a usable bearer token before any upstream call.

    Parameters
    ----------
    config : ProxyConfig
        Upstream host and credentials
    cache : SessionCache
        Shared token cache
    session : requests.Session, optional
        HTTP session to use for the login request

    Examples
    --------
    >>> auth = Authenticator(ProxyConfig.from_env(), SessionCache())
    >>> token = auth.ensure_token()
    """

    def __init__(
        self,
        config: ProxyConfig,
        cache: SessionCache,
        session: Optional[requests.Session] = None,
    ):
        self._config = config
        self._cache = cache
        self._session = session or requests.Session()
        self._lock = threading.Lock()

    @property
    def cache(self) -> SessionCache:
        """Return the token cache this authenticator fills."""
        return self._cache

    def ensure_token(self) -> str:
        """
        Return a cached token, logging in first if the cache is stale.

        Returns
        -------
        str
            Bearer token valid for at least the cache safety margin

        Raises
        ------
        ConfigError
            If username or password is not configured
        UpstreamAuthError
            If the upstream rejects the login
        NetworkError
            If the upstream cannot be reached
        """
        token = self._cache.get()
        if token:
            return token

        with self._lock:
            # Another thread may have refreshed while we waited
            token = self._cache.get()
            if token:
                return token
            return self._login()

    def invalidate(self) -> None:
        """Forget the cached token so the next call logs in again."""
        self._cache.clear()

    def _login(self) -> str:
        if not self._config.has_credentials:
            raise ConfigError(
                "Server misconfigured: TB_USER or TB_PASS not set "
                "in environment variables"
            )

        url = f"{self._config.host}{LOGIN_PATH}"
        logger.info(f"Logging in to {self._config.host}")

        try:
            response = self._session.post(
                url,
                json={
                    "username": self._config.username,
                    "password": self._config.password,
                },
                headers={"Content-Type": "application/json"},
                timeout=self._config.timeout,
            )
        except requests.RequestException as e:
            logger.error(f"Login request failed: {e}")
            raise NetworkError(f"Login error: {e}") from e

        if not 200 <= response.status_code < 300:
            body = _read_text(response)
            logger.error(f"Login rejected with status {response.status_code}")
            raise UpstreamAuthError(response.status_code, body)

        try:
            token = response.json().get("token")
        except (ValueError, AttributeError):
            token = None

        if not token or not isinstance(token, str):
            raise UpstreamAuthError(
                response.status_code, "login response did not contain a token"
            )

        self._cache.set(token, TOKEN_TTL)
        logger.info("Session token obtained")
        return token


def _read_text(response: requests.Response) -> str:
    """Read the response body, returning "" if it cannot be read."""
    try:
        return response.text
    except (requests.RequestException, ValueError) as e:
        logger.debug(f"Could not read login error body: {e}")
        return ""
