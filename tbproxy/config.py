"""
Runtime configuration for tbproxy.

Configuration is read once from environment variables at process start:

- TB_HOST     upstream base URL (default: https://thingsboard.cloud)
- TB_USER     upstream username (required on first use)
- TB_PASS     upstream password (required on first use)
- TB_TIMEOUT  upstream request timeout in seconds (optional)
- PROXY_HOST  address the HTTP server binds to (default: 127.0.0.1)
- PROXY_PORT  port the HTTP server binds to (default: 8080)
"""

import os
from dataclasses import dataclass, field
from typing import Mapping, Optional

from tbproxy.exceptions import ConfigError

DEFAULT_HOST = "https://thingsboard.cloud"
DEFAULT_LISTEN_HOST = "127.0.0.1"
DEFAULT_LISTEN_PORT = 8080


@dataclass(frozen=True)
class ProxyConfig:
    """
    Upstream credentials and server settings.

    The password is excluded from ``repr`` so the config object can be
    logged safely.

    Attributes
    ----------
    host : str
        Upstream base URL without trailing slash
    username : str, optional
        Upstream account name
    password : str, optional
        Upstream account password
    timeout : float, optional
        Upstream request timeout in seconds (None = no timeout)
    listen_host : str
        Address for the HTTP server
    listen_port : int
        Port for the HTTP server (0 = auto-select)
    """

    host: str = DEFAULT_HOST
    username: Optional[str] = None
    password: Optional[str] = field(default=None, repr=False)
    timeout: Optional[float] = None
    listen_host: str = DEFAULT_LISTEN_HOST
    listen_port: int = DEFAULT_LISTEN_PORT

    def __post_init__(self):
        object.__setattr__(self, "host", self.host.rstrip("/"))

    @property
    def has_credentials(self) -> bool:
        """Return True if both username and password are set."""
        return bool(self.username) and bool(self.password)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ProxyConfig":
        """
        Build configuration from environment variables.

        Parameters
        ----------
        environ : Mapping[str, str], optional
            Variables to read (defaults to os.environ)

        Returns
        -------
        ProxyConfig
            Parsed configuration

        Raises
        ------
        ConfigError
            If TB_TIMEOUT or PROXY_PORT is not a valid number
        """
        env = os.environ if environ is None else environ

        timeout = None
        raw_timeout = env.get("TB_TIMEOUT")
        if raw_timeout:
            try:
                timeout = float(raw_timeout)
            except ValueError:
                raise ConfigError(f"Invalid TB_TIMEOUT: '{raw_timeout}'") from None
            if timeout <= 0:
                raise ConfigError(f"Invalid TB_TIMEOUT: '{raw_timeout}'")

        raw_port = env.get("PROXY_PORT") or str(DEFAULT_LISTEN_PORT)
        try:
            port = int(raw_port)
        except ValueError:
            raise ConfigError(f"Invalid PROXY_PORT: '{raw_port}'") from None
        if not 0 <= port <= 65535:
            raise ConfigError(f"Invalid PROXY_PORT: '{raw_port}'")

        return cls(
            host=env.get("TB_HOST") or DEFAULT_HOST,
            username=env.get("TB_USER") or None,
            password=env.get("TB_PASS") or None,
            timeout=timeout,
            listen_host=env.get("PROXY_HOST") or DEFAULT_LISTEN_HOST,
            listen_port=port,
        )
