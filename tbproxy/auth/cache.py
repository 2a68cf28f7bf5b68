"""
In-memory session token cache.

One SessionCache is created at process start and shared by reference with
the Authenticator. It never performs I/O.
"""

import time
from dataclasses import dataclass
from typing import Callable, Optional

# Tokens are treated as stale this many seconds before their expiry
EXPIRY_MARGIN = 60


@dataclass(frozen=True)
class SessionToken:
    """
    Bearer token granted by an upstream login.

    Attributes
    ----------
    value : str
        Opaque token string
    expires_at : float
        Absolute expiry as a Unix timestamp
    """

    value: str
    expires_at: float


class SessionCache:
    """
    Holds zero or one SessionToken.

    Parameters
    ----------
    clock : Callable[[], float], optional
        Time source returning Unix seconds (default: time.time)
    margin : float, optional
        Safety margin in seconds before expiry (default: 60)

    Examples
    --------
    >>> cache = SessionCache()
    >>> cache.get() is None
    True
    >>> cache.set("abc", ttl=3600)
    >>> cache.get()
    'abc'
    """

    def __init__(
        self,
        clock: Callable[[], float] = time.time,
        margin: float = EXPIRY_MARGIN,
    ):
        self._clock = clock
        self._margin = margin
        self._token: Optional[SessionToken] = None

    @property
    def token(self) -> Optional[SessionToken]:
        """Return the raw cached entry, stale or not."""
        return self._token

    def get(self) -> Optional[str]:
        """Return the cached token if it is usable right now, else None."""
        token = self._token
        if token and self._clock() < token.expires_at - self._margin:
            return token.value
        return None

    def set(self, token: str, ttl: float) -> None:
        """Replace the cached entry with ``token`` valid for ``ttl`` seconds."""
        self._token = SessionToken(value=token, expires_at=self._clock() + ttl)

    def clear(self) -> None:
        """Drop the cached entry."""
        self._token = None
