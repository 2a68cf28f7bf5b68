"""
Upstream authentication.

The proxy holds the upstream credentials and a cached session token;
callers only ever see proxied responses.
"""

from tbproxy.auth.authenticator import Authenticator
from tbproxy.auth.cache import SessionCache, SessionToken

__all__ = ["Authenticator", "SessionCache", "SessionToken"]
