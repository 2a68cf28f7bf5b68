"""
tbproxy - Credential-shielding proxy for the ThingsBoard telemetry API.

The proxy holds the upstream username and password, logs in once, caches
the session token and forwards a small set of location-telemetry actions
for callers that must never see the credentials.

Example usage::

    from tbproxy import ProxyConfig, build_dispatcher

    config = ProxyConfig.from_env()
    dispatcher = build_dispatcher(config)
    response = dispatcher.dispatch({"action": "attrs", "deviceId": "my-device"})
    print(response.status, response.body)
"""

from tbproxy.auth.authenticator import Authenticator
from tbproxy.auth.cache import SessionCache, SessionToken
from tbproxy.config import ProxyConfig
from tbproxy.dispatcher import Action, ActionDispatcher, ActionRequest, ProxyResponse
from tbproxy.exceptions import (
    ConfigError,
    MethodNotAllowed,
    NetworkError,
    TbProxyError,
    UpstreamAuthError,
    UpstreamCallError,
    ValidationError,
)
from tbproxy.gateway import RequestGateway, build_dispatcher, create_server
from tbproxy.transform import attributes_to_map

__version__ = "0.1.0"

__all__ = [
    # Config
    "ProxyConfig",
    # Auth
    "SessionCache",
    "SessionToken",
    "Authenticator",
    # Dispatch
    "Action",
    "ActionRequest",
    "ActionDispatcher",
    "ProxyResponse",
    "attributes_to_map",
    # Gateway
    "RequestGateway",
    "build_dispatcher",
    "create_server",
    # Exceptions
    "TbProxyError",
    "ConfigError",
    "ValidationError",
    "UpstreamAuthError",
    "UpstreamCallError",
    "NetworkError",
    "MethodNotAllowed",
    # Version
    "__version__",
]
