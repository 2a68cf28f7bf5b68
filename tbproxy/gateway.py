"""
HTTP front end for the telemetry proxy.

RequestGateway turns a raw (method, body) pair into a ProxyResponse and adds
the CORS headers every response carries. ProxyHandler plugs the gateway
into ``http.server`` so the proxy can run as a standalone process.

Security model:
- Upstream credentials live only in this process
- Callers receive proxied, reshaped responses, never the credentials
  or the session token
- Callers of the proxy itself are not authenticated
"""

import json
import logging
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Optional

import requests

from tbproxy.auth.authenticator import Authenticator
from tbproxy.auth.cache import SessionCache
from tbproxy.config import ProxyConfig
from tbproxy.dispatcher import ActionDispatcher, ProxyResponse
from tbproxy.exceptions import MethodNotAllowed, ValidationError

logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}


class RequestGateway:
    """
    Method and body handling in front of the ActionDispatcher.

    Parameters
    ----------
    dispatcher : ActionDispatcher
        Dispatcher that executes POSTed actions

    Examples
    --------
    >>> gateway = RequestGateway(dispatcher)
    >>> gateway.handle("OPTIONS", b"").status
    200
    """

    def __init__(self, dispatcher: ActionDispatcher):
        self._dispatcher = dispatcher

    def handle(self, method: str, body: bytes = b"") -> ProxyResponse:
        """
        Handle one inbound request.

        Parameters
        ----------
        method : str
            HTTP method
        body : bytes
            Raw request body

        Returns
        -------
        ProxyResponse
            Response with CORS headers attached
        """
        response = self._route(method.upper(), body)
        response.headers.update(CORS_HEADERS)
        return response

    def _route(self, method: str, body: bytes) -> ProxyResponse:
        if method == "OPTIONS":
            return ProxyResponse(status=200)
        if method != "POST":
            return ProxyResponse.from_error(MethodNotAllowed(method))

        try:
            payload = json.loads(body) if body else {}
        except (json.JSONDecodeError, UnicodeDecodeError):
            return ProxyResponse.from_error(ValidationError("Invalid JSON"))

        return self._dispatcher.dispatch(payload)


class ProxyHandler(BaseHTTPRequestHandler):
    """HTTP request handler that forwards everything to a RequestGateway."""

    gateway: RequestGateway = None  # Set by create_server

    def log_message(self, format, *args):
        """Log through the logging module instead of stderr."""
        logger.info("%s - %s", self.address_string(), format % args)

    def send_proxy_response(self, response: ProxyResponse, write_body: bool = True):
        """Send a ProxyResponse as the HTTP reply."""
        body = response.to_bytes()
        self.send_response(response.status)
        for key, value in response.headers.items():
            self.send_header(key, value)
        if response.body is not None:
            self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        if write_body and body:
            self.wfile.write(body)

    def __getattr__(self, name):
        # Any verb without its own do_<METHOD> goes through the gateway
        if name.startswith("do_"):
            return self._handle
        raise AttributeError(name)

    def _read_body(self) -> bytes:
        content_length = int(self.headers.get("Content-Length", 0) or 0)
        if content_length < 0:
            raise ValueError(f"negative Content-Length: {content_length}")
        return self.rfile.read(content_length) if content_length else b""

    def _handle(self):
        try:
            body = self._read_body()
        except ValueError:
            # Unread body bytes would corrupt the next request on this connection
            self.close_connection = True
            response = ProxyResponse.from_error(
                ValidationError("Invalid Content-Length")
            )
            response.headers.update(CORS_HEADERS)
        else:
            response = self.gateway.handle(self.command, body)

        self.send_proxy_response(response, write_body=self.command != "HEAD")


def build_dispatcher(
    config: ProxyConfig,
    session: Optional[requests.Session] = None,
) -> ActionDispatcher:
    """
    Wire one cache, authenticator and dispatcher for a process.

    Parameters
    ----------
    config : ProxyConfig
        Upstream and server settings
    session : requests.Session, optional
        HTTP session shared by login and action calls

    Returns
    -------
    ActionDispatcher
        Dispatcher backed by a fresh SessionCache
    """
    session = session or requests.Session()
    authenticator = Authenticator(config, SessionCache(), session=session)
    return ActionDispatcher(config, authenticator, session=session)


def create_server(
    config: ProxyConfig,
    dispatcher: Optional[ActionDispatcher] = None,
) -> ThreadingHTTPServer:
    """
    Create (but do not start) the proxy HTTP server.

    Parameters
    ----------
    config : ProxyConfig
        Listen address and upstream settings
    dispatcher : ActionDispatcher, optional
        Dispatcher to use (default: built from config)

    Returns
    -------
    ThreadingHTTPServer
        Bound server; ``server.server_address`` holds the actual port
    """
    gateway = RequestGateway(dispatcher or build_dispatcher(config))
    handler = type("BoundProxyHandler", (ProxyHandler,), {"gateway": gateway})
    return ThreadingHTTPServer((config.listen_host, config.listen_port), handler)


def run_server(config: ProxyConfig) -> None:
    """Run the proxy server until interrupted."""
    server = create_server(config)
    host, port = server.server_address[:2]

    logger.info(f"Telemetry proxy listening on {host}:{port} -> {config.host}")
    if not config.has_credentials:
        logger.warning("TB_USER/TB_PASS not set; action requests will fail")

    try:
        server.serve_forever()
    except KeyboardInterrupt:
        logger.info("Shutting down...")
    finally:
        server.server_close()
