"""
Custom exceptions for tbproxy.

This module defines all custom exceptions used throughout the tbproxy package.
All exceptions inherit from TbProxyError and carry the HTTP status the proxy
answers with, so every failure maps to exactly one response.
"""


class TbProxyError(Exception):
    """
    Base exception for all tbproxy errors.

    Attributes
    ----------
    status_code : int
        HTTP status returned to the caller for this error.

    Examples
    --------
    >>> try:
    ...     raise ConfigError("Server misconfigured: TB_USER or TB_PASS not set")
    ... except TbProxyError as e:
    ...     print(e.status_code, e.to_body())
    500 {'error': 'Server misconfigured: TB_USER or TB_PASS not set'}
    """

    status_code = 500

    def to_body(self) -> dict:
        """Return the JSON error payload sent to the caller."""
        return {"error": str(self)}


class ConfigError(TbProxyError):
    """
    Server configuration is missing or invalid.

    Raised when upstream credentials are not set or an environment
    variable cannot be parsed. Never retried.

    Examples
    --------
    >>> raise ConfigError("Server misconfigured: TB_USER or TB_PASS not set")
    """

    status_code = 500


class ValidationError(TbProxyError):
    """
    Error validating an inbound request.

    Raised for a missing or unknown action, a missing device id,
    or a body that is not a JSON object.

    Examples
    --------
    >>> raise ValidationError("Unknown action")
    """

    status_code = 400


class UpstreamAuthError(TbProxyError):
    """
    Upstream login was rejected.

    Attributes
    ----------
    upstream_status : int
        HTTP status returned by the login endpoint.
    body : str
        Response text read from the login endpoint (may be empty).
    """

    status_code = 500

    def __init__(self, upstream_status: int, body: str = ""):
        detail = body or "Check credentials"
        super().__init__(
            f"ThingsBoard authentication failed ({upstream_status}): {detail}"
        )
        self.upstream_status = upstream_status
        self.body = body


class UpstreamCallError(TbProxyError):
    """
    A proxied action call returned a non-success status.

    The proxy relays the upstream status code unchanged.

    Attributes
    ----------
    stage : str
        Human-readable name of the failing step (e.g. "Telemetry fetch").
    upstream_status : int
        HTTP status returned by the upstream platform.
    """

    def __init__(self, stage: str, upstream_status: int):
        super().__init__(f"{stage} failed")
        self.stage = stage
        self.upstream_status = upstream_status

    @property
    def status_code(self) -> int:
        return self.upstream_status

    def to_body(self) -> dict:
        return {"error": str(self), "status": self.upstream_status}


class NetworkError(TbProxyError):
    """
    Transport-level failure reaching the upstream platform.

    Raised on timeouts, DNS failures and connection resets.
    """

    status_code = 500


class MethodNotAllowed(TbProxyError):
    """HTTP method other than POST or OPTIONS."""

    status_code = 405

    def __init__(self, method: str):
        super().__init__("Method not allowed")
        self.method = method
