"""
Action dispatcher for proxied telemetry operations.

This module validates inbound action requests, resolves them to upstream
ThingsBoard endpoints and maps every outcome, success or failure, to a
ProxyResponse. Three actions are supported, all scoped to the
latitude/longitude keys of one device:

- telemetry → read the full time-series history
- attrs     → read shared-scope attributes, reshaped into a keyed mapping
- flush     → delete all time-series data
"""

import json
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Mapping, Optional
from urllib.parse import quote, urlencode

import requests

from tbproxy.auth.authenticator import Authenticator
from tbproxy.config import ProxyConfig
from tbproxy.exceptions import (
    NetworkError,
    TbProxyError,
    UpstreamCallError,
    ValidationError,
)
from tbproxy.transform import attributes_to_map

logger = logging.getLogger(__name__)


class Action(str, Enum):
    """Actions a caller may request."""

    TELEMETRY = "telemetry"
    ATTRS = "attrs"
    FLUSH = "flush"


@dataclass(frozen=True)
class ActionRequest:
    """
    A validated inbound request.

    Attributes
    ----------
    action : Action
        Requested operation
    device_id : str
        Upstream device identifier
    """

    action: Action
    device_id: str

    @classmethod
    def from_payload(cls, payload: Any) -> "ActionRequest":
        """
        Build a request from a decoded JSON body.

        Fields other than ``action`` and ``deviceId`` are ignored.

        Raises
        ------
        ValidationError
            If the action is missing or unknown, or the device id is missing
        """
        if not isinstance(payload, Mapping):
            raise ValidationError("Invalid JSON")

        raw_action = payload.get("action")
        if not raw_action:
            raise ValidationError("Missing action")
        if not isinstance(raw_action, str) or raw_action not in _ACTION_VALUES:
            raise ValidationError("Unknown action")

        device_id = payload.get("deviceId")
        if not isinstance(device_id, str) or not device_id.strip():
            raise ValidationError("Missing deviceId")

        return cls(action=Action(raw_action), device_id=device_id)


_ACTION_VALUES = frozenset(a.value for a in Action)


@dataclass
class ProxyResponse:
    """
    Outcome of one proxied call.

    Attributes
    ----------
    status : int
        HTTP status for the caller
    body : Any
        JSON-serializable payload, or None for an empty body
    headers : dict
        Extra response headers
    """

    status: int
    body: Any = None
    headers: dict = field(default_factory=dict)

    @classmethod
    def from_error(cls, error: TbProxyError) -> "ProxyResponse":
        """Build the response for a tbproxy error."""
        return cls(status=error.status_code, body=error.to_body())

    @property
    def ok(self) -> bool:
        """Return True for a 2xx status."""
        return 200 <= self.status < 300

    def to_bytes(self) -> bytes:
        """Serialize the body as UTF-8 JSON (empty for no body)."""
        if self.body is None:
            return b""
        return json.dumps(self.body).encode("utf-8")


class ActionDispatcher:
    """
    Routes action requests to the upstream telemetry API.

    Each dispatch runs once through validate → authenticate → invoke →
    transform → respond. Nothing is retried.

    Parameters
    ----------
    config : ProxyConfig
        Upstream host and request timeout
    authenticator : Authenticator
        Source of bearer tokens
    session : requests.Session, optional
        HTTP session for action calls
    clock : Callable[[], float], optional
        Time source in Unix seconds, used for the telemetry end timestamp

    Examples
    --------
    >>> dispatcher = ActionDispatcher(config, Authenticator(config, SessionCache()))
    >>> response = dispatcher.dispatch({"action": "attrs", "deviceId": "abc"})
    >>> response.status
    200
    """

    TELEMETRY_KEYS = ("latitude", "longitude")
    TELEMETRY_LIMIT = 10000
    TELEMETRY_PATH = "/api/plugins/telemetry/DEVICE"

    def __init__(
        self,
        config: ProxyConfig,
        authenticator: Authenticator,
        session: Optional[requests.Session] = None,
        clock: Callable[[], float] = time.time,
    ):
        self._config = config
        self._authenticator = authenticator
        self._session = session or requests.Session()
        self._clock = clock

        self._handlers = {
            Action.TELEMETRY: self._telemetry,
            Action.ATTRS: self._attrs,
            Action.FLUSH: self._flush,
        }

    def dispatch(self, payload: Any) -> ProxyResponse:
        """
        Validate a decoded JSON body and execute it.

        Never raises; every failure becomes an error response.

        Parameters
        ----------
        payload : Any
            Decoded request body

        Returns
        -------
        ProxyResponse
            Success payload or error payload with its status
        """
        try:
            request = ActionRequest.from_payload(payload)
        except ValidationError as e:
            logger.debug(f"Rejected request: {e}")
            return ProxyResponse.from_error(e)

        return self.dispatch_request(request)

    def dispatch_request(self, request: ActionRequest) -> ProxyResponse:
        """
        Execute an already validated request.

        Parameters
        ----------
        request : ActionRequest
            Validated request

        Returns
        -------
        ProxyResponse
            Success payload or error payload with its status
        """
        handler = self._handlers.get(request.action)
        if handler is None:
            return ProxyResponse.from_error(ValidationError("Unknown action"))

        try:
            token = self._authenticator.ensure_token()
            body = handler(request.device_id, token)
        except TbProxyError as e:
            logger.warning(
                f"{request.action.value} for device {request.device_id} "
                f"failed with {e.status_code}: {e}"
            )
            return ProxyResponse.from_error(e)
        except Exception as e:
            logger.exception(f"Unexpected error handling {request.action.value}")
            return ProxyResponse(status=500, body={"error": str(e)})

        logger.info(f"{request.action.value} for device {request.device_id} ok")
        return ProxyResponse(status=200, body=body)

    def _telemetry(self, device_id: str, token: str) -> Any:
        params = {
            "keys": ",".join(self.TELEMETRY_KEYS),
            "startTs": 0,
            "endTs": int(self._clock() * 1000),
            "limit": self.TELEMETRY_LIMIT,
            "agg": "NONE",
            "orderBy": "ASC",
        }
        response = self._call(
            "GET", device_id, "/values/timeseries", params, token, "Telemetry fetch"
        )
        return _json_body(response, "Telemetry fetch")

    def _attrs(self, device_id: str, token: str) -> dict:
        params = {"keys": ",".join(self.TELEMETRY_KEYS)}
        response = self._call(
            "GET",
            device_id,
            "/values/attributes/SHARED_SCOPE",
            params,
            token,
            "Attr fetch",
        )
        records = _json_body(response, "Attr fetch")
        if not isinstance(records, list):
            raise TbProxyError("Attr fetch returned an unexpected payload")
        return attributes_to_map(records)

    def _flush(self, device_id: str, token: str) -> dict:
        params = {
            "keys": ",".join(self.TELEMETRY_KEYS),
            "deleteAllDataForKeys": "true",
        }
        self._call(
            "DELETE", device_id, "/timeseries/delete", params, token, "Flush"
        )
        return {"ok": True}

    def _call(
        self,
        method: str,
        device_id: str,
        suffix: str,
        params: dict,
        token: str,
        stage: str,
    ) -> requests.Response:
        url = (
            f"{self._config.host}{self.TELEMETRY_PATH}/"
            f"{quote(device_id, safe='')}{suffix}?{urlencode(params, safe=',')}"
        )
        logger.debug(f"{method} {url}")

        try:
            response = self._session.request(
                method,
                url,
                headers={"X-Authorization": f"Bearer {token}"},
                timeout=self._config.timeout,
            )
        except requests.RequestException as e:
            raise NetworkError(f"{stage} error: {e}") from e

        if not 200 <= response.status_code < 300:
            raise UpstreamCallError(stage, response.status_code)

        return response


def _json_body(response: requests.Response, stage: str) -> Any:
    try:
        return response.json()
    except ValueError as e:
        raise TbProxyError(f"{stage} returned invalid JSON") from e
