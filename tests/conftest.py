"""
Pytest configuration and shared fixtures.

This module contains pytest fixtures and configuration that are shared
across all test modules.
"""

from unittest.mock import Mock

import pytest
import requests

from tbproxy.auth.cache import SessionCache
from tbproxy.config import ProxyConfig

TB_HOST = "https://tb.example.com"
TB_USER = "tenant@example.com"
TB_PASS = "s3cret-pass"


class FakeClock:
    """Controllable time source returning Unix seconds."""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def build_response(status_code: int = 200, json_data=None, text: str = "") -> Mock:
    """
    Build a mock requests.Response.

    Parameters
    ----------
    status_code : int
        HTTP status to report
    json_data : Any, optional
        Value returned by ``response.json()``
    text : str
        Value of ``response.text``

    Returns
    -------
    Mock
        Response mock
    """
    response = Mock(spec=requests.Response)
    response.status_code = status_code
    response.text = text
    response.json = Mock(return_value=json_data)
    return response


@pytest.fixture
def make_response():
    """Provide the mock response factory."""
    return build_response


@pytest.fixture
def config() -> ProxyConfig:
    """
    Provide a configuration with credentials.

    Returns
    -------
    ProxyConfig
        Config pointing at a fake upstream host
    """
    return ProxyConfig(host=TB_HOST, username=TB_USER, password=TB_PASS)


@pytest.fixture
def clock() -> FakeClock:
    """Provide a controllable clock."""
    return FakeClock()


@pytest.fixture
def cache(clock) -> SessionCache:
    """Provide an empty token cache driven by the fake clock."""
    return SessionCache(clock=clock)


@pytest.fixture
def session() -> Mock:
    """
    Provide a mock HTTP session whose login succeeds.

    Returns
    -------
    Mock
        Session mock; ``post`` returns a token "tok-1"
    """
    session = Mock(spec=requests.Session)
    session.post = Mock(return_value=build_response(200, {"token": "tok-1"}))
    session.request = Mock(return_value=build_response(200, []))
    return session
