"""
CLI module for tbproxy.

This module provides the command-line interface for running the proxy
server and performing one-off proxied actions.
"""

from tbproxy.cli.commands import main

__all__ = ["main"]
