"""
Command-line interface for tbproxy.

This module provides CLI commands for running the proxy server and for
performing a single proxied action from the shell.
"""

import argparse
import json
import logging
import sys
from dataclasses import replace
from typing import Optional

from tbproxy.config import ProxyConfig
from tbproxy.dispatcher import Action, ActionRequest
from tbproxy.exceptions import ConfigError
from tbproxy.gateway import build_dispatcher, run_server

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"


def create_parser() -> argparse.ArgumentParser:
    """
    Create and configure the argument parser.

    Returns
    -------
    argparse.ArgumentParser
        Configured argument parser
    """
    parser = argparse.ArgumentParser(
        prog="tbproxy",
        description="Credential-shielding proxy for the ThingsBoard telemetry API",
        epilog="Example: tbproxy serve --port 8080",
    )

    parser.add_argument(
        "--version",
        action="version",
        version="%(prog)s 0.1.0",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Serve command
    serve_parser = subparsers.add_parser(
        "serve",
        help="Run the proxy HTTP server",
        description=(
            "Run the proxy HTTP server. Upstream settings come from "
            "TB_HOST, TB_USER and TB_PASS."
        ),
    )
    serve_parser.add_argument(
        "--host",
        metavar="ADDR",
        help="Address to bind (default: PROXY_HOST or 127.0.0.1)",
    )
    serve_parser.add_argument(
        "--port",
        "-p",
        type=int,
        help="Port to listen on (default: PROXY_PORT or 8080, 0 = auto-select)",
    )

    # Call command
    call_parser = subparsers.add_parser(
        "call",
        help="Perform one proxied action and print the result",
        description="Run a single action against the upstream and print JSON",
    )
    call_parser.add_argument(
        "action",
        choices=[a.value for a in Action],
        help="Action to perform",
    )
    call_parser.add_argument(
        "device_id",
        help="Upstream device identifier",
    )

    return parser


def cmd_serve(args: argparse.Namespace, config: ProxyConfig) -> int:
    """
    Execute serve command.

    Parameters
    ----------
    args : argparse.Namespace
        Parsed command-line arguments
    config : ProxyConfig
        Configuration read from the environment

    Returns
    -------
    int
        Exit code (0 for success)
    """
    overrides = {}
    if args.host:
        overrides["listen_host"] = args.host
    if args.port is not None:
        overrides["listen_port"] = args.port

    run_server(replace(config, **overrides))
    return 0


def cmd_call(args: argparse.Namespace, config: ProxyConfig) -> int:
    """
    Execute call command.

    Parameters
    ----------
    args : argparse.Namespace
        Parsed command-line arguments
    config : ProxyConfig
        Configuration read from the environment

    Returns
    -------
    int
        Exit code (0 for a 2xx response, 1 otherwise)
    """
    if not args.device_id.strip():
        print("Error: device id must not be empty", file=sys.stderr)
        return 1

    dispatcher = build_dispatcher(config)
    request = ActionRequest(action=Action(args.action), device_id=args.device_id)
    response = dispatcher.dispatch_request(request)

    output = json.dumps(response.body, indent=2)
    if response.ok:
        print(output)
        return 0

    print(f"Error ({response.status}): {output}", file=sys.stderr)
    return 1


def main(args: Optional[list[str]] = None) -> int:
    """
    Main entry point for the CLI.

    Parameters
    ----------
    args : list[str], optional
        Command-line arguments (defaults to sys.argv[1:])

    Returns
    -------
    int
        Exit code (0 for success, non-zero for error)
    """
    parser = create_parser()
    parsed_args = parser.parse_args(args)

    if parsed_args.command is None:
        parser.print_help()
        return 0

    # Logs go to stderr so `call` output stays clean JSON on stdout
    logging.basicConfig(
        level=logging.DEBUG if parsed_args.verbose else logging.INFO,
        format=LOG_FORMAT,
        stream=sys.stderr,
    )

    try:
        config = ProxyConfig.from_env()
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if parsed_args.command == "serve":
        return cmd_serve(parsed_args, config)

    if parsed_args.command == "call":
        return cmd_call(parsed_args, config)

    # Unknown command (shouldn't happen with argparse)
    print(f"Unknown command: {parsed_args.command}", file=sys.stderr)
    return 1


if __name__ == "__main__":
    sys.exit(main())
