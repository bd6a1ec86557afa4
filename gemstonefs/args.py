"""Module defining the command-line arguments and providing a parser for them."""

from __future__ import annotations

import argparse
from typing import List, Optional

from gemstonefs.constants import DEFAULT_LISTEN_ENDPOINT, PROTOCOL_VERSION, VERSION


class Arguments(argparse.Namespace):
    """Parsed command-line arguments."""

    gateways: List[str]

    listen: str
    token: Optional[str]
    gateway_token: Optional[str]

    config: str
    workspace: Optional[str]

    debug: bool
    timeout: int
    workers: int

    @classmethod
    def parse(cls, args: Optional[List[str]] = None) -> Arguments:
        """
        Parse command-line arguments from the given list of strings.

        Defaults to sys.argv if none are specified.
        """
        return cls._get_parser().parse_args(args, namespace=cls())

    @classmethod
    def _get_parser(cls) -> argparse.ArgumentParser:
        parser = argparse.ArgumentParser(
            description="Expose GemStone sessions as a virtual file system.",
            usage="gemstonefs [option...] [gateway...]",
        )

        parser.add_argument(
            "--version",
            action="version",
            version=f"%(prog)s {VERSION} (protocol {PROTOCOL_VERSION})",
            help="show the program version and protocol version",
        )

        # Session gateways to log in to at startup
        parser.add_argument(
            "gateways",
            type=str,
            nargs="*",
            help="endpoints of session gateways (e.g. tcp://127.0.0.1:40401)",
        )

        # Endpoint of the service for the editor host
        parser.add_argument(
            "--listen",
            type=str,
            help=f"endpoint for the editor host (default {DEFAULT_LISTEN_ENDPOINT})",
            default=DEFAULT_LISTEN_ENDPOINT,
        )

        # Shared secrets, both optional
        parser.add_argument(
            "--token", type=str, help="token that the editor host must present"
        )
        parser.add_argument(
            "--gateway-token", type=str, help="token to present to session gateways"
        )

        # Path to (optional) config file
        parser.add_argument(
            "--config",
            type=str,
            help="path to config file (default is ~/.gemstonefs/config)",
            default="~/.gemstonefs/config",
        )

        # Overrides the workspace path of the config file
        parser.add_argument(
            "--workspace", type=str, help="path to the .code-workspace file"
        )

        # Enable debug output for development
        parser.add_argument(
            "--debug", action="store_true", help="enable debug information"
        )

        # Configure network timeout
        parser.add_argument(
            "--timeout",
            type=cls._parse_timeout,
            help="timeout for session gateway calls in milliseconds",
            default=5000,
        )

        # Configure number of service workers
        parser.add_argument(
            "--workers",
            type=cls._parse_workers,
            help="number of threads serving the editor host",
            default=4,
        )

        return parser

    @staticmethod
    def _parse_timeout(arg: str) -> int:
        try:
            val = int(arg)
            assert val > 0
            return val
        except (ValueError, AssertionError):
            raise argparse.ArgumentTypeError("expected number > 0")

    @staticmethod
    def _parse_workers(arg: str) -> int:
        try:
            val = int(arg)
            assert val > 0
            return val
        except (ValueError, AssertionError):
            raise argparse.ArgumentTypeError("expected number of workers > 0")
