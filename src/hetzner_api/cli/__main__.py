"""CLI entry point for hetzner_api.

Usage:
    python -m hetzner_api.cli config
    python -m hetzner_api.cli cloud get /servers/42
    python -m hetzner_api.cli cloud list /servers servers
    python -m hetzner_api.cli cloud wait-action 1337 --timeout 120
    python -m hetzner_api.cli robot get /server
    python -m hetzner_api.cli robot post /server/123 --field server_name=web1
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from hetzner_api.errors import HetznerError, format_error


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="hetzner-api",
        description="Hetzner Cloud and Robot API command-line tools",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Config command
    subparsers.add_parser("config", help="Show the active configuration (redacted)")

    # Cloud commands
    cloud_parser = subparsers.add_parser("cloud", help="Call the Cloud API")
    cloud_sub = cloud_parser.add_subparsers(dest="action")

    cloud_get = cloud_sub.add_parser("get", help="GET a resource")
    cloud_get.add_argument("path", help="API path (e.g. /servers/42)")
    cloud_get.add_argument(
        "--param", action="append", metavar="KEY=VALUE", help="Query parameter"
    )

    cloud_list = cloud_sub.add_parser("list", help="Collect all pages of a collection")
    cloud_list.add_argument("path", help="API path (e.g. /servers)")
    cloud_list.add_argument("key", help="Response key holding the items (e.g. servers)")
    cloud_list.add_argument(
        "--param", action="append", metavar="KEY=VALUE", help="Query parameter"
    )

    wait_action = cloud_sub.add_parser("wait-action", help="Wait for an action")
    wait_action.add_argument("action_id", type=int, help="Action ID")
    wait_action.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Polling budget in seconds (default: 300)",
    )

    # Robot commands
    robot_parser = subparsers.add_parser("robot", help="Call the Robot API")
    robot_sub = robot_parser.add_subparsers(dest="action")

    robot_get = robot_sub.add_parser("get", help="GET a resource")
    robot_get.add_argument("path", help="API path (e.g. /server)")
    robot_get.add_argument(
        "--param", action="append", metavar="KEY=VALUE", help="Query parameter"
    )

    robot_post = robot_sub.add_parser("post", help="POST form fields (read_write only)")
    robot_post.add_argument("path", help="API path (e.g. /server/123)")
    robot_post.add_argument(
        "--field", action="append", metavar="KEY=VALUE", help="Form field"
    )

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    if args.command is None or (args.command != "config" and args.action is None):
        parser.print_help()
        return 0

    from hetzner_api.cli import commands
    from hetzner_api.config import (
        ConfigurationError,
        describe,
        get_settings,
        require_credentials,
    )

    try:
        if args.command == "config":
            print(describe(get_settings()))
            return 0

        settings = require_credentials(get_settings())

        if args.command == "cloud":
            if args.action == "get":
                coro = commands.cloud_get(settings, args.path, commands.parse_pairs(args.param))
            elif args.action == "list":
                coro = commands.cloud_list(
                    settings, args.path, args.key, commands.parse_pairs(args.param)
                )
            else:
                coro = commands.cloud_wait_action(settings, args.action_id, args.timeout)
        elif args.action == "get":
            coro = commands.robot_get(settings, args.path, commands.parse_pairs(args.param))
        else:
            coro = commands.robot_post(settings, args.path, commands.parse_pairs(args.field))

        print(asyncio.run(coro))
        return 0

    except (ConfigurationError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except HetznerError as e:
        print(format_error(e), file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
