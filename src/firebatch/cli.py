"""
Command-line interface for firebatch.

Provides commands for reading and writing a database from the shell.
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import structlog

from firebatch import __version__
from firebatch.config import ClientConfig, set_config
from firebatch.database import Database
from firebatch.errors import DatabaseError, FirebatchError
from firebatch.keys import encode_as_firebase_key


def setup_logging(level: str = "INFO", json_format: bool = False) -> None:
    """Configure structured logging."""
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer() if json_format
            else structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, level.upper()),
        stream=sys.stderr,
    )


def parse_query_parameter(raw: str) -> tuple:
    """
    Parse a `key=value` query parameter.

    `true`/`false` become booleans and integers become numbers, so they
    are sent unquoted.
    """
    key, sep, value = raw.partition("=")
    if not sep or not key:
        raise argparse.ArgumentTypeError(f"Expected key=value, got {raw!r}")

    if value in ("true", "false"):
        return key, value == "true"
    try:
        return key, int(value)
    except ValueError:
        return key, value


def parse_json(raw: str) -> Any:
    """Parse a JSON command-line argument."""
    try:
        return json.loads(raw)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"Invalid JSON: {e}")


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="firebatch",
        description="Batching client for the Firebase Realtime Database REST API",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    # Options shared by every database command
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--url",
        help="Database URL (default: FIREBATCH_DATABASE_URL)",
    )
    common.add_argument(
        "--secret",
        help="Database secret or OAuth2 access token (default: FIREBATCH_DATABASE_SECRET)",
    )
    common.add_argument(
        "--param",
        action="append",
        type=parse_query_parameter,
        default=[],
        metavar="KEY=VALUE",
        help="Query parameter (repeatable)",
    )
    common.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="WARNING",
        help="Logging level (default: WARNING)",
    )
    common.add_argument(
        "--log-json",
        action="store_true",
        help="Output logs in JSON format",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    get_parser = subparsers.add_parser("get", parents=[common], help="Read data at a path")
    get_parser.add_argument("path")

    for name, help_text in (
        ("set", "Write data at a path"),
        ("push", "Add a child with a generated key"),
        ("update", "Update children of a path"),
    ):
        write_parser = subparsers.add_parser(name, parents=[common], help=help_text)
        write_parser.add_argument("path")
        write_parser.add_argument("data", type=parse_json, help="JSON value to write")

    remove_parser = subparsers.add_parser("remove", parents=[common], help="Delete data at a path")
    remove_parser.add_argument("path")

    get_all_parser = subparsers.add_parser(
        "get-all",
        parents=[common],
        help="Run a JSON list of requests as one batch",
    )
    get_all_parser.add_argument(
        "requests_file",
        type=Path,
        help="JSON file holding a list of paths or request objects",
    )

    key_parser = subparsers.add_parser("key", help="Escape a string into a valid database key")
    key_parser.add_argument("value")

    return parser


def build_config(args: argparse.Namespace) -> ClientConfig:
    """Create configuration from the environment and command-line overrides."""
    overrides: Dict[str, Any] = {
        "log_level": args.log_level,
        "log_json": args.log_json,
    }
    if args.url:
        overrides["database_url"] = args.url
    if args.secret:
        overrides["database_secret"] = args.secret

    return ClientConfig(**overrides)


def _to_json(value: Any) -> Any:
    if isinstance(value, DatabaseError):
        return {"error": value.message}
    return value


async def run_command(args: argparse.Namespace, db: Database) -> Any:
    """Run one database command and return its result."""
    params = dict(args.param)

    if args.command == "get":
        return await db.get(args.path, params)
    if args.command == "set":
        return await db.set(args.path, args.data, params)
    if args.command == "push":
        return await db.push(args.path, args.data, params)
    if args.command == "update":
        return await db.update(args.path, args.data, params)
    if args.command == "remove":
        return await db.remove(args.path, params)
    if args.command == "get-all":
        requests: List[Any] = json.loads(args.requests_file.read_text(encoding="utf-8"))
        results = await db.get_all(requests)
        return [_to_json(result) for result in results]

    raise ValueError(f"Unknown command: {args.command}")


async def run_database_command(args: argparse.Namespace) -> int:
    """Run a database command and print its result as JSON."""
    config = build_config(args)
    set_config(config)

    async with Database.from_config(config) as db:
        try:
            result = await run_command(args, db)
        except DatabaseError as e:
            print(json.dumps({"error": e.message}), file=sys.stderr)
            return 1

    print(json.dumps(result, indent=2))
    return 0


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    if args.command == "key":
        print(encode_as_firebase_key(args.value))
        return

    # Setup logging
    setup_logging(args.log_level, args.log_json)

    try:
        exit_code = asyncio.run(run_database_command(args))
    except (FirebatchError, ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
