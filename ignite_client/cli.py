#!/usr/bin/env python3
"""
Ignite Client Command Line

Runs a single cache operation against an Ignite node.

Usage:
    ignite-client list                          # List cache names
    ignite-client create people                 # Create a cache
    ignite-client get-or-create people          # Create unless it exists
    ignite-client destroy people                # Destroy a cache
    ignite-client put people 1 alice --key-type long
    ignite-client get people 1 --key-type long --value-type string
    ignite-client put counters hits 0xFFFFFFFF --value-type uint
    ignite-client --host 10.0.0.5 --port 10800 --debug list

Environment Variables:
    IGNITE_HOST         - Server host
    IGNITE_PORT         - Server port
    IGNITE_USERNAME     - Handshake username
    IGNITE_PASSWORD     - Handshake password
    IGNITE_TIMEOUT      - Socket timeout in seconds (0 disables)
"""

import argparse
import logging
import sys
from typing import List, Optional

from .cache.cache import IgniteCache
from .client import IgniteClient
from .config.settings import settings
from .errors import IgniteError, ValidationError
from .protocol.types import TypedValue, TypeTag

TYPE_NAMES = {
    "byte": TypeTag.BYTE,
    "short": TypeTag.SHORT,
    "int": TypeTag.INT,
    "long": TypeTag.LONG,
    "float": TypeTag.FLOAT,
    "double": TypeTag.DOUBLE,
    "char": TypeTag.CHAR,
    "bool": TypeTag.BOOL,
    "string": TypeTag.STRING,
}

UNSIGNED_TYPE_NAMES = {
    "ubyte": TypeTag.BYTE,
    "ushort": TypeTag.SHORT,
    "uint": TypeTag.INT,
    "ulong": TypeTag.LONG,
}

TYPE_CHOICES = {**TYPE_NAMES, **UNSIGNED_TYPE_NAMES}


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="ignite-client",
        description="Ignite Client: run a cache operation against an Ignite node",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    parser.add_argument("--host", type=str, default=settings.HOST, help="Server host")
    parser.add_argument("--port", type=int, default=settings.PORT, help="Server port")
    parser.add_argument("--username", type=str, default=settings.USERNAME, help="Handshake username")
    parser.add_argument("--password", type=str, default=settings.PASSWORD, help="Handshake password")
    parser.add_argument(
        "--timeout",
        type=float,
        default=settings.TIMEOUT,
        help="Socket timeout in seconds (0 disables)",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")

    commands = parser.add_subparsers(dest="command", required=True)
    commands.add_parser("list", help="List cache names")

    for name, help_text in (
        ("create", "Create a cache"),
        ("get-or-create", "Create a cache unless it exists"),
        ("destroy", "Destroy a cache"),
    ):
        sub = commands.add_parser(name, help=help_text)
        sub.add_argument("cache", help="Cache name")

    get = commands.add_parser("get", help="Read a value")
    get.add_argument("cache", help="Cache name")
    get.add_argument("key", help="Key")
    get.add_argument("--key-type", choices=TYPE_CHOICES, default="string")
    get.add_argument("--value-type", choices=TYPE_CHOICES, default=None,
                     help="Expected value type (any if omitted)")

    put = commands.add_parser("put", help="Store a value")
    put.add_argument("cache", help="Cache name")
    put.add_argument("key", help="Key")
    put.add_argument("value", help="Value")
    put.add_argument("--key-type", choices=TYPE_CHOICES, default="string")
    put.add_argument("--value-type", choices=TYPE_CHOICES, default="string")

    return parser.parse_args(argv)


def setup_logging(debug: bool = False) -> None:
    """Configure logging based on debug flag."""
    level = logging.DEBUG if debug else getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stderr),
        ]
    )


def parse_value(text: str, type_name: str) -> TypedValue:
    """
    Convert a command line argument to a TypedValue.

    Examples:
        >>> parse_value("42", "short")
        TypedValue(tag=<TypeTag.SHORT: 2>, value=42, unsigned=False)
        >>> parse_value("yes", "bool").value
        True
    """
    if type_name in UNSIGNED_TYPE_NAMES:
        try:
            return TypedValue(UNSIGNED_TYPE_NAMES[type_name], int(text, 0), unsigned=True)
        except ValueError:
            raise ValidationError(f"{text!r} is not a valid {type_name}") from None

    tag = TYPE_NAMES[type_name]
    try:
        if tag in (TypeTag.BYTE, TypeTag.SHORT, TypeTag.INT, TypeTag.LONG):
            return TypedValue(tag, int(text, 0))
        if tag in (TypeTag.FLOAT, TypeTag.DOUBLE):
            return TypedValue(tag, float(text))
    except ValueError:
        raise ValidationError(f"{text!r} is not a valid {type_name}") from None
    if tag == TypeTag.BOOL:
        lowered = text.lower()
        if lowered in ("1", "true", "yes", "on"):
            return TypedValue(tag, True)
        if lowered in ("0", "false", "no", "off"):
            return TypedValue(tag, False)
        raise ValidationError(f"{text!r} is not a valid bool")
    return TypedValue(tag, text)


def run(args: argparse.Namespace) -> None:
    """Execute the parsed command and print its result."""
    client = IgniteClient(
        host=args.host,
        port=args.port,
        username=args.username,
        password=args.password,
        timeout=args.timeout,
    )

    with client:
        if args.command == "list":
            for name in client.get_cache_names():
                print(name)
        elif args.command == "create":
            client.create_cache(args.cache)
            print(f"created {args.cache}")
        elif args.command == "get-or-create":
            client.get_or_create_cache(args.cache)
            print(f"ready {args.cache}")
        elif args.command == "destroy":
            client.destroy_cache(args.cache)
            print(f"destroyed {args.cache}")
        elif args.command == "put":
            cache = client.get_or_create_cache(args.cache)
            cache.put(parse_value(args.key, args.key_type), parse_value(args.value, args.value_type))
            print("stored")
        elif args.command == "get":
            cache = IgniteCache(client, args.cache)
            expected = TYPE_CHOICES.get(args.value_type)
            unsigned = args.value_type in UNSIGNED_TYPE_NAMES
            value = cache.get(parse_value(args.key, args.key_type), expected, unsigned)
            print("(null)" if value is None else value)


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point for the command line client."""
    args = parse_args(argv)
    setup_logging(debug=args.debug or settings.DEBUG)
    logger = logging.getLogger(__name__)

    try:
        run(args)
    except IgniteError as e:
        logger.debug("Command failed", exc_info=True)
        print(f"error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
