"""CLI entry point for shareasale-client.

Handles argument parsing and dispatches to the list-actions, call, and sign
subcommands.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import httpx

from shareasale_client.actions import all_actions
from shareasale_client.client import ShareASaleClient
from shareasale_client.config_loader import load_client_config
from shareasale_client.errors import ShareASaleError
from shareasale_client.models import ActionCategory
from shareasale_client.signer import canonical_string, rfc1123_timestamp, sign


def positive_float(value: str) -> float:
    """Parse and validate a positive float value.

    Raises:
        argparse.ArgumentTypeError: If value is not a positive number.
    """
    try:
        result = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid number '{value}'.")
    if result <= 0:
        raise argparse.ArgumentTypeError(f"Value must be positive, got {result}.")
    return result


def parse_param(value: str) -> tuple[str, str]:
    """Parse KEY=VALUE format. The value may itself contain '='.

    Raises:
        argparse.ArgumentTypeError: If format is invalid.
    """
    if "=" not in value:
        raise argparse.ArgumentTypeError(
            f"Invalid format '{value}'. Expected KEY=VALUE (e.g., 'dateStart=10/01/2026')"
        )
    key, param_value = value.split("=", 1)
    if not key:
        raise argparse.ArgumentTypeError(f"Invalid format '{value}'. Key cannot be empty.")
    return (key, param_value)


@dataclass
class ListActionsArgs:
    """Parsed arguments for list-actions mode."""

    category: ActionCategory | None = None


@dataclass
class CallArgs:
    """Parsed arguments for call mode."""

    action: str
    config: Path
    params: dict[str, str] = field(default_factory=dict)
    timeout: float | None = None
    strict_xml: bool = False
    show_request: bool = False
    verbose: bool = False


@dataclass
class SignArgs:
    """Parsed arguments for sign mode."""

    token: str
    secret_key: str
    action: str
    timestamp: str | None = None


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with list-actions, call, and sign subcommands."""
    parser = argparse.ArgumentParser(
        prog="shareasale-client",
        description="Call ShareASale merchant API actions with signed requests.",
    )

    subparsers = parser.add_subparsers(dest="command", required=True, help="Mode")

    # List-actions subcommand
    list_parser = subparsers.add_parser(
        "list-actions",
        help="List the known actions with their category and XML record tag",
    )
    list_parser.add_argument(
        "--category",
        choices=[c.value for c in ActionCategory],
        default=None,
        help="Only list actions from this catalog",
    )

    # Call subcommand
    call_parser = subparsers.add_parser(
        "call",
        help="Invoke an action and print the normalized result",
    )
    call_parser.add_argument(
        "action",
        help="Action name (case-insensitive), e.g. activitysummary",
    )
    call_parser.add_argument(
        "--config",
        type=Path,
        required=True,
        help="Path to client config YAML (supports ${ENV_VAR} substitution)",
    )
    call_parser.add_argument(
        "--param",
        type=parse_param,
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Extra query parameter (can be repeated). Overrides built-in parameters.",
    )
    call_parser.add_argument(
        "--timeout",
        type=positive_float,
        default=None,
        help="Request timeout in seconds (overrides the config file)",
    )
    call_parser.add_argument(
        "--strict-xml",
        action="store_true",
        help="Fail on malformed XML instead of printing an empty result",
    )
    call_parser.add_argument(
        "--show-request",
        action="store_true",
        help="Print the signed request (timestamp, hash, query) to stderr",
    )
    call_parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    # Sign subcommand
    sign_parser = subparsers.add_parser(
        "sign",
        help="Print the canonical signing string and hash for an action",
    )
    sign_parser.add_argument("--token", required=True, help="API token")
    sign_parser.add_argument("--secret-key", required=True, help="API secret key")
    sign_parser.add_argument("--action", required=True, help="Action name as sent on the wire")
    sign_parser.add_argument(
        "--timestamp",
        default=None,
        help="RFC 1123 timestamp to sign (default: now, UTC)",
    )

    return parser


def _build_params(param_list: list[tuple[str, str]]) -> dict[str, str]:
    """Build the query parameter dict, warning on duplicates."""
    result: dict[str, str] = {}
    for key, value in param_list:
        if key in result:
            print(
                f"Warning: --param '{key}' specified multiple times, using last value ({value})",
                file=sys.stderr,
            )
        result[key] = value
    return result


def parse_list_actions_args(namespace: argparse.Namespace) -> ListActionsArgs:
    """Convert parsed namespace to ListActionsArgs dataclass."""
    category = ActionCategory(namespace.category) if namespace.category else None
    return ListActionsArgs(category=category)


def parse_call_args(namespace: argparse.Namespace) -> CallArgs:
    """Convert parsed namespace to CallArgs dataclass."""
    return CallArgs(
        action=namespace.action,
        config=namespace.config,
        params=_build_params(namespace.param or []),
        timeout=namespace.timeout,
        strict_xml=namespace.strict_xml,
        show_request=namespace.show_request,
        verbose=namespace.verbose,
    )


def parse_sign_args(namespace: argparse.Namespace) -> SignArgs:
    """Convert parsed namespace to SignArgs dataclass."""
    return SignArgs(
        token=namespace.token,
        secret_key=namespace.secret_key,
        action=namespace.action,
        timestamp=namespace.timestamp,
    )


def parse_args(args: list[str] | None = None) -> ListActionsArgs | CallArgs | SignArgs:
    """Parse command-line arguments and return typed args dataclass.

    Raises:
        SystemExit: If arguments are invalid (argparse behavior).
    """
    parser = build_parser()
    namespace = parser.parse_args(args)

    if namespace.command == "list-actions":
        return parse_list_actions_args(namespace)
    elif namespace.command == "call":
        return parse_call_args(namespace)
    elif namespace.command == "sign":
        return parse_sign_args(namespace)
    else:
        # Should not happen with required=True on subparsers
        parser.error(f"Unknown command: {namespace.command}")


def dispatch(parsed: ListActionsArgs | CallArgs | SignArgs) -> int:
    """Run the subcommand for already-parsed arguments."""
    if isinstance(parsed, ListActionsArgs):
        return run_list_actions(parsed)
    elif isinstance(parsed, CallArgs):
        return run_call(parsed)
    else:
        return run_sign(parsed)


def main() -> int:
    """Main entry point."""
    try:
        return dispatch(parse_args())
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        return 1


def run_list_actions(args: ListActionsArgs) -> int:
    """Print the action catalogs."""
    current: ActionCategory | None = None
    for descriptor in all_actions():
        if args.category is not None and descriptor.category != args.category:
            continue
        if descriptor.category != current:
            if current is not None:
                print()
            current = descriptor.category
            print(f"{current.value}:")
        tag = descriptor.record_tag or "(text)"
        print(f"  {descriptor.name:<24} {tag}")
    return 0


def run_call(args: CallArgs, http_transport: httpx.BaseTransport | None = None) -> int:
    """Invoke one action and print its result to stdout."""
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    try:
        config = load_client_config(args.config)
    except ShareASaleError as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        return 1

    overrides: dict[str, Any] = {}
    if args.timeout is not None:
        overrides["timeout"] = args.timeout
    if args.strict_xml:
        overrides["strict_xml"] = True
    if overrides:
        config = config.model_copy(update=overrides)

    with ShareASaleClient.from_config(config, http_transport=http_transport) as client:
        try:
            result = client.invoke_detailed(args.action, args.params)
        except ShareASaleError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1

    if args.show_request:
        print(f"Action:    {result.context.action}", file=sys.stderr)
        print(f"URL:       {result.context.url}", file=sys.stderr)
        print(f"Timestamp: {result.context.timestamp}", file=sys.stderr)
        print(f"Signature: {result.context.signature}", file=sys.stderr)
        print(f"Query:     {json.dumps(result.context.query)}", file=sys.stderr)

    for message in result.parse_errors:
        print(f"Warning: could not parse XML response: {message}", file=sys.stderr)

    if isinstance(result.records, str):
        print(result.records)
    else:
        print(json.dumps(result.records, indent=2))
    return 0


def run_sign(args: SignArgs) -> int:
    """Print the timestamp, canonical signing string, and hash."""
    timestamp = args.timestamp or rfc1123_timestamp()
    print(f"Timestamp: {timestamp}")
    print(f"String:    {canonical_string(args.token, args.secret_key, args.action, timestamp)}")
    print(f"Hash:      {sign(args.token, args.secret_key, args.action, timestamp)}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
