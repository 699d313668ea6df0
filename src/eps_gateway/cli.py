"""
Command-line interface for exercising the EPS gateway APIs.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Iterable, Sequence, Tuple

import requests

from .api import (
    ConfigError,
    GatewayError,
    create_gateway_client,
    generate_transaction_id,
    load_gateway_config,
)


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(message)s",
    )


def _env_override(value: str) -> Tuple[str, str]:
    if "=" not in value:
        raise argparse.ArgumentTypeError("Overrides must look like KEY=VALUE")
    key, val = value.split("=", 1)
    key = key.strip()
    if not key:
        raise argparse.ArgumentTypeError("Override key must not be empty")
    return key, val


def _collect_overrides(pairs: Iterable[Tuple[str, str]]) -> dict[str, str]:
    return {key: value for key, value in pairs}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="eps-gateway",
        description="Initialize and verify payments on the EPS gateway",
    )
    parser.add_argument(
        "--env-file",
        default=".env",
        help="Path to the .env file containing EPS_* settings (default: .env)",
    )
    parser.add_argument(
        "--set",
        action="append",
        type=_env_override,
        metavar="KEY=VALUE",
        default=None,
        help="Override an environment variable without editing the .env file",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Python logging level (default: INFO)",
    )

    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser(
        "transaction-id",
        help="Print a new 17 digit merchant transaction id",
    )

    initialize = commands.add_parser(
        "initialize",
        help="Create a payment session and print its redirect URL",
    )
    initialize.add_argument(
        "params",
        help="JSON file with the payment parameters ('-' reads stdin)",
    )

    verify = commands.add_parser(
        "verify",
        help="Print the status of a transaction",
    )
    ids = verify.add_mutually_exclusive_group(required=True)
    ids.add_argument("--merchant-transaction-id")
    ids.add_argument("--eps-transaction-id")
    return parser


def _read_params(source: str) -> dict:
    if source == "-":
        return json.load(sys.stdin)
    with open(source, encoding="utf-8") as handle:
        return json.load(handle)


def run_cli(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "transaction-id":
        print(generate_transaction_id())
        return 0

    _configure_logging(args.log_level)
    overrides = _collect_overrides(args.set or ())

    try:
        config = load_gateway_config(env_file=args.env_file, overrides=overrides)
    except ConfigError as exc:
        logging.error("Invalid configuration: %s", exc)
        return 1

    client = create_gateway_client(config=config, session=requests.Session())
    logging.info("Using EPS configuration %s", config.describe())

    if args.command == "initialize":
        return _run_initialize(client, args.params)
    return _run_verify(client, args.merchant_transaction_id, args.eps_transaction_id)


def _run_initialize(client, source: str) -> int:
    try:
        params = _read_params(source)
    except (OSError, ValueError) as exc:
        logging.error("Could not read payment parameters: %s", exc)
        return 1

    try:
        result = client.initialize_payment(params)
    except GatewayError as exc:
        logging.error("Payment initialization failed: %s", exc)
        return 1

    logging.info("EPS transaction %s created", result.transaction_id)
    print(result.redirect_url)
    return 0


def _run_verify(client, merchant_transaction_id, eps_transaction_id) -> int:
    try:
        result = client.verify_payment(
            merchant_transaction_id=merchant_transaction_id,
            eps_transaction_id=eps_transaction_id,
        )
    except GatewayError as exc:
        logging.error("Verification failed: %s", exc)
        return 1

    print(json.dumps(result.raw, indent=2, sort_keys=True))
    if not result.is_successful:
        logging.error("Transaction status is %s", result.status)
        return 1
    return 0


def main() -> None:
    sys.exit(run_cli())


if __name__ == "__main__":
    main()
