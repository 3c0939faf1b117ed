"""
Command-line interface for the MultiversX relayer.

Provides commands for managing the whitelist and inspecting ledger state.
"""

import argparse
import asyncio
import logging
import sys
from datetime import datetime
from typing import Optional

import structlog

from relayer import __version__
from relayer.config import NetworkType, RelayerConfig, set_config
from relayer.errors import ConfirmationTimeout, RelayerError
from relayer.node.gateway import GatewayAdapter
from relayer.node.interface import NodeConnectionError
from relayer.state.database import Database
from relayer.state.webhook import WebhookNotifier
from relayer.tx.poller import ConfirmationPoller


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


def positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1: {value}")
    return number


def non_negative_float(value: str) -> float:
    number = float(value)
    if number < 0:
        raise argparse.ArgumentTypeError(f"must not be negative: {value}")
    return number


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="relayer",
        description="Transfer relayer for the MultiversX network",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "--network",
        choices=[n.value for n in NetworkType],
        default=None,
        help="MultiversX network (default: RELAYER_NETWORK, else mainnet)",
    )
    parser.add_argument(
        "--database-url",
        help="Database URL for the whitelist store",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="WARNING",
        help="Logging level (default: WARNING)",
    )
    parser.add_argument(
        "--log-json",
        action="store_true",
        help="Output logs in JSON format",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # Whitelist management
    whitelist_parser = subparsers.add_parser("whitelist", help="Manage fee-exempt wallets")
    whitelist_sub = whitelist_parser.add_subparsers(dest="action", required=True)

    add_parser = whitelist_sub.add_parser("add", help="Add a wallet to the whitelist")
    add_parser.add_argument("address", help="Wallet address (erd1...)")
    add_parser.add_argument("--label", required=True, help="Label for the entry")
    add_parser.add_argument(
        "--start",
        type=datetime.fromisoformat,
        help="Whitelist start date (ISO 8601)",
    )

    remove_parser = whitelist_sub.add_parser("remove", help="Remove a wallet from the whitelist")
    remove_parser.add_argument("address", help="Wallet address (erd1...)")

    whitelist_sub.add_parser("list", help="List whitelisted wallets")

    # User activity
    users_parser = subparsers.add_parser("users", help="Show served wallets")
    users_parser.add_argument("--address", help="Only show activity of this wallet")

    # Ledger queries
    nonce_parser = subparsers.add_parser("nonce", help="Show an account's ledger nonce")
    nonce_parser.add_argument("address", help="Account address (erd1...)")

    status_parser = subparsers.add_parser("status", help="Wait for a transaction to settle")
    status_parser.add_argument("tx_hash", help="Transaction hash")
    status_parser.add_argument(
        "--retries",
        type=positive_int,
        default=None,
        help="Status checks before giving up (default: from config)",
    )
    status_parser.add_argument(
        "--interval",
        type=non_negative_float,
        default=None,
        help="Seconds between status checks (default: from config)",
    )

    return parser


def build_config(args: argparse.Namespace) -> RelayerConfig:
    """Create configuration from the environment and command-line overrides."""
    overrides = {}
    if args.network:
        overrides["network"] = NetworkType(args.network)
    if args.database_url:
        overrides["database_url"] = args.database_url
    overrides["log_level"] = args.log_level
    overrides["log_json"] = args.log_json
    return RelayerConfig(**overrides)


async def manage_whitelist(args: argparse.Namespace, config: RelayerConfig) -> None:
    """Add, remove or list whitelist entries."""
    notifier = WebhookNotifier(config=config) if config.whitelist_webhook_url else None
    db = Database(config, notifier=notifier)
    await db.connect()

    try:
        if args.action == "add":
            await db.add_to_whitelist(args.address, args.label, args.start)
            print(f"Wallet {args.address} added to the whitelist.")
        elif args.action == "remove":
            await db.remove_from_whitelist(args.address)
            print(f"Wallet {args.address} removed from the whitelist.")
        else:
            entries = await db.load_whitelist()
            if not entries:
                print("Whitelist is empty.")
            for entry in entries:
                start = entry.whitelist_start.isoformat() if entry.whitelist_start else "-"
                print(f"  {entry.wallet_address}  {entry.label}  (since {start})")
    finally:
        await db.disconnect()


async def show_users(args: argparse.Namespace, config: RelayerConfig) -> None:
    """Print the user activity log."""
    db = Database(config)
    await db.connect()

    try:
        records = await db.load_user_activity(args.address)
        if not records:
            print("No user activity recorded.")
        for record in records:
            print(f"  {record.authorized_at.isoformat()}  {record.wallet_address}")
    finally:
        await db.disconnect()


async def show_nonce(args: argparse.Namespace, config: RelayerConfig) -> None:
    """Print an account's ledger nonce."""
    node = GatewayAdapter(config)
    await node.connect()

    try:
        nonce = await node.get_account_nonce(args.address)
        print(f"Nonce of {args.address}: {nonce}")
    finally:
        await node.disconnect()


async def wait_status(
    args: argparse.Namespace,
    config: RelayerConfig,
    node: Optional[GatewayAdapter] = None,
) -> str:
    """Poll a transaction until it settles and print its status."""
    node = node or GatewayAdapter(config)
    await node.connect()

    poller = ConfirmationPoller(
        node,
        max_retries=args.retries,
        interval=args.interval,
        config=config,
    )

    try:
        result = await poller.wait(args.tx_hash)
    except ConfirmationTimeout as e:
        print(f"Transaction {args.tx_hash} still pending after {e.ticks} checks.")
        return "unknown"
    finally:
        await node.disconnect()

    print(f"Transaction {args.tx_hash}: {result.status.value}")
    return result.status.value


def main() -> None:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    setup_logging(args.log_level, args.log_json)

    config = build_config(args)
    set_config(config)

    commands = {
        "whitelist": manage_whitelist,
        "users": show_users,
        "nonce": show_nonce,
        "status": wait_status,
    }

    try:
        asyncio.run(commands[args.command](args, config))
    except (RelayerError, NodeConnectionError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
