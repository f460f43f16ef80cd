#!/usr/bin/env python3
"""
Command-line interface for the subscriber webhook service.

Usage:
    python cli.py [command] [options]

Commands:
    serve       Start the API server
    list        Print subscribers from the data directory
    add         Add a subscriber to a product
    remove      Remove a subscriber from a product
    verify      Check whether an email is subscribed
    test        Run the test suite

The data commands work on the files under DATA_DIR directly; they are
meant for operators with access to the host and skip the admin key.

Examples:
    python cli.py serve --reload
    python cli.py list --product cemyz
    python cli.py add cemyz alice@example.com
    python cli.py verify alice@example.com
"""

import argparse
import subprocess
import sys
from typing import Optional

from subscribers.admin import SubscriberAdmin
from subscribers.config import Settings, get_settings
from subscribers.errors import SubscriberServiceError
from subscribers.registry import build_registry
from subscribers.storage import JsonFileStorage
from subscribers.store import SubscriberStore, normalize_email


def build_admin(settings: Settings) -> SubscriberAdmin:
    registry = build_registry(settings)
    store = SubscriberStore(JsonFileStorage(settings.data_dir, settings.single_product))
    return SubscriberAdmin(settings, registry, store)


def run_list(admin: SubscriberAdmin, product: Optional[str]) -> None:
    """Print subscribers for one product, or for every registered product."""
    keys = [product] if product else admin.registry.keys()
    for key in keys:
        emails = admin.store.load(key)
        print(f"{key}: {len(emails)} subscribers")
        for email in emails:
            print(f"  {email}")


def run_change(admin: SubscriberAdmin, action: str, product: str, email: str) -> None:
    email = normalize_email(email)
    if action == "add":
        changed = admin.store.add(product, email)
        print(f"Added {email} to {product}" if changed else f"{email} already subscribed to {product}")
    else:
        changed = admin.store.remove(product, email)
        print(f"Removed {email} from {product}" if changed else f"{email} not subscribed to {product}")


def run_verify(admin: SubscriberAdmin, email: str, product: Optional[str]) -> None:
    result = admin.verify(email, product)
    if result.subscribed:
        print(f"{result.email}: {result.status} ({result.product})")
    else:
        print(f"{result.email}: {result.status}")


def run_tests(args: list[str]) -> None:
    """Run the test suite."""
    cmd = [sys.executable, "-m", "pytest"] + args
    subprocess.run(cmd)


def run_server(host: str, port: int, reload: bool) -> None:
    """Start the API server."""
    cmd = [sys.executable, "-m", "uvicorn", "api.main:app", f"--host={host}", f"--port={port}"]
    if reload:
        cmd.append("--reload")

    print(f"Starting server at http://{host}:{port}")
    print(f"API docs available at http://{host}:{port}/docs")
    subprocess.run(cmd)


def main(argv: Optional[list[str]] = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Gumroad subscriber webhook CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s serve --port 3000
  %(prog)s list
  %(prog)s add cemyz alice@example.com
  %(prog)s remove cemyz alice@example.com
  %(prog)s verify alice@example.com --product cemyz
  %(prog)s test -v
        """,
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Start the API server")
    serve_parser.add_argument("--host", default="0.0.0.0", help="Host to bind to")
    serve_parser.add_argument("--port", type=int, default=None, help="Port to bind to (default: $PORT)")
    serve_parser.add_argument("--reload", action="store_true", help="Enable auto-reload")

    # Data commands
    list_parser = subparsers.add_parser("list", help="Print subscribers")
    list_parser.add_argument("--product", help="Only this product")

    for action in ("add", "remove"):
        change_parser = subparsers.add_parser(action, help=f"{action.capitalize()} a subscriber")
        change_parser.add_argument("product", help="Product permalink")
        change_parser.add_argument("email", help="Subscriber email")

    verify_parser = subparsers.add_parser("verify", help="Check a subscriber")
    verify_parser.add_argument("email", help="Subscriber email")
    verify_parser.add_argument("--product", help="Only check this product")

    # Test command
    test_parser = subparsers.add_parser("test", help="Run the test suite")
    test_parser.add_argument(
        "pytest_args",
        nargs="*",
        default=[],
        help="Arguments to pass to pytest",
    )

    args = parser.parse_args(argv)

    if args.command == "test":
        run_tests(args.pytest_args)
        return 0
    if args.command is None:
        parser.print_help()
        return 0

    settings = get_settings()

    if args.command == "serve":
        run_server(args.host, args.port or settings.port, args.reload)
        return 0

    admin = build_admin(settings)
    try:
        if args.command == "list":
            run_list(admin, args.product)
        elif args.command in ("add", "remove"):
            run_change(admin, args.command, args.product, args.email)
        elif args.command == "verify":
            run_verify(admin, args.email, args.product)
    except SubscriberServiceError as exc:
        print(f"Error: {exc.detail}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
