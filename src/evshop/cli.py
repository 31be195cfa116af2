"""Command line entry point."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from collections.abc import Sequence
from typing import Any

from aiohttp import web

from evshop.admin import ShopAdmin
from evshop.config import ShopConfig
from evshop.demo import seed_demo_data
from evshop.exceptions import ShopError
from evshop.state.ui import ViewState
from evshop.store.base import DocumentStore
from evshop.store.memory import MemoryDocumentStore
from evshop.sync import ShopSync
from evshop.web import create_app

_logger = logging.getLogger(__name__)


def build_store(config: ShopConfig) -> DocumentStore:
    """Create the configured document store backend."""
    if config.backend == "memory":
        store = MemoryDocumentStore()
        if config.demo_data:
            seed_demo_data(
                store,
                clients_collection=config.clients_collection,
                records_collection=config.records_collection,
            )
        return store

    from evshop.store.firestore import FirestoreDocumentStore

    return FirestoreDocumentStore.from_config(config)


def build_admin(config: ShopConfig) -> ShopAdmin:
    sync = ShopSync.from_config(build_store(config), config)
    return ShopAdmin(sync, state=ViewState(page_size=config.default_page_size))


async def _serve_app(config: ShopConfig) -> web.Application:
    # Built inside the running loop so store clients bind to it.
    return create_app(build_admin(config))


async def _dump(config: ShopConfig, *, query: str, timeout: float) -> dict[str, Any]:
    admin = build_admin(config)
    admin.sync.start()
    try:
        await admin.sync.wait_loaded(timeout)
        if query:
            admin.search(query)
        return admin.render().to_json()
    finally:
        admin.sync.stop()


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="evshop",
        description="Customer and maintenance admin for an EV service shop.",
    )
    parser.add_argument("--demo", action="store_true", help="Use the in-memory backend with sample data")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the JSON web surface")
    serve.add_argument("--host", help="Bind address (default: EVSHOP_HOST or 127.0.0.1)")
    serve.add_argument("--port", type=int, help="Bind port (default: EVSHOP_PORT or 8080)")

    dump = sub.add_parser("dump", help="Print the first page of customers as JSON")
    dump.add_argument("--query", default="", help="Search query to apply")
    dump.add_argument("--timeout", type=float, default=30.0, help="Seconds to wait for both collections")
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)

    overrides: dict[str, Any] = {}
    if args.demo:
        overrides.update(backend="memory", demo_data=True)
    if args.command == "serve":
        if args.host:
            overrides["host"] = args.host
        if args.port:
            overrides["port"] = args.port

    try:
        config = ShopConfig.from_env(**overrides)
    except ShopError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 2

    level = logging.DEBUG if args.verbose else getattr(logging, config.log_level.upper(), logging.INFO)
    logging.basicConfig(level=level, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    _logger.debug("Starting command=%s backend=%s", args.command, config.backend)

    if args.command == "serve":
        web.run_app(_serve_app(config), host=config.host, port=config.port)
        return 0

    try:
        view = asyncio.run(_dump(config, query=args.query, timeout=args.timeout))
    except TimeoutError:
        print("Timed out waiting for the collections to load", file=sys.stderr)
        return 1
    print(json.dumps(view, indent=2, ensure_ascii=False))
    return 0
