"""CLI entry point for launching a signal node.

Usage:
    signal-node
    signal-node --port 10000
    signal-node --config node_config.json --log-level DEBUG

Environment variables:
    SIGNAL_NODE_HOST:   Override listening address
    SIGNAL_NODE_PORT:   Override listening port
    PORT:               Listening port, if SIGNAL_NODE_PORT is unset
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import signal
import sys
from pathlib import Path
from typing import Any, Mapping

from signal_node.errors import ConfigError
from signal_node.node import SignalNode, SignalNodeConfig


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Launch a rendezvous signaling node (websocket)",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--config", "-c",
        help="Path to JSON config file",
    )
    parser.add_argument(
        "--host",
        help="Override listening address",
    )
    parser.add_argument(
        "--port", "-p",
        type=int,
        help="Override listening port",
    )
    parser.add_argument(
        "--log-level", "-l",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (default: INFO)",
    )
    return parser.parse_args(argv)


def env_overrides(environ: Mapping[str, str]) -> dict[str, Any]:
    """Config overrides taken from environment variables."""
    overrides: dict[str, Any] = {}
    if environ.get("SIGNAL_NODE_HOST"):
        overrides["host"] = environ["SIGNAL_NODE_HOST"]
    port = environ.get("SIGNAL_NODE_PORT") or environ.get("PORT")
    if port:
        try:
            overrides["port"] = int(port)
        except ValueError:
            raise ConfigError(f"invalid port in environment: {port!r}") from None
    return overrides


def load_config(
    config_path: str | None,
    overrides: dict[str, Any],
    environ: Mapping[str, str] | None = None,
) -> SignalNodeConfig:
    """Build the node config: defaults, then file, then env, then CLI."""
    raw: dict[str, Any] = {}
    if config_path:
        path = Path(config_path).resolve()
        if not path.exists():
            raise ConfigError(f"config file not found: {path}")
        try:
            with open(path) as f:
                raw = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigError(f"config file is not valid JSON: {path}: {e}") from e
        if not isinstance(raw, dict):
            raise ConfigError(f"config file must hold a JSON object: {path}")

    raw.update(env_overrides(os.environ if environ is None else environ))
    raw.update({k: v for k, v in overrides.items() if v is not None})
    return SignalNodeConfig.from_dict(raw)


async def run_node(node: SignalNode) -> None:
    """Start the node and run until interrupted."""
    await node.start()

    # Handle graceful shutdown
    loop = asyncio.get_running_loop()
    stop_event = asyncio.Event()

    def handle_signal() -> None:
        print("\nShutting down...")
        stop_event.set()

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, handle_signal)

    await stop_event.wait()
    await node.stop()


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)

    # Setup logging
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    try:
        config = load_config(args.config, {"host": args.host, "port": args.port})
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    print("=" * 60)
    print("  Signal Node")
    print("=" * 60)
    if args.config:
        print(f"  Config loaded: {args.config}")
    print(f"  Listening: {config.host}:{config.port}")
    print(f"  Eviction: registry >= {config.min_registry_size}, "
          f"window {config.stale_id_window} ids")
    print("=" * 60 + "\n")

    asyncio.run(run_node(SignalNode(config)))


if __name__ == "__main__":
    main()
