"""focusguard-lite CLI entry point.

Usage: focusguard-lite serve [--port 5353] [--upstream 1.1.1.1]
"""
import argparse
import asyncio
import logging
import sys
from pathlib import Path

from focusguard_lite.config import DEFAULT_CACHE_FILE, DEFAULT_CONFIG_FILE, Settings

log = logging.getLogger(__name__)


def _add_serve_parser(subparsers: argparse._SubParsersAction) -> None:
    p = subparsers.add_parser(
        "serve",
        help="Run the DNS sinkhole.",
    )
    p.add_argument(
        "--host", default="0.0.0.0",
        help="Listen address (default: 0.0.0.0)",
    )
    p.add_argument(
        "--port", type=int, default=53,
        help="Listen port (default: 53, needs root)",
    )
    p.add_argument(
        "--upstream", default="8.8.8.8",
        help="Upstream resolver address (default: 8.8.8.8)",
    )
    p.add_argument(
        "--upstream-port", type=int, default=53,
        help="Upstream resolver port (default: 53)",
    )
    p.add_argument(
        "--timeout", type=float, default=1.0,
        help="Upstream timeout in seconds (default: 1.0)",
    )
    p.add_argument(
        "--ttl", type=int, default=300,
        help="TTL of sinkhole answers in seconds (default: 300)",
    )
    p.add_argument(
        "--config", type=Path, default=Path(DEFAULT_CONFIG_FILE),
        help=f"Policy config file (default: {DEFAULT_CONFIG_FILE})",
    )
    p.add_argument(
        "--cache", type=Path, default=Path(DEFAULT_CACHE_FILE),
        help=f"Classification cache file (default: {DEFAULT_CACHE_FILE})",
    )
    p.add_argument(
        "--log-level", default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )


def _settings_from_args(args: argparse.Namespace) -> Settings:
    return Settings(
        listen_host=args.host,
        listen_port=args.port,
        upstream_host=args.upstream,
        upstream_port=args.upstream_port,
        upstream_timeout=args.timeout,
        sinkhole_ttl=args.ttl,
        config_path=args.config,
        cache_path=args.cache,
    )


async def _serve(settings: Settings) -> None:
    from focusguard_lite.interceptor.async_interceptor import AsyncDnsInterceptor
    from focusguard_lite.interceptor.classifier import DomainClassifier
    from focusguard_lite.interceptor.evaluator import AccessPolicyEvaluator
    from focusguard_lite.store import load_stores

    policy_store, classification_store = load_stores(
        settings.config_path, settings.cache_path
    )
    interceptor = AsyncDnsInterceptor(
        classifier=DomainClassifier(classification_store),
        evaluator=AccessPolicyEvaluator(policy_store),
        settings=settings,
    )
    await interceptor.start()
    try:
        await asyncio.Event().wait()
    finally:
        await interceptor.stop()


def _run_serve(args: argparse.Namespace) -> None:
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        settings = _settings_from_args(args)
    except ValueError as exc:
        log.error("Invalid settings: %s", exc)
        sys.exit(2)

    try:
        asyncio.run(_serve(settings))
    except PermissionError:
        log.error(
            "DNS server requires root privileges to bind to port %d",
            settings.listen_port,
        )
        sys.exit(1)
    except KeyboardInterrupt:
        log.info("Shutting down")


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="focusguard-lite",
        description="DNS sinkhole for distracting domains -- pure Python, zero infrastructure.",
    )
    subparsers = parser.add_subparsers(dest="command")

    _add_serve_parser(subparsers)

    args = parser.parse_args()
    if args.command is None:
        parser.print_help()
        sys.exit(0)

    if args.command == "serve":
        _run_serve(args)
