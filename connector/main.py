"""Command-line entry point for the Jarvis connector.

Lists or registers checkers, or runs the connector service until
SIGINT/SIGTERM.

Usage:
    jarvis-connector --gerrit https://review.example.com --auth_file auth.txt --list
    jarvis-connector --gerrit ... --auth_file ... --register --repo infra/app --prefix lint
    jarvis-connector --gerrit ... --auth_file ... --event_listener http://el.tekton:8080
"""

import argparse
import json
import logging
import signal
import sys
import threading
from pathlib import Path
from typing import Optional, Sequence

import httpx
from dotenv import load_dotenv
from pydantic import ValidationError

from config.settings import Settings, get_settings
from connector.checkers import CheckerRegistry
from connector.errors import ConfigurationError, ConnectorError
from connector.gerrit.auth import load_basic_auth
from connector.gerrit.client import GerritClient
from connector.gerrit.serialization import checker_to_dict
from connector.pipeline import PipelineTriggerClient
from connector.service import ConnectorService
from connector.utils.logging import setup_logging

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="jarvis-connector",
        description="Bridge Gerrit pending checks and submissions to a Tekton pipeline trigger",
    )
    parser.add_argument("--gerrit", default=None, help="URL to gerrit host")
    parser.add_argument(
        "--event_listener", "--event-listener", dest="event_listener", default=None,
        help="URL of the Tekton EventListener",
    )
    parser.add_argument(
        "--auth_file", "--auth-file", dest="auth_file", default=None,
        help="file containing user:password",
    )
    parser.add_argument("--register", action="store_true", help="Register the connector with gerrit")
    parser.add_argument("--update", action="store_true", help="Update an existing check")
    parser.add_argument("--list", action="store_true", help="List the checkers of our scheme")
    parser.add_argument(
        "--blocking", action=argparse.BooleanOptionalAction, default=True,
        help="check should block submission in event of failure (default: true)",
    )
    parser.add_argument("--repo", default="", help="the repository (project) name to apply the checker to")
    parser.add_argument(
        "--prefix", default="",
        help="the prefix that the checker should use for jobs, also used as the job name in gerrit",
    )
    parser.add_argument("--config", type=Path, default=None, help="YAML settings file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def load_settings(args: argparse.Namespace) -> Settings:
    """Load settings and apply command-line overrides."""
    settings = Settings.from_yaml(args.config) if args.config else get_settings()

    gerrit = settings.gerrit.model_copy(update={
        k: v for k, v in (("url", args.gerrit), ("auth_file", args.auth_file)) if v
    })
    pipeline = settings.pipeline
    if args.event_listener:
        pipeline = pipeline.model_copy(update={"event_listener_url": args.event_listener})

    return settings.model_copy(update={"gerrit": gerrit, "pipeline": pipeline})


def _require_url(value: str, flag: str) -> str:
    if not value:
        raise ConfigurationError(f"must set {flag}")
    try:
        url = httpx.URL(value)
    except httpx.InvalidURL as exc:
        raise ConfigurationError(f"{flag}: invalid URL {value!r}: {exc}") from exc
    if url.scheme not in ("http", "https") or not url.host:
        raise ConfigurationError(f"{flag}: invalid URL {value!r}")
    return value


def build_gerrit_client(settings: Settings) -> GerritClient:
    """Create the Gerrit client from settings.

    Raises:
        ConfigurationError: If the URL or credentials are missing or invalid
    """
    url = _require_url(settings.gerrit.url, "--gerrit")
    if not settings.gerrit.auth_file:
        raise ConfigurationError("must set --auth_file")

    return GerritClient(
        url,
        auth=load_basic_auth(settings.gerrit.auth_file),
        timeout=settings.gerrit.timeout,
        user_agent=settings.gerrit.user_agent,
        debug=settings.gerrit.debug,
    )


def list_checkers(registry: CheckerRegistry) -> None:
    """Print every checker of our scheme to stdout, one JSON object per line."""
    for checker in registry.list_checkers():
        sys.stdout.write(json.dumps(checker_to_dict(checker)) + "\n")
    sys.stdout.flush()


def register_checker(registry: CheckerRegistry, args: argparse.Namespace) -> None:
    """Create or update the checker described by ``--repo`` and ``--prefix``."""
    if not args.repo:
        raise ConfigurationError("must set --repo")
    if not args.prefix:
        raise ConfigurationError("must set --prefix")

    checker = registry.post_checker(args.repo, args.prefix, update=args.update, blocking=args.blocking)
    logger.info("%s checker result: %s", "UpdateChecker" if args.update else "CreateChecker",
                json.dumps(checker_to_dict(checker)))


def serve(gerrit: GerritClient, settings: Settings) -> None:
    """Run the connector service until SIGINT/SIGTERM."""
    url = _require_url(settings.pipeline.event_listener_url, "--event_listener")
    trigger = PipelineTriggerClient(url, timeout=settings.pipeline.timeout)

    service = ConnectorService(gerrit, trigger, settings.connector)
    service.start()

    # Block until signal
    shutdown_event = threading.Event()

    def _signal_handler(signum, frame):
        sig_name = signal.Signals(signum).name
        logger.info("Received %s, shutting down", sig_name)
        shutdown_event.set()

    signal.signal(signal.SIGINT, _signal_handler)
    signal.signal(signal.SIGTERM, _signal_handler)

    logger.info("Jarvis connector running. Press Ctrl+C to stop.")
    shutdown_event.wait()

    # Clean shutdown
    service.stop()
    trigger.close()


def run(argv: Optional[Sequence[str]] = None) -> int:
    """Run the CLI and return the process exit code."""
    load_dotenv()
    args = parse_args(argv)
    try:
        settings = load_settings(args)
    except ValidationError as exc:
        logger.error("Invalid settings: %s", exc)
        return 1

    setup_logging(
        level="DEBUG" if args.verbose else settings.logging.level,
        format=settings.logging.format,
        file=settings.logging.file,
        rotate_size_mb=settings.logging.rotate_size_mb,
        retain_count=settings.logging.retain_count,
    )

    try:
        gerrit = build_gerrit_client(settings)
    except ConfigurationError as exc:
        logger.error("%s", exc.message)
        return 1

    try:
        gerrit.check_access()

        registry = CheckerRegistry(gerrit, scheme=settings.connector.scheme)
        if args.list:
            list_checkers(registry)
        elif args.register or args.update:
            register_checker(registry, args)
        else:
            serve(gerrit, settings)
    except ConfigurationError as exc:
        logger.error("%s", exc.message)
        return 1
    except (httpx.HTTPError, ConnectorError) as exc:
        logger.error("Fatal: %s", exc)
        return 1
    finally:
        gerrit.close()

    return 0


def main() -> None:
    """Console script entry point."""
    sys.exit(run())


if __name__ == "__main__":
    main()
