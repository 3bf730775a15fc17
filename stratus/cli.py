"""Stratus command line interface."""

from __future__ import annotations

import argparse
import logging
import signal
import sys
import threading
from typing import List, Optional

from stratus.config import Settings, get_settings
from stratus.logging_setup import configure_logging
from stratus.repositories import SqlEntityRepository

logger = logging.getLogger(__name__)


def build_repository(settings: Settings) -> SqlEntityRepository:
    repository = SqlEntityRepository.from_settings(settings)
    repository.create_tables()
    return repository


def build_onboarder(repository, settings: Settings):
    from stratus.onboarding import HttpNotifier, NullNotifier, Onboarder, init_sentry

    init_sentry(settings.sentry_dsn)
    if settings.email_endpoint or settings.slack_endpoint:
        notifier = HttpNotifier(settings.email_endpoint, settings.slack_endpoint, settings.notify_timeout)
    else:
        notifier = NullNotifier()
    return Onboarder.from_settings(repository, settings, notifier=notifier)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Stratus resource inventory")
    parser.add_argument("--log-level", default=settings.log_level, help="logging level")
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="run the query API")
    serve.add_argument("--host", default=settings.api_host)
    serve.add_argument("--port", type=int, default=settings.api_port)

    consume = sub.add_parser("consume", help="consume resource events from SQS")
    consume.add_argument("--queue-url", default=settings.queue_url)
    consume.add_argument("--concurrency", type=int, default=settings.consumer_concurrency)

    sub.add_parser("init-db", help="create the database tables")
    return parser.parse_args(argv)


def cmd_serve(args: argparse.Namespace, settings: Settings) -> int:
    from stratus.api.server import create_app

    repository = build_repository(settings)
    onboarder = build_onboarder(repository, settings)
    app = create_app(repository, onboarder, settings)
    logger.info(f"Stratus API starting on http://{args.host}:{args.port}")
    try:
        app.run(host=args.host, port=args.port)
    finally:
        onboarder.shutdown(wait=False)
    return 0


def cmd_consume(args: argparse.Namespace, settings: Settings) -> int:
    from stratus.consumer import Consumer, SqsSubscription
    from stratus.errors import ShutdownTimeout

    if not args.queue_url:
        logger.error("No queue URL configured (set STRATUS_QUEUE_URL or --queue-url)")
        return 2

    repository = build_repository(settings)
    subscription = SqsSubscription(args.queue_url, region=settings.aws_region)
    consumer = Consumer(
        subscription,
        repository,
        concurrency=args.concurrency,
        wait_seconds=settings.consumer_wait_seconds,
    )

    stop_requested = threading.Event()

    def _signal_handler(signum, frame):
        logger.info(f"Received {signal.Signals(signum).name}, stopping consumer...")
        stop_requested.set()

    signal.signal(signal.SIGTERM, _signal_handler)
    signal.signal(signal.SIGINT, _signal_handler)

    consumer.start()
    stop_requested.wait()
    try:
        consumer.stop(timeout=settings.shutdown_timeout)
    except ShutdownTimeout as e:
        logger.error(str(e))
        return 1
    return 0


def cmd_init_db(args: argparse.Namespace, settings: Settings) -> int:
    build_repository(settings)
    return 0


COMMANDS = {
    "serve": cmd_serve,
    "consume": cmd_consume,
    "init-db": cmd_init_db,
}


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    configure_logging(args.log_level)
    return COMMANDS[args.command](args, get_settings())


if __name__ == "__main__":
    sys.exit(main())
