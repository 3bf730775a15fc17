"""Error reporting for onboarding scans.

Errors are always logged; they are also sent to Sentry once init_sentry()
has been called with a DSN. Without a DSN the Sentry client is a no-op.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import sentry_sdk
from sentry_sdk.integrations.flask import FlaskIntegration
from sentry_sdk.integrations.logging import LoggingIntegration

logger = logging.getLogger(__name__)


def init_sentry(dsn: str, environment: str = "production") -> bool:
    """Initialize the Sentry SDK if a DSN is configured.

    Returns:
        True if Sentry was initialized, False otherwise
    """
    if not dsn:
        logger.info("Sentry disabled: no DSN configured")
        return False

    sentry_sdk.init(
        dsn=dsn,
        environment=environment,
        integrations=[
            FlaskIntegration(),
            # Breadcrumbs for everything, events only for ERROR and above
            LoggingIntegration(level=None, event_level=logging.ERROR),
        ],
        send_default_pii=False,
    )
    logger.info(f"Sentry initialized for environment {environment}")
    return True


class ErrorReporter:
    """Logs errors and forwards them to Sentry with scan context."""

    def report(self, error: BaseException, context: Optional[Dict[str, Any]] = None) -> None:
        """Report an error.

        Args:
            error: The exception to report
            context: Identifiers of the scan it occurred in; never credentials
        """
        context = context or {}
        logger.error(f"{type(error).__name__}: {error} {context}")
        with sentry_sdk.new_scope() as scope:
            for key, value in context.items():
                scope.set_tag(key, value)
            sentry_sdk.capture_exception(error)
