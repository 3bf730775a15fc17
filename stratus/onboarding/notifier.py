"""Scan completion notifications over HTTP.

The email relay expects {user_id, template, vars} and answers with the
user it notified. Slack receives a plain incoming-webhook message.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Dict

import requests

from stratus.constants import EMAIL_DISCOVERY_TEMPLATE, EMAIL_ERROR_TEMPLATE
from stratus.errors import NotifierError

if TYPE_CHECKING:
    from stratus.onboarding.scan import ScanSummary

logger = logging.getLogger(__name__)


class Notifier(ABC):
    """Announces the outcome of a scan."""

    @abstractmethod
    def notify_success(self, summary: "ScanSummary") -> None:
        pass

    @abstractmethod
    def notify_error(self, summary: "ScanSummary") -> None:
        pass


class NullNotifier(Notifier):
    """Notifier used when no endpoint is configured."""

    def notify_success(self, summary: "ScanSummary") -> None:
        logger.debug(f"Scan {summary.request_id} succeeded (no notifier configured)")

    def notify_error(self, summary: "ScanSummary") -> None:
        logger.debug(f"Scan {summary.request_id} failed (no notifier configured)")


class HttpNotifier(Notifier):
    """Posts scan outcomes to an email relay and a Slack webhook.

    Either endpoint may be empty, in which case that channel is skipped.
    The email channel is tried first; if it fails Slack is not attempted.

    Attributes:
        email_endpoint: URL of the email relay
        slack_endpoint: URL of the Slack incoming webhook
        timeout: Per-request timeout in seconds
    """

    def __init__(self, email_endpoint: str = "", slack_endpoint: str = "", timeout: float = 10.0):
        self.email_endpoint = email_endpoint
        self.slack_endpoint = slack_endpoint
        self.timeout = timeout

    def notify_success(self, summary: "ScanSummary") -> None:
        self._notify_email(summary, EMAIL_DISCOVERY_TEMPLATE)
        self._notify_slack(
            f"Discovery completed for customer {summary.customer_id}: "
            f"{summary.instance_count} instances, {summary.db_instance_count} db instances, "
            f"{summary.group_count} groups."
        )

    def notify_error(self, summary: "ScanSummary") -> None:
        self._notify_email(summary, EMAIL_ERROR_TEMPLATE)
        self._notify_slack(
            f"Discovery failed for customer {summary.customer_id} "
            f"(request {summary.request_id}): {summary.last_error or 'too many errors'}"
        )

    def _post(self, url: str, payload: Dict[str, Any]) -> requests.Response:
        try:
            return requests.post(url, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            raise NotifierError(f"POST {url} failed: {type(e).__name__}") from e

    def _notify_email(self, summary: "ScanSummary", template: str) -> None:
        if not self.email_endpoint:
            return

        resp = self._post(self.email_endpoint, {
            "user_id": summary.user_id,
            "template": template,
            "vars": summary.to_dict(),
        })
        if resp.status_code > 299:
            raise NotifierError(f"Bad response from email endpoint: {resp.status_code}")

        try:
            body = resp.json()
        except ValueError as e:
            raise NotifierError("Email endpoint returned a non-JSON response") from e
        if not isinstance(body, dict) or "user" not in body:
            raise NotifierError("Error response from email endpoint")
        logger.info(f"Sent {template} email for request {summary.request_id}")

    def _notify_slack(self, text: str) -> None:
        if not self.slack_endpoint:
            return

        resp = self._post(self.slack_endpoint, {"text": text})
        if resp.status_code > 299:
            raise NotifierError(f"Bad response from Slack endpoint: {resp.status_code}")
