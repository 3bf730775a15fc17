"""Onboarding: scan a customer's account and report how it went.

onboard() validates the request, registers a scan summary and hands the
scan to a thread pool; it returns the request id before any network or
database work happens. The scan writes every discovered resource through
the normalizer and the repository, counts what it stored and what failed,
and finally notifies success or failure. Scans cannot be cancelled.
"""

from __future__ import annotations

import logging
import threading
import uuid
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, Dict, List, Optional

from stratus.collectors.discovery import DiscoveryEvent, Discoverer
from stratus.collectors.session import AWSCredentials, create_session
from stratus.constants import DEFAULT_ERROR_THRESHOLD, DEFAULT_SCAN_WORKERS, MAX_TRACKED_SCANS
from stratus.errors import NotifierError, StoreError, StratusError, TooManyErrorsError
from stratus.normalizers import normalize
from stratus.onboarding.notifier import Notifier, NullNotifier
from stratus.onboarding.reporting import ErrorReporter
from stratus.onboarding.scan import OnboardRequest, OnboardResponse, ScanState, ScanSummary
from stratus.repositories.base import EntityRepository

logger = logging.getLogger(__name__)

DiscovererFactory = Callable[[AWSCredentials], Any]


def default_discoverer_factory(credentials: AWSCredentials) -> Discoverer:
    return Discoverer(create_session(credentials))


class ScanRegistry:
    """Keeps scan summaries in memory, bounded by max_scans."""

    def __init__(self, max_scans: int = MAX_TRACKED_SCANS):
        self._scans: Dict[str, ScanSummary] = {}
        self._lock = threading.Lock()
        self._max_scans = max_scans

    def add(self, summary: ScanSummary) -> None:
        with self._lock:
            if len(self._scans) >= self._max_scans:
                self._cleanup_old_scans()
            self._scans[summary.request_id] = summary

    def get(self, request_id: str) -> Optional[ScanSummary]:
        return self._scans.get(request_id)

    def list(self, limit: int = 50) -> List[ScanSummary]:
        scans = list(self._scans.values())
        scans.sort(key=lambda s: s.created_at, reverse=True)
        return scans[:limit]

    def __len__(self) -> int:
        return len(self._scans)

    def _cleanup_old_scans(self):
        """Remove the oldest half of the finished scans; running scans are kept."""
        finished = [s for s in self._scans.values() if s.is_finished]
        finished.sort(key=lambda s: s.created_at)
        for summary in finished[:max(1, len(finished) // 2)]:
            del self._scans[summary.request_id]


class Onboarder:
    """Runs onboarding scans in the background.

    Attributes:
        repository: Store every discovered entity is written to
        notifier: Receives the outcome of each scan
        reporter: Receives discovery errors and failed scans
        threshold: Highest tolerated instance error rate
    """

    def __init__(
        self,
        repository: EntityRepository,
        notifier: Optional[Notifier] = None,
        reporter: Optional[ErrorReporter] = None,
        discoverer_factory: DiscovererFactory = default_discoverer_factory,
        workers: int = DEFAULT_SCAN_WORKERS,
        threshold: float = DEFAULT_ERROR_THRESHOLD,
        max_tracked_scans: int = MAX_TRACKED_SCANS,
    ):
        self.repository = repository
        self.notifier = notifier or NullNotifier()
        self.reporter = reporter or ErrorReporter()
        self.discoverer_factory = discoverer_factory
        self.threshold = threshold
        self.scans = ScanRegistry(max_tracked_scans)
        self._executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="scan")

    @classmethod
    def from_settings(cls, repository: EntityRepository, settings, notifier=None) -> "Onboarder":
        return cls(
            repository,
            notifier=notifier,
            workers=settings.scan_workers,
            threshold=settings.scan_error_threshold,
            max_tracked_scans=settings.max_tracked_scans,
        )

    def onboard(self, request: OnboardRequest) -> OnboardResponse:
        """Start a scan and return its request id without waiting for it.

        Raises:
            MissingCustomerId: If the request has no customer
            InvalidOnboardRequest: If any other field is missing or malformed
        """
        request.validate()
        request.request_id = str(uuid.uuid4())
        summary = ScanSummary.for_request(request)
        self.scans.add(summary)
        future = self._executor.submit(self.scan, request, summary)
        future.add_done_callback(lambda f: self._log_failure(summary, f))
        logger.info(f"Started scan {request.request_id} for customer {request.customer_id}")
        return OnboardResponse(request_id=request.request_id)

    def _log_failure(self, summary: ScanSummary, future: Future) -> None:
        error = future.exception()
        if error is not None:
            logger.error(
                f"Scan {summary.request_id} failed unexpectedly: {type(error).__name__}: {error}",
                exc_info=error,
            )

    def get_scan(self, request_id: str) -> Optional[ScanSummary]:
        return self.scans.get(request_id)

    def scan(self, request: OnboardRequest, summary: ScanSummary) -> ScanState:
        """Run one scan to completion. Executed on the thread pool."""
        context = {"customer_id": request.customer_id, "request_id": summary.request_id}
        summary.mark_running()
        try:
            credentials = request.credentials()
            try:
                discoverer = self.discoverer_factory(credentials)
            finally:
                credentials.clear()
                request.clear_credentials()

            for event in discoverer.discover():
                self._handle_event(request.customer_id, event, summary, context)
        except Exception as e:
            # The scanner itself failed; nothing more will be discovered
            logger.exception(f"Scan {summary.request_id} aborted: {type(e).__name__}")
            summary.group_error_count += 1
            summary.last_error = f"discovery: {e}"
            self.reporter.report(e, context)
        finally:
            request.clear_credentials()

        state = summary.finish(self.threshold)
        self._record_sync(request.customer_id)
        logger.info(
            f"Scan {summary.request_id} {state.value}: {summary.instance_count} instances, "
            f"{summary.db_instance_count} db instances, {summary.group_count} groups, "
            f"{summary.instance_error_count} instance errors, {summary.group_error_count} group errors"
        )

        if state is ScanState.FAILED:
            self._notify(self.notifier.notify_error, summary)
            self.reporter.report(
                TooManyErrorsError(request.customer_id, summary.request_id, summary.failure_detail()),
                context,
            )
        else:
            self._notify(self.notifier.notify_success, summary)
        return state

    def _handle_event(
        self,
        customer_id: str,
        event: DiscoveryEvent,
        summary: ScanSummary,
        context: Dict[str, Any],
    ) -> None:
        if event.is_error:
            summary.record_error(event.kind, event.error)
            self.reporter.report(event.error, {**context, "kind": event.kind})
            return

        try:
            entity = normalize(event.kind, customer_id, event.payload())
            if entity is None:
                return
            self.repository.put_entity(entity)
        except (StratusError, TypeError, ValueError) as e:
            logger.warning(f"Failed to store {event.kind} for scan {summary.request_id}: {e}")
            summary.record_error(event.kind, e)
            return
        summary.record_entity(entity)

    def _record_sync(self, customer_id: str) -> None:
        try:
            self.repository.record_sync(customer_id)
        except StoreError as e:
            logger.warning(f"Could not record sync for customer {customer_id}: {e}")

    def _notify(self, send: Callable[[ScanSummary], None], summary: ScanSummary) -> None:
        try:
            send(summary)
        except NotifierError as e:
            logger.warning(f"Notification for scan {summary.request_id} failed: {e}")

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)
