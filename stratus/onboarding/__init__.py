"""Onboarding scans: discover, store, count, decide, notify."""

from stratus.onboarding.notifier import HttpNotifier, Notifier, NullNotifier
from stratus.onboarding.onboarder import Onboarder, ScanRegistry
from stratus.onboarding.reporting import ErrorReporter, init_sentry
from stratus.onboarding.scan import OnboardRequest, OnboardResponse, ScanState, ScanSummary

__all__ = [
    "ErrorReporter",
    "HttpNotifier",
    "Notifier",
    "NullNotifier",
    "OnboardRequest",
    "OnboardResponse",
    "Onboarder",
    "ScanRegistry",
    "ScanState",
    "ScanSummary",
    "init_sentry",
]
