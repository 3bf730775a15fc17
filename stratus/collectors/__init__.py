"""AWS credential handling and resource discovery."""

from stratus.collectors.discovery import KIND_COLLECTORS, DiscoveryEvent, Discoverer
from stratus.collectors.session import AWSCredentials, create_session

__all__ = [
    "AWSCredentials",
    "DiscoveryEvent",
    "Discoverer",
    "KIND_COLLECTORS",
    "create_session",
]
