"""Exception hierarchy for Stratus.

Every error raised by the normalizer, the store, the consumer and the
onboarding workflow derives from StratusError so callers can decide
at one seam whether to drop, record or surface a failure.
"""

from __future__ import annotations

from typing import Optional


class StratusError(Exception):
    """Base class for all Stratus errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class DecodeError(StratusError):
    """Raised when a payload or envelope is not valid for its schema."""


class MissingIdentifier(StratusError):
    """Raised when a required identifier is empty or absent."""

    default_message = "must provide identifier"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.default_message)


class MissingInstanceId(MissingIdentifier):
    default_message = "must provide instance id"


class MissingGroupId(MissingIdentifier):
    default_message = "must provide group id"


class MissingRouteTableId(MissingIdentifier):
    default_message = "must provide route table id"


class MissingSubnetId(MissingIdentifier):
    default_message = "must provide subnet id"


class MissingCustomerId(MissingIdentifier):
    default_message = "must provide customer id"


class EntityNotFound(StratusError):
    """Raised when a read targets a key that is not stored."""

    def __init__(self, kind: str, identifier: str):
        super().__init__(f"{kind} '{identifier}' not found")
        self.kind = kind
        self.identifier = identifier


class StoreError(StratusError):
    """Raised when the backing database fails a statement."""


class NotifierError(StratusError):
    """Raised when an outbound notification cannot be delivered."""


class TooManyErrorsError(StratusError):
    """Terminal condition of a scan whose error policy forced failure."""

    def __init__(self, customer_id: str, request_id: str, detail: str):
        super().__init__(
            f"too many errors during discovery for customer {customer_id} "
            f"(request {request_id}): {detail}"
        )
        self.customer_id = customer_id
        self.request_id = request_id


class InvalidOnboardRequest(StratusError):
    """Raised when an onboarding request is incomplete or malformed."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class ShutdownTimeout(StratusError):
    """Raised when consumer workers outlive the shutdown grace period."""
