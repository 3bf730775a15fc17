"""Onboarding request and scan summary types."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional, Set

from stratus.collectors.session import AWSCredentials
from stratus.constants import (
    AUTOSCALING_GROUP_TYPE,
    DB_INSTANCE_TYPE,
    DB_SECURITY_GROUP_TYPE,
    INSTANCE_TAGS,
    INSTANCE_TYPE,
    LOAD_BALANCER_TYPE,
    SECURITY_GROUP_TYPE,
)
from stratus.core.entities import Entity, Group, Instance
from stratus.errors import InvalidOnboardRequest, MissingCustomerId


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class ScanState(Enum):
    """Scan lifecycle: created -> running -> succeeded | failed."""
    CREATED = "created"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass
class OnboardRequest:
    """A request to scan a customer's AWS account.

    Credentials are held only until the scan has built its session; after
    clear_credentials() they are overwritten in place.
    """
    customer_id: str
    user_id: str
    region: str
    access_key: str
    secret_key: str
    request_id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "OnboardRequest":
        return cls(
            customer_id=str(data.get("customer_id") or ""),
            user_id=str(data.get("user_id") or ""),
            region=str(data.get("region") or ""),
            access_key=str(data.get("access_key") or ""),
            secret_key=str(data.get("secret_key") or ""),
        )

    def validate(self) -> None:
        """Check that every field is present and the keys look like AWS keys.

        Raises:
            MissingCustomerId: If customer_id is blank
            InvalidOnboardRequest: For any other missing or malformed field
        """
        if not self.customer_id:
            raise MissingCustomerId()
        for name in ("user_id", "region", "access_key", "secret_key"):
            if not getattr(self, name):
                raise InvalidOnboardRequest(f"must provide {name}", field=name)
        self.credentials()

    def credentials(self) -> AWSCredentials:
        return AWSCredentials(
            access_key=self.access_key,
            secret_key=self.secret_key,
            region=self.region,
        )

    def clear_credentials(self) -> None:
        self.access_key = "X" * len(self.access_key)
        self.secret_key = "X" * len(self.secret_key)

    def to_dict(self) -> Dict[str, Any]:
        """Serializable view without credentials."""
        return {
            "request_id": self.request_id,
            "customer_id": self.customer_id,
            "user_id": self.user_id,
            "region": self.region,
        }

    def __repr__(self):
        return (
            f"<OnboardRequest request_id={self.request_id} customer_id={self.customer_id} "
            f"region={self.region} access_key={self.access_key[:4]}***>"
        )


@dataclass
class OnboardResponse:
    request_id: str

    def to_dict(self) -> Dict[str, Any]:
        return {"request_id": self.request_id}


# Store type -> ScanSummary counter attribute
_COUNTERS = {
    INSTANCE_TYPE: "instances",
    DB_INSTANCE_TYPE: "db_instances",
    SECURITY_GROUP_TYPE: "security_groups",
    DB_SECURITY_GROUP_TYPE: "db_security_groups",
    LOAD_BALANCER_TYPE: "load_balancers",
    AUTOSCALING_GROUP_TYPE: "autoscaling_groups",
}


@dataclass
class ScanSummary:
    """Counts and errors accumulated over one scan.

    Each counter holds entity identifiers, so a resource seen twice is
    counted once.
    """
    request_id: str
    customer_id: str
    user_id: str
    region: str
    state: ScanState = ScanState.CREATED
    instances: Set[str] = field(default_factory=set, repr=False)
    db_instances: Set[str] = field(default_factory=set, repr=False)
    security_groups: Set[str] = field(default_factory=set, repr=False)
    db_security_groups: Set[str] = field(default_factory=set, repr=False)
    load_balancers: Set[str] = field(default_factory=set, repr=False)
    autoscaling_groups: Set[str] = field(default_factory=set, repr=False)
    instance_error_count: int = 0
    group_error_count: int = 0
    last_error: Optional[str] = None
    created_at: str = field(default_factory=_now)
    started_at: Optional[str] = None
    completed_at: Optional[str] = None

    @classmethod
    def for_request(cls, request: OnboardRequest) -> "ScanSummary":
        return cls(
            request_id=request.request_id or "",
            customer_id=request.customer_id,
            user_id=request.user_id,
            region=request.region,
        )

    @property
    def instance_count(self) -> int:
        return len(self.instances)

    @property
    def db_instance_count(self) -> int:
        return len(self.db_instances)

    @property
    def security_group_count(self) -> int:
        return len(self.security_groups)

    @property
    def db_security_group_count(self) -> int:
        return len(self.db_security_groups)

    @property
    def load_balancer_count(self) -> int:
        return len(self.load_balancers)

    @property
    def autoscaling_group_count(self) -> int:
        return len(self.autoscaling_groups)

    @property
    def group_count(self) -> int:
        return (
            self.security_group_count
            + self.db_security_group_count
            + self.load_balancer_count
            + self.autoscaling_group_count
        )

    @property
    def is_finished(self) -> bool:
        return self.state in (ScanState.SUCCEEDED, ScanState.FAILED)

    def mark_running(self) -> None:
        self.state = ScanState.RUNNING
        self.started_at = _now()

    def record_entity(self, entity: Entity) -> None:
        """Count a stored entity. Kinds without a counter are ignored."""
        if isinstance(entity, Instance):
            key = entity.id
        elif isinstance(entity, Group):
            key = entity.name
        else:
            return
        counter = _COUNTERS.get(entity.type)
        if counter:
            getattr(self, counter).add(key)

    def record_error(self, kind: str, error: BaseException) -> None:
        """Count an error against the instance or group bucket of a kind."""
        if kind in INSTANCE_TAGS:
            self.instance_error_count += 1
        else:
            self.group_error_count += 1
        self.last_error = f"{kind}: {error}"

    @property
    def instance_event_count(self) -> int:
        """Instance and DB instance events seen, stored or failed."""
        return self.instance_count + self.db_instance_count + self.instance_error_count

    def instance_error_rate(self) -> float:
        total = self.instance_event_count
        if total == 0:
            return 0.0
        return self.instance_error_count / total

    def decide(self, threshold: float) -> ScanState:
        """Apply the error policy without changing state.

        Any group error fails the scan. Otherwise the scan fails only if the
        instance error rate exceeds the threshold. The rate is taken over all
        instance events, failed ones included; a scan that saw no instance
        events succeeds.
        """
        if self.group_error_count > 0:
            return ScanState.FAILED
        if self.instance_error_rate() > threshold:
            return ScanState.FAILED
        return ScanState.SUCCEEDED

    def finish(self, threshold: float) -> ScanState:
        self.state = self.decide(threshold)
        self.completed_at = _now()
        return self.state

    def failure_detail(self) -> str:
        return (
            f"{self.group_error_count} group errors, "
            f"{self.instance_error_count} instance errors over "
            f"{self.instance_event_count} instance events"
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to JSON-serializable dict."""
        return {
            "request_id": self.request_id,
            "customer_id": self.customer_id,
            "user_id": self.user_id,
            "region": self.region,
            "state": self.state.value,
            "created_at": self.created_at,
            "started_at": self.started_at,
            "completed_at": self.completed_at,
            "counts": {
                "instances": self.instance_count,
                "db_instances": self.db_instance_count,
                "security_groups": self.security_group_count,
                "db_security_groups": self.db_security_group_count,
                "load_balancers": self.load_balancer_count,
                "autoscaling_groups": self.autoscaling_group_count,
            },
            "instance_error_count": self.instance_error_count,
            "group_error_count": self.group_error_count,
            "last_error": self.last_error,
        }
