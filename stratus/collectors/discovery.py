"""Discovery of a customer's AWS resources as a stream of events.

Each resource kind has one collector. A collector failing with an AWS
error becomes a single error event for that kind, and discovery moves
on to the next kind.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional

import boto3
import botocore.exceptions

from stratus.constants import (
    AUTOSCALING_GROUP_TAG,
    DB_INSTANCE_TAG,
    DB_SECURITY_GROUP_TAG,
    INSTANCE_TAG,
    LOAD_BALANCER_TAG,
    ROUTE_TABLE_TAG,
    SECURITY_GROUP_TAG,
    SUBNET_TAG,
)
from stratus.collectors.utils import dumps, paginate_collect

log = logging.getLogger(__name__)


@dataclass
class DiscoveryEvent:
    """One discovered resource, or the failure to discover a kind.

    Exactly one of result and error is set.
    """

    kind: str
    result: Optional[Dict[str, Any]] = None
    error: Optional[BaseException] = None

    @property
    def is_error(self) -> bool:
        return self.error is not None

    def payload(self) -> bytes:
        """The resource as JSON bytes, datetimes rendered as ISO-8601."""
        return dumps(self.result or {})


CollectorFn = Callable[[boto3.Session], List[Dict[str, Any]]]


def _collect_instances(session):
    return paginate_collect(session.client("ec2"), "describe_instances", "Reservations", "Instances")


def _collect_security_groups(session):
    return paginate_collect(session.client("ec2"), "describe_security_groups", "SecurityGroups")


def _collect_route_tables(session):
    return paginate_collect(session.client("ec2"), "describe_route_tables", "RouteTables")


def _collect_subnets(session):
    return paginate_collect(session.client("ec2"), "describe_subnets", "Subnets")


def _collect_db_instances(session):
    return paginate_collect(session.client("rds"), "describe_db_instances", "DBInstances")


def _collect_db_security_groups(session):
    return paginate_collect(session.client("rds"), "describe_db_security_groups", "DBSecurityGroups")


def _collect_load_balancers(session):
    return paginate_collect(session.client("elb"), "describe_load_balancers", "LoadBalancerDescriptions")


def _collect_autoscaling_groups(session):
    return paginate_collect(
        session.client("autoscaling"), "describe_auto_scaling_groups", "AutoScalingGroups"
    )


KIND_COLLECTORS: Dict[str, CollectorFn] = {
    INSTANCE_TAG: _collect_instances,
    SECURITY_GROUP_TAG: _collect_security_groups,
    DB_INSTANCE_TAG: _collect_db_instances,
    DB_SECURITY_GROUP_TAG: _collect_db_security_groups,
    LOAD_BALANCER_TAG: _collect_load_balancers,
    AUTOSCALING_GROUP_TAG: _collect_autoscaling_groups,
    ROUTE_TABLE_TAG: _collect_route_tables,
    SUBNET_TAG: _collect_subnets,
}


class Discoverer:
    """Walks an AWS account and yields one event per resource."""

    def __init__(self, session: boto3.Session, kinds: Optional[Iterable[str]] = None):
        self.session = session
        self.kinds = list(kinds) if kinds is not None else list(KIND_COLLECTORS)
        unknown = [k for k in self.kinds if k not in KIND_COLLECTORS]
        if unknown:
            raise ValueError(f"No collector for kinds: {', '.join(unknown)}")

    def discover(self) -> Iterator[DiscoveryEvent]:
        for kind in self.kinds:
            try:
                records = KIND_COLLECTORS[kind](self.session)
            except (botocore.exceptions.ClientError, botocore.exceptions.BotoCoreError) as exc:
                log.warning("Collector %s failed: %s", kind, exc)
                yield DiscoveryEvent(kind=kind, error=exc)
                continue
            log.debug("Collected %d %s resources", len(records), kind)
            for record in records:
                yield DiscoveryEvent(kind=kind, result=record)
