"""Canonical entities produced by the normalizers and persisted by the store.

Instances and Groups are the two persisted kinds. Each may carry transient
stubs of the other kind discovered while normalizing; stubs never point
back at their owner, so the graph is only ever resolved through the store.
Customers are not produced by normalizers; the onboarding scan records
them when it finishes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Union


def _isoformat(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


@dataclass
class Instance:
    """A compute or managed-database instance, keyed by (customer_id, id)."""

    id: str
    customer_id: str
    type: str
    data: str
    groups: List["Group"] = field(default_factory=list, repr=False, compare=False)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_json(self) -> str:
        """Return the stored normalized payload verbatim."""
        return self.data


@dataclass
class Group:
    """A grouping resource (security group, load balancer, ...), keyed by (customer_id, name)."""

    name: str
    customer_id: str
    type: str
    data: str
    instances: List[Instance] = field(default_factory=list, repr=False, compare=False)
    instance_count: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_json(self) -> str:
        """Return the stored normalized payload verbatim."""
        return self.data


@dataclass
class Customer:
    """A customer and the time its account was last synced by a scan."""

    id: str
    last_sync: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "last_sync": _isoformat(self.last_sync),
            "created_at": _isoformat(self.created_at),
            "updated_at": _isoformat(self.updated_at),
        }


@dataclass
class RouteTable:
    id: str
    customer_id: str
    data: str

    def to_json(self) -> str:
        return self.data


@dataclass
class Subnet:
    id: str
    customer_id: str
    data: str

    def to_json(self) -> str:
        return self.data


Entity = Union[Instance, Group, RouteTable, Subnet]
