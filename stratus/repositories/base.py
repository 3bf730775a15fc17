"""Abstract base classes for Stratus repositories.

This module defines the interface for entity storage, allowing the
consumer, the onboarding workflow and the API to share one store
without depending on a particular database.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional

from stratus.core.entities import Customer, Entity, Group, Instance
from stratus.errors import MissingCustomerId


@dataclass
class GroupDetail:
    """A group together with its member instances.

    Attributes:
        group: The stored group
        instances: Member instances, optionally filtered by instance type
        instance_count: Number of members returned
    """

    group: Group
    instances: List[Instance] = field(default_factory=list)

    @property
    def instance_count(self) -> int:
        return len(self.instances)


class EntityRepository(ABC):
    """Abstract base class for entity storage.

    Writes are idempotent: replaying an entity any number of times, in any
    order relative to the entities that reference it, converges to the same
    rows.

    Example:
        >>> repo = SqlEntityRepository(engine)
        >>> repo.put_entity(normalize("Instance", "cust-1", payload))
        'ec2'
        >>> repo.list_instances("cust-1", type="ec2")
    """

    # Writes

    @abstractmethod
    def upsert_instance(self, instance: Instance) -> None:
        """Insert or update an instance and ensure its groups and links.

        Groups discovered as references are created if missing but never
        overwritten.

        Raises:
            MissingCustomerId: If the instance has no customer
            MissingInstanceId: If the instance has no id
            StoreError: If the database rejects a statement
        """
        pass

    @abstractmethod
    def upsert_group(self, group: Group) -> None:
        """Insert or update a group and ensure its member instances and links.

        Raises:
            MissingCustomerId: If the group has no customer
            MissingGroupId: If the group has no name
            StoreError: If the database rejects a statement
        """
        pass

    def put_entity(self, entity: Entity) -> Optional[str]:
        """Persist any normalized entity.

        Args:
            entity: Output of the normalizer

        Returns:
            The stored type for instances and groups, None for kinds that
            are not persisted

        Raises:
            MissingCustomerId: If the entity has no customer
        """
        if not entity.customer_id:
            raise MissingCustomerId()
        if isinstance(entity, Instance):
            self.upsert_instance(entity)
            return entity.type
        if isinstance(entity, Group):
            self.upsert_group(entity)
            return entity.type
        return None

    @abstractmethod
    def record_sync(self, customer_id: str) -> Customer:
        """Create the customer if needed and set its last_sync to now.

        Raises:
            MissingCustomerId: If customer_id is blank
            StoreError: If the database rejects the statement
        """
        pass

    @abstractmethod
    def delete_all(self) -> None:
        """Remove every customer, link, instance and group. Used to reset test state."""
        pass

    # Reads

    @abstractmethod
    def get_instance(self, customer_id: str, instance_id: str) -> Instance:
        """Get one instance.

        Raises:
            MissingCustomerId: If customer_id is blank
            MissingInstanceId: If instance_id is blank
            EntityNotFound: If no such instance is stored
        """
        pass

    @abstractmethod
    def list_instances(
        self,
        customer_id: str,
        type: Optional[str] = None,
        group_id: Optional[str] = None,
    ) -> List[Instance]:
        """List a customer's instances.

        Args:
            customer_id: Owning customer
            type: Restrict to one instance type ('ec2', 'rds')
            group_id: Restrict to members of this group

        Returns:
            Instances ordered by id
        """
        pass

    @abstractmethod
    def count_instances(
        self,
        customer_id: str,
        type: Optional[str] = None,
        group_id: Optional[str] = None,
    ) -> int:
        pass

    @abstractmethod
    def get_group(
        self,
        customer_id: str,
        group_id: str,
        type: Optional[str] = None,
    ) -> GroupDetail:
        """Get a group and its members.

        Args:
            customer_id: Owning customer
            group_id: Group name
            type: Restrict the members to one instance type

        Raises:
            MissingCustomerId: If customer_id is blank
            MissingGroupId: If group_id is blank
            EntityNotFound: If no such group is stored
        """
        pass

    @abstractmethod
    def get_customer(self, customer_id: str) -> Customer:
        """Get a customer record.

        Raises:
            MissingCustomerId: If customer_id is blank
            EntityNotFound: If no scan has finished for this customer
        """
        pass

    @abstractmethod
    def list_groups(self, customer_id: str, type: Optional[str] = None) -> List[Group]:
        """List a customer's groups with their member counts."""
        pass

    @abstractmethod
    def count_groups(self, customer_id: str, type: Optional[str] = None) -> int:
        pass

    @abstractmethod
    def health_check(self) -> bool:
        """Check database connectivity."""
        pass
