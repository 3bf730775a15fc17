"""SQLAlchemy implementation of the EntityRepository interface.

Every write is a single INSERT ... ON CONFLICT statement run in its own
short transaction, so replays, duplicates and out-of-order deliveries
converge without client-side locking. A failure part way through an
upsert leaves the statements before it committed.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

from sqlalchemy import create_engine, delete, func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from stratus.config import Settings
from stratus.core.entities import Customer, Group, Instance
from stratus.errors import (
    EntityNotFound,
    MissingCustomerId,
    MissingGroupId,
    MissingInstanceId,
    StoreError,
)
from stratus.repositories.base import EntityRepository, GroupDetail
from stratus.repositories.models import Base, CustomerRow, GroupRow, InstanceRow, LinkRow, utcnow

logger = logging.getLogger(__name__)

SUPPORTED_DIALECTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def create_engine_from_settings(settings: Settings) -> Engine:
    """Build an engine for the configured database URL.

    SQLite gets a thread-shareable connection (a single static one for
    in-memory databases); other backends get a sized, pre-pinged pool.
    """
    url = settings.database_url
    if url.startswith("sqlite"):
        kwargs: Dict[str, Any] = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in url or url.rstrip("/") == "sqlite:":
            kwargs["poolclass"] = StaticPool
        return create_engine(url, **kwargs)
    return create_engine(
        url,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_pre_ping=True,
    )


def _require_customer(customer_id: Optional[str]) -> None:
    if not customer_id:
        raise MissingCustomerId()


def _to_instance(row: InstanceRow) -> Instance:
    return Instance(
        id=row.id,
        customer_id=row.customer_id,
        type=row.type,
        data=row.data,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _to_customer(row: CustomerRow) -> Customer:
    return Customer(
        id=row.id,
        last_sync=row.last_sync,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _to_group(row: GroupRow, instance_count: int = 0) -> Group:
    return Group(
        name=row.name,
        customer_id=row.customer_id,
        type=row.type,
        data=row.data,
        instance_count=instance_count,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


class SqlEntityRepository(EntityRepository):
    """SQLAlchemy implementation of EntityRepository.

    Supports PostgreSQL and SQLite, the two backends with a native
    ON CONFLICT clause.

    Attributes:
        engine: SQLAlchemy engine; its pool is the only shared state
    """

    def __init__(self, engine: Engine):
        """Initialize the repository with an engine.

        Args:
            engine: Configured SQLAlchemy engine

        Raises:
            StoreError: If the engine's dialect has no upsert support
        """
        dialect = engine.dialect.name
        if dialect not in SUPPORTED_DIALECTS:
            raise StoreError(f"unsupported database dialect '{dialect}'")
        self.engine = engine
        self._insert = SUPPORTED_DIALECTS[dialect]

    @classmethod
    def from_settings(cls, settings: Settings) -> "SqlEntityRepository":
        return cls(create_engine_from_settings(settings))

    def create_tables(self) -> None:
        """Create the store's tables if they do not exist."""
        with self._errors("create tables"):
            Base.metadata.create_all(self.engine)
        logger.info(f"Entity tables ready on {self.engine.dialect.name}")

    @contextmanager
    def _errors(self, operation: str) -> Iterator[None]:
        try:
            yield
        except SQLAlchemyError as e:
            logger.error(f"Store operation '{operation}' failed: {type(e).__name__}")
            raise StoreError(f"{operation} failed: {e}") from e

    def _execute(self, operation: str, stmt) -> None:
        with self._errors(operation):
            with self.engine.begin() as conn:
                conn.execute(stmt)

    # Statements

    def _upsert_instance_row(self, instance: Instance) -> None:
        now = utcnow()
        stmt = self._insert(InstanceRow).values(
            customer_id=instance.customer_id,
            id=instance.id,
            type=instance.type,
            data=instance.data,
            created_at=now,
            updated_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["customer_id", "id"],
            set_={
                "type": stmt.excluded.type,
                "data": stmt.excluded.data,
                "updated_at": stmt.excluded.updated_at,
            },
        )
        self._execute("upsert instance", stmt)

    def _ensure_instance_row(self, instance: Instance) -> None:
        now = utcnow()
        stmt = self._insert(InstanceRow).values(
            customer_id=instance.customer_id,
            id=instance.id,
            type=instance.type,
            data=instance.data,
            created_at=now,
            updated_at=now,
        ).on_conflict_do_nothing(index_elements=["customer_id", "id"])
        self._execute("ensure instance", stmt)

    def _upsert_group_row(self, group: Group) -> None:
        now = utcnow()
        stmt = self._insert(GroupRow).values(
            customer_id=group.customer_id,
            name=group.name,
            type=group.type,
            data=group.data,
            created_at=now,
            updated_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["customer_id", "name"],
            set_={
                "type": stmt.excluded.type,
                "data": stmt.excluded.data,
                "updated_at": stmt.excluded.updated_at,
            },
        )
        self._execute("upsert group", stmt)

    def _ensure_group_row(self, group: Group) -> None:
        now = utcnow()
        stmt = self._insert(GroupRow).values(
            customer_id=group.customer_id,
            name=group.name,
            type=group.type,
            data=group.data,
            created_at=now,
            updated_at=now,
        ).on_conflict_do_nothing(index_elements=["customer_id", "name"])
        self._execute("ensure group", stmt)

    def _ensure_link(self, customer_id: str, group_name: str, instance_id: str) -> None:
        stmt = self._insert(LinkRow).values(
            customer_id=customer_id,
            group_name=group_name,
            instance_id=instance_id,
            created_at=utcnow(),
        ).on_conflict_do_nothing(index_elements=["customer_id", "group_name", "instance_id"])
        self._execute("ensure link", stmt)

    # Writes

    def upsert_instance(self, instance: Instance) -> None:
        _require_customer(instance.customer_id)
        if not instance.id:
            raise MissingInstanceId()
        self._upsert_instance_row(instance)
        for group in instance.groups:
            self._ensure_group_row(group)
            self._ensure_link(instance.customer_id, group.name, instance.id)
        logger.debug(
            f"Upserted {instance.type} {instance.id} for {instance.customer_id} "
            f"with {len(instance.groups)} groups"
        )

    def upsert_group(self, group: Group) -> None:
        _require_customer(group.customer_id)
        if not group.name:
            raise MissingGroupId()
        self._upsert_group_row(group)
        for instance in group.instances:
            self._ensure_instance_row(instance)
            self._ensure_link(group.customer_id, group.name, instance.id)
        logger.debug(
            f"Upserted {group.type} {group.name} for {group.customer_id} "
            f"with {len(group.instances)} instances"
        )

    def record_sync(self, customer_id: str) -> Customer:
        _require_customer(customer_id)
        now = utcnow()
        stmt = self._insert(CustomerRow).values(
            id=customer_id,
            last_sync=now,
            created_at=now,
            updated_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["id"],
            set_={
                "last_sync": stmt.excluded.last_sync,
                "updated_at": stmt.excluded.updated_at,
            },
        )
        self._execute("record sync", stmt)
        logger.debug(f"Recorded sync for customer {customer_id}")
        return self.get_customer(customer_id)

    def delete_all(self) -> None:
        with self._errors("delete all"):
            with self.engine.begin() as conn:
                conn.execute(delete(CustomerRow))
                conn.execute(delete(LinkRow))
                conn.execute(delete(InstanceRow))
                conn.execute(delete(GroupRow))
        logger.info("Cleared all entities")

    # Reads

    def _instance_query(self, customer_id: str, type: Optional[str], group_id: Optional[str]):
        conditions = [InstanceRow.customer_id == customer_id]
        if type:
            conditions.append(InstanceRow.type == type)
        if group_id:
            members = select(LinkRow.instance_id).where(
                LinkRow.customer_id == customer_id,
                LinkRow.group_name == group_id,
            )
            conditions.append(InstanceRow.id.in_(members))
        return conditions

    def get_instance(self, customer_id: str, instance_id: str) -> Instance:
        _require_customer(customer_id)
        if not instance_id:
            raise MissingInstanceId()
        with self._errors("get instance"), Session(self.engine) as session:
            row = session.get(InstanceRow, {"customer_id": customer_id, "id": instance_id})
            if row is None:
                raise EntityNotFound("instance", instance_id)
            return _to_instance(row)

    def list_instances(
        self,
        customer_id: str,
        type: Optional[str] = None,
        group_id: Optional[str] = None,
    ) -> List[Instance]:
        _require_customer(customer_id)
        stmt = (
            select(InstanceRow)
            .where(*self._instance_query(customer_id, type, group_id))
            .order_by(InstanceRow.id)
        )
        with self._errors("list instances"), Session(self.engine) as session:
            return [_to_instance(row) for row in session.scalars(stmt)]

    def count_instances(
        self,
        customer_id: str,
        type: Optional[str] = None,
        group_id: Optional[str] = None,
    ) -> int:
        _require_customer(customer_id)
        stmt = select(func.count()).select_from(InstanceRow).where(
            *self._instance_query(customer_id, type, group_id)
        )
        with self._errors("count instances"), Session(self.engine) as session:
            return session.scalar(stmt) or 0

    def get_group(
        self,
        customer_id: str,
        group_id: str,
        type: Optional[str] = None,
    ) -> GroupDetail:
        _require_customer(customer_id)
        if not group_id:
            raise MissingGroupId()
        with self._errors("get group"), Session(self.engine) as session:
            row = session.get(GroupRow, {"customer_id": customer_id, "name": group_id})
            if row is None:
                raise EntityNotFound("group", group_id)
            stmt = (
                select(InstanceRow)
                .where(*self._instance_query(customer_id, type, group_id))
                .order_by(InstanceRow.id)
            )
            instances = [_to_instance(r) for r in session.scalars(stmt)]
            return GroupDetail(group=_to_group(row, len(instances)), instances=instances)

    def get_customer(self, customer_id: str) -> Customer:
        _require_customer(customer_id)
        with self._errors("get customer"), Session(self.engine) as session:
            row = session.get(CustomerRow, customer_id)
            if row is None:
                raise EntityNotFound("customer", customer_id)
            return _to_customer(row)

    def list_groups(self, customer_id: str, type: Optional[str] = None) -> List[Group]:
        _require_customer(customer_id)
        counts = (
            select(LinkRow.group_name, func.count().label("instance_count"))
            .where(LinkRow.customer_id == customer_id)
            .group_by(LinkRow.group_name)
            .subquery()
        )
        stmt = (
            select(GroupRow, func.coalesce(counts.c.instance_count, 0))
            .outerjoin(counts, counts.c.group_name == GroupRow.name)
            .where(GroupRow.customer_id == customer_id)
            .order_by(GroupRow.name)
        )
        if type:
            stmt = stmt.where(GroupRow.type == type)
        with self._errors("list groups"), Session(self.engine) as session:
            return [_to_group(row, count) for row, count in session.execute(stmt)]

    def count_groups(self, customer_id: str, type: Optional[str] = None) -> int:
        _require_customer(customer_id)
        stmt = select(func.count()).select_from(GroupRow).where(GroupRow.customer_id == customer_id)
        if type:
            stmt = stmt.where(GroupRow.type == type)
        with self._errors("count groups"), Session(self.engine) as session:
            return session.scalar(stmt) or 0

    def health_check(self) -> bool:
        """Check database connectivity."""
        try:
            with self.engine.connect() as conn:
                conn.execute(select(1))
            return True
        except SQLAlchemyError as e:
            logger.warning(f"Health check failed: {type(e).__name__}")
            return False
