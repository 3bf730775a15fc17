"""SQLAlchemy table definitions for the entity store."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import DateTime, Index, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from stratus.constants import MAX_ID_LENGTH, MAX_TYPE_LENGTH


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class InstanceRow(Base):
    __tablename__ = "instances"

    customer_id: Mapped[str] = mapped_column(String(MAX_ID_LENGTH), primary_key=True)
    id: Mapped[str] = mapped_column(String(MAX_ID_LENGTH), primary_key=True)
    type: Mapped[str] = mapped_column(String(MAX_TYPE_LENGTH), nullable=False)
    data: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    __table_args__ = (Index("ix_instances_customer_type", "customer_id", "type"),)


class GroupRow(Base):
    __tablename__ = "groups"

    customer_id: Mapped[str] = mapped_column(String(MAX_ID_LENGTH), primary_key=True)
    name: Mapped[str] = mapped_column(String(MAX_ID_LENGTH), primary_key=True)
    type: Mapped[str] = mapped_column(String(MAX_TYPE_LENGTH), nullable=False)
    data: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    __table_args__ = (Index("ix_groups_customer_type", "customer_id", "type"),)


class LinkRow(Base):
    # No foreign keys: either side of a link may be written first.
    __tablename__ = "groups_instances"

    customer_id: Mapped[str] = mapped_column(String(MAX_ID_LENGTH), primary_key=True)
    group_name: Mapped[str] = mapped_column(String(MAX_ID_LENGTH), primary_key=True)
    instance_id: Mapped[str] = mapped_column(String(MAX_ID_LENGTH), primary_key=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    __table_args__ = (Index("ix_groups_instances_instance", "customer_id", "instance_id"),)


class CustomerRow(Base):
    __tablename__ = "customers"

    id: Mapped[str] = mapped_column(String(MAX_ID_LENGTH), primary_key=True)
    last_sync: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
