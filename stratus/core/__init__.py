"""Core entity types and the normalizer registry."""

from stratus.core.entities import Customer, Entity, Group, Instance, RouteTable, Subnet
from stratus.core.registry import NormalizerRegistry, normalizers

__all__ = [
    "Customer",
    "Entity",
    "Group",
    "Instance",
    "RouteTable",
    "Subnet",
    "NormalizerRegistry",
    "normalizers",
]
