"""Stratus repository layer.

The consumer, the onboarding workflow and the API all write and read
entities through EntityRepository; SqlEntityRepository is the only
implementation.
"""

from stratus.repositories.base import EntityRepository, GroupDetail
from stratus.repositories.sql_repository import (
    SqlEntityRepository,
    create_engine_from_settings,
)

__all__ = [
    "EntityRepository",
    "GroupDetail",
    "SqlEntityRepository",
    "create_engine_from_settings",
]
