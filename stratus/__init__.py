"""Stratus - cloud resource inventory.

Ingests resource descriptions produced by a cloud scanner, normalizes
them into instances and groups, and stores them with their memberships
so they can be queried per customer.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
