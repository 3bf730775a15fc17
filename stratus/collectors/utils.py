"""Common utilities for the AWS discoverer."""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any, Dict, List, Optional


def paginate_collect(
    client: Any,
    method: str,
    results_key: str,
    nested_key: Optional[str] = None,
    **paginate_kwargs: Any,
) -> List[Dict[str, Any]]:
    """Generic paginated AWS API collection.

    Unlike a best-effort collector, API errors propagate so the caller
    can report the failed resource kind.

    Args:
        client: boto3 service client
        method: Name of the paginator method (e.g., 'describe_subnets')
        results_key: Key in each page containing results (e.g., 'Subnets')
        nested_key: Key to flatten inside each result (e.g., 'Instances'
            inside 'Reservations')
        **paginate_kwargs: Additional arguments passed to paginator

    Returns:
        List of collected items

    Raises:
        botocore.exceptions.ClientError: If AWS rejects a page request
        botocore.exceptions.BotoCoreError: On transport or credential errors

    Example:
        >>> ec2 = session.client('ec2')
        >>> instances = paginate_collect(ec2, 'describe_instances', 'Reservations', 'Instances')
    """
    paginator = client.get_paginator(method)
    results: List[Dict[str, Any]] = []
    for page in paginator.paginate(**paginate_kwargs):
        for item in page.get(results_key, []):
            if nested_key:
                results.extend(item.get(nested_key, []))
            else:
                results.append(item)
    return results


def json_serial(obj):
    """JSON serializer for objects not serializable by default."""
    if isinstance(obj, datetime):
        return obj.isoformat()
    raise TypeError(f"Type {type(obj)} not serializable")


def dumps(obj: Any) -> bytes:
    return json.dumps(obj, default=json_serial).encode("utf-8")
