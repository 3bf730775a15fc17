"""Entity normalization: source tag + raw payload -> canonical entity."""

import logging
from typing import Optional, Union

from stratus.core.entities import Entity
from stratus.core.registry import normalizers
from stratus.normalizers import aws  # noqa: F401  (registers the AWS normalizers)

logger = logging.getLogger(__name__)


def normalize(source_tag: str, customer_id: str, payload: Union[bytes, str]) -> Optional[Entity]:
    """Normalize a raw resource document.

    Args:
        source_tag: Wire tag naming the source schema
        customer_id: Owning customer
        payload: JSON document as emitted by the scanner

    Returns:
        The canonical entity, or None for a tag nobody normalizes

    Raises:
        DecodeError: If the payload cannot be decoded
        MissingIdentifier: If the resource lacks its natural identifier
    """
    normalizer = normalizers.get(source_tag)
    if normalizer is None:
        logger.debug(f"No normalizer for tag '{source_tag}', ignoring")
        return None
    return normalizer(customer_id, payload)


__all__ = ["normalize", "normalizers"]
