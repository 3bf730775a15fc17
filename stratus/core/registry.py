"""Tag-keyed registry of normalizer functions.

Normalizer modules register themselves at import time:

    @normalizers.register("SecurityGroup")
    def normalize_security_group(customer_id, payload):
        ...
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, FrozenSet, Optional, Union

from stratus.core.entities import Entity

logger = logging.getLogger(__name__)

NormalizerFn = Callable[[str, Union[bytes, str]], Entity]


class NormalizerRegistry:
    """Maps wire tags to the function that normalizes that source schema."""

    def __init__(self) -> None:
        self._normalizers: Dict[str, NormalizerFn] = {}

    def register(self, tag: str) -> Callable[[NormalizerFn], NormalizerFn]:
        """Decorator registering a normalizer under a wire tag.

        Raises:
            ValueError: If the tag is already registered
        """

        def decorator(func: NormalizerFn) -> NormalizerFn:
            if tag in self._normalizers:
                raise ValueError(f"Normalizer already registered for tag '{tag}'")
            self._normalizers[tag] = func
            logger.debug(f"Registered normalizer {func.__name__} for {tag}")
            return func

        return decorator

    def get(self, tag: str) -> Optional[NormalizerFn]:
        return self._normalizers.get(tag)

    @property
    def tags(self) -> FrozenSet[str]:
        return frozenset(self._normalizers)

    def __contains__(self, tag: object) -> bool:
        return tag in self._normalizers

    def __len__(self) -> int:
        return len(self._normalizers)


normalizers = NormalizerRegistry()
