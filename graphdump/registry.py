# graphdump/registry.py
from __future__ import annotations

import logging
from typing import Any, Iterable, Optional

from .identity import IdentityMap

__all__ = ["ConstantRegistry"]

_log = logging.getLogger("graphdump.registry")


class ConstantRegistry:
    """
    Maps singleton objects to small integer tags.

    Registered objects are rendered as ``Type[SERIALIZATION_CONSTANT:<tag>]``
    and never expanded. Lookup is by identity; tags start at 1 and follow
    registration order.
    """

    def __init__(self, constants: Iterable[Any] = ()) -> None:
        self._tags: IdentityMap[int] = IdentityMap()
        for obj in constants:
            self.register(obj)

    def register(self, obj: Any) -> int:
        """Register `obj` (idempotent) and return its tag."""
        tag = self._tags.get(obj)
        if tag is None:
            tag = len(self._tags) + 1
            self._tags[obj] = tag
            _log.debug("constant %d: %s", tag, type(obj).__name__)
        return tag

    def maybe_get_tag_for_constant(self, obj: Any) -> Optional[int]:
        return self._tags.get(obj)

    def __len__(self) -> int:
        return len(self._tags)

    def __contains__(self, obj: object) -> bool:
        return obj in self._tags
