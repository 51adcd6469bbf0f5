# graphdump/identity.py
from __future__ import annotations

from typing import Any, Dict, Iterator, MutableMapping, Tuple, TypeVar

__all__ = [
    "IdentityKey",
    "IdentityMap",
]

V = TypeVar("V")


class IdentityKey:
    """
    Hashable wrapper comparing the wrapped object by identity (``is``).

    Holding the wrapper keeps the object alive, so its ``id()`` cannot be reused
    by another object while the key is stored somewhere.
    """

    __slots__ = ("obj",)

    def __init__(self, obj: Any) -> None:
        self.obj = obj

    def __eq__(self, other: object) -> bool:
        return isinstance(other, IdentityKey) and other.obj is self.obj

    def __hash__(self) -> int:
        return id(self.obj)

    def __repr__(self) -> str:
        return f"IdentityKey({type(self.obj).__name__}@{id(self.obj):#x})"


class IdentityMap(MutableMapping[Any, V]):
    """
    Mapping keyed by object identity instead of ``__eq__``/``__hash__``.

    Works for unhashable keys (lists, dicts) and never merges two distinct but
    equal objects. Keys are kept alive for the lifetime of the map.
    """

    def __init__(self) -> None:
        self._data: Dict[int, Tuple[Any, V]] = {}

    def __getitem__(self, key: Any) -> V:
        return self._data[id(key)][1]

    def __setitem__(self, key: Any, value: V) -> None:
        self._data[id(key)] = (key, value)

    def __delitem__(self, key: Any) -> None:
        del self._data[id(key)]

    def __contains__(self, key: object) -> bool:
        return id(key) in self._data

    def __iter__(self) -> Iterator[Any]:
        for key, _ in self._data.values():
            yield key

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"IdentityMap(<{len(self)} entries>)"
