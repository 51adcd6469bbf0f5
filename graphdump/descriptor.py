# graphdump/descriptor.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

__all__ = [
    "Descriptor",
    "get_type_name",
    "get_descriptor",
    "format_hex",
    "format_inline_elements",
]


@dataclass(frozen=True)
class Descriptor:
    """Names a node in the dump: its type plus the reference id it was given."""
    type_name: str
    reference_id: int

    def __str__(self) -> str:
        return f"{self.type_name}#{self.reference_id}"


def _canonical_name(type_: type) -> Optional[str]:
    qualname = getattr(type_, "__qualname__", None)
    module = getattr(type_, "__module__", None)
    if not isinstance(qualname, str) or not isinstance(module, str):
        return None
    # Local classes are not importable under their qualname.
    if "<" in qualname:
        return None
    if module == "builtins":
        return qualname
    return f"{module}.{qualname}"


def _internal_name(type_: type) -> str:
    name = getattr(type_, "__qualname__", None) or getattr(type_, "__name__", None)
    if not isinstance(name, str):
        return repr(type_)
    module = getattr(type_, "__module__", None)
    if isinstance(module, str) and module != "builtins":
        return f"{module}.{name}"
    return name


def get_type_name(type_: type) -> str:
    """
    Return a fully-qualified name for `type_`, e.g. ``collections.OrderedDict``.

    Builtins are printed without the ``builtins.`` prefix. Classes that have no
    canonical name (defined inside a function) fall back to their internal
    ``module.qualname`` spelling, so this never fails.
    """
    name = _canonical_name(type_)
    if name is None:
        name = _internal_name(type_)
    return name


def get_descriptor(type_: type, reference_id: int) -> Descriptor:
    return Descriptor(get_type_name(type_), reference_id)


def format_hex(data: bytes) -> str:
    """Uppercase hex, two digits per byte, no separators."""
    return data.hex().upper()


def format_inline_elements(descriptor: Descriptor, elements: Iterable[object]) -> str:
    return f"{descriptor} [" + ", ".join(str(e) for e in elements) + "]"
