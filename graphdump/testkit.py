# graphdump/testkit.py
from __future__ import annotations

import difflib
from typing import Any, Optional

from .dumper import dump_structure, dump_structure_with_equivalence_reduction
from .registry import ConstantRegistry

__all__ = [
    "dump",
    "structure_diff",
    "assert_same_structure",
]


def dump(obj: Any, *, equivalence: bool = False, registry: Optional[ConstantRegistry] = None) -> str:
    if equivalence:
        return dump_structure_with_equivalence_reduction(obj, registry)
    return dump_structure(obj, registry)


def structure_diff(
    expected: Any,
    actual: Any,
    *,
    equivalence: bool = False,
    registry: Optional[ConstantRegistry] = None,
    fromfile: str = "expected",
    tofile: str = "actual",
) -> str:
    """
    Unified diff between the dumps of `expected` and `actual` ("" when equal).
    """
    left = dump(expected, equivalence=equivalence, registry=registry)
    right = dump(actual, equivalence=equivalence, registry=registry)
    if left == right:
        return ""
    return "\n".join(
        difflib.unified_diff(
            left.splitlines(), right.splitlines(), fromfile=fromfile, tofile=tofile, lineterm=""
        )
    )


def assert_same_structure(
    expected: Any,
    actual: Any,
    *,
    equivalence: bool = False,
    registry: Optional[ConstantRegistry] = None,
) -> None:
    """
    Assert that two object graphs dump identically.

    Typical use is a serialization round trip: dump the original and the
    deserialized copy. With ``equivalence=True`` sharing that only exists by
    content (equal but distinct instances) is ignored.
    """
    diff = structure_diff(expected, actual, equivalence=equivalence, registry=registry)
    if diff:
        raise AssertionError("The object graphs differ.\n" + diff)
