# graphdump/classifier.py
"""
Decides which types are rendered inline, by their own ``str()``, instead of
being expanded as structured nodes with a reference id.

Inline values never take part in deduplication: the same string instance
appearing twice is printed twice.
"""
from __future__ import annotations

import array
import enum
import functools
import types
from collections.abc import Collection, Mapping
from decimal import Decimal
from fractions import Fraction
from typing import Tuple

from .field_info import PRIMITIVE_FIELD_TYPES, ClosedClassInfo, get_class_info

__all__ = [
    "ARRAY_TYPES",
    "DIRECT_INLINE_TYPES",
    "SYNTHETIC_TYPES",
    "is_array_type",
    "is_container_type",
    "should_inline",
]

ARRAY_TYPES: Tuple[type, ...] = (bytes, bytearray, memoryview, array.array)

# Text is a Collection in Python but renders as a value.
DIRECT_INLINE_TYPES: Tuple[type, ...] = (str, type, Decimal, Fraction, enum.Enum)

SYNTHETIC_TYPES: Tuple[type, ...] = (
    types.FunctionType,
    types.BuiltinFunctionType,
    types.MethodType,
    types.MethodWrapperType,
    types.WrapperDescriptorType,
    types.MethodDescriptorType,
    types.ClassMethodDescriptorType,
    types.GetSetDescriptorType,
    types.MemberDescriptorType,
    types.ModuleType,
    types.CodeType,
    types.FrameType,
    types.TracebackType,
    types.GeneratorType,
    types.CoroutineType,
    types.AsyncGeneratorType,
    types.CellType,
)


def is_array_type(type_: type) -> bool:
    return issubclass(type_, ARRAY_TYPES)


def is_container_type(type_: type) -> bool:
    # Flag members iterate over their bits but are values.
    if issubclass(type_, (str, enum.Enum)):
        return False
    return issubclass(type_, (Mapping, Collection))


@functools.lru_cache(maxsize=None)
def should_inline(type_: type) -> bool:
    if is_array_type(type_):
        return False
    if is_container_type(type_):
        # Containers get dedicated handling and do not depend on field metadata.
        return False
    return (
        issubclass(type_, PRIMITIVE_FIELD_TYPES)
        or issubclass(type_, DIRECT_INLINE_TYPES)
        or issubclass(type_, SYNTHETIC_TYPES)
        # Closed classes have nothing to expand; their string form is all we have.
        or isinstance(get_class_info(type_), ClosedClassInfo)
    )
