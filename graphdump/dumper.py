# graphdump/dumper.py
"""
High fidelity text dumps of arbitrary object graphs.

The dump is a depth-first walk formatted as an indented, multiline string.
It exists mainly to test and debug serialization: a value and its
deserialized copy should produce the same dump.

Every object that is expanded receives a reference id, in first-visit order
starting at 0. When the same object is met again it is printed only as a
backreference ``Type#id``, which handles cycles and shared sub-structure.

``dump_structure_with_equivalence_reduction`` goes one step further and
deduplicates by content: objects with the same fingerprint (see
``graphdump.fingerprinter``) share one reference id even when they are
distinct instances.
"""
from __future__ import annotations

import io
import logging
import weakref
from typing import Any, Dict, Optional, TextIO, Union

from .descriptor import (
    Descriptor,
    format_hex,
    format_inline_elements,
    get_descriptor,
    get_type_name,
)
from .field_info import PrimitiveInfo
from .identity import IdentityKey, IdentityMap
from .registry import ConstantRegistry
from .sink import TextSink
from .traverser import GraphTraverser

__all__ = [
    "DedupKey",
    "Dumper",
    "dump_structure",
    "dump_structure_with_equivalence_reduction",
    "compute_visit_order",
]

_log = logging.getLogger("graphdump.dumper")

# Identity keys and fingerprints share one id sequence.
DedupKey = Union[IdentityKey, str]

WEAK_REFERENCE_NAME = get_type_name(weakref.ref)


def dump_structure(obj: Any, registry: Optional[ConstantRegistry] = None) -> str:
    """
    Format an arbitrary object into a string.

    The format is verbose and meant for tests and debugging.

    Returns
    -------
    str
        A multiline representation of `obj` without a trailing newline.
    """
    return _dump_structure(registry, None, obj)


def dump_structure_with_equivalence_reduction(
    obj: Any, registry: Optional[ConstantRegistry] = None
) -> str:
    """Like ``dump_structure`` but objects with equal fingerprints are deduplicated."""
    from .fingerprinter import compute_fingerprints

    return _dump_structure(registry, compute_fingerprints(registry, obj), obj)


def _dump_structure(
    registry: Optional[ConstantRegistry],
    fingerprints: Optional[IdentityMap[str]],
    obj: Any,
) -> str:
    out = io.StringIO()
    dumper = Dumper(fingerprints, emit_fingerprints=False)
    GraphTraverser(registry, dumper).traverse_object(None, obj, TextSink(out))
    _log.debug("dumped %s: %d reference ids", type(obj).__name__, len(dumper.reference_ids))
    return out.getvalue()


def compute_visit_order(
    registry: Optional[ConstantRegistry],
    fingerprints: Optional[IdentityMap[str]],
    obj: Any,
    out: TextIO,
) -> Dict[DedupKey, int]:
    """
    Traverse the graph rooted at `obj` and return the traversal order.

    Objects that have an entry in `fingerprints` are written to `out` as
    ``Type[fingerprint]`` and are neither expanded nor numbered.

    Returns
    -------
    dict
        Maps each numbered object (as an ``IdentityKey``) to its visit order.
    """
    dumper = Dumper(fingerprints, emit_fingerprints=True)
    GraphTraverser(registry, dumper).traverse_object(None, obj, TextSink(out))
    return dumper.reference_ids


class Dumper:
    """
    Collector rendering the walk into a ``TextSink``.

    Parameters
    ----------
    fingerprints : IdentityMap[str] | None
        Content fingerprints by object. Even when present, not every object has
        one: inline values and inner members of object cycles are missing and
        are deduplicated by identity instead.
    emit_fingerprints : bool
        When true, objects with a fingerprint are written as the fingerprint
        itself and never expanded. When false, the fingerprint only serves as
        the deduplication key and the first object carrying it is expanded.
    """

    def __init__(self, fingerprints: Optional[IdentityMap[str]], *, emit_fingerprints: bool) -> None:
        self.fingerprints = fingerprints
        self.emit_fingerprints = emit_fingerprints
        self.reference_ids: Dict[DedupKey, int] = {}

    def output_null(self, label: Optional[str], sink: TextSink) -> None:
        sink.output(label, "null")

    def output_serialization_constant(
        self, label: Optional[str], type_: type, tag: int, sink: TextSink
    ) -> None:
        sink.output(label, f"{get_type_name(type_)}[SERIALIZATION_CONSTANT:{tag}]")

    def output_weak_reference(self, label: Optional[str], sink: TextSink) -> None:
        sink.output(label, WEAK_REFERENCE_NAME)

    def output_inline_object(self, label: Optional[str], type_: type, obj: Any, sink: TextSink) -> None:
        sink.output(label, str(obj))

    def output_primitive(self, info: PrimitiveInfo, parent: Any, sink: TextSink) -> None:
        sink.output(info.name + "=", info.get_text(parent))

    def check_cache(
        self, label: Optional[str], type_: type, obj: Any, sink: TextSink
    ) -> Optional[Descriptor]:
        next_id = len(self.reference_ids)
        fingerprint = self.fingerprints.get(obj) if self.fingerprints is not None else None
        if fingerprint is not None:
            if self.emit_fingerprints:
                sink.output(label, f"{get_type_name(type_)}[{fingerprint}]")
                return None
            # Looks up the reference id by content.
            previous_id = self.reference_ids.setdefault(fingerprint, next_id)
        else:
            # No fingerprint: deduplicates by object identity.
            previous_id = self.reference_ids.setdefault(IdentityKey(obj), next_id)
        if previous_id != next_id:
            sink.output(label, str(get_descriptor(type_, previous_id)))
            return None
        return get_descriptor(type_, next_id)

    def output_byte_array(
        self, label: Optional[str], descriptor: Descriptor, obj: Any, data: bytes, sink: TextSink
    ) -> None:
        sink.output(label, f"{descriptor} [{format_hex(data)}]")

    def output_inline_array(
        self, label: Optional[str], descriptor: Descriptor, arr: Any, sink: TextSink
    ) -> None:
        sink.output(label, format_inline_elements(descriptor, arr))

    def output_empty_aggregate(
        self, label: Optional[str], descriptor: Descriptor, obj: Any, sink: TextSink
    ) -> None:
        sink.output(label, f"{descriptor} []")

    def init_aggregate(
        self, label: Optional[str], descriptor: Descriptor, obj: Any, sink: TextSink
    ) -> TextSink:
        sink.open_aggregate(label, str(descriptor))
        return sink
