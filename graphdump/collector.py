# graphdump/collector.py
"""
Callback interface between the graph walker and whatever consumes the walk.

The walker classifies every node and calls exactly one ``output_*`` method
for it (or ``init_aggregate`` followed by the children and
``Sink.complete_aggregate``). Each collector chooses its own sink type: the
text dumper writes into a ``TextSink``, the fingerprinter tracks strongly
connected components.
"""
from __future__ import annotations

from typing import Any, Optional, Protocol, TypeVar

from .descriptor import Descriptor
from .field_info import PrimitiveInfo

__all__ = [
    "Sink",
    "GraphDataCollector",
]


class Sink(Protocol):
    def complete_aggregate(self) -> None:
        """Called once all children of the aggregate opened by ``init_aggregate`` were visited."""
        ...


S = TypeVar("S", bound=Sink)


class GraphDataCollector(Protocol[S]):
    def output_null(self, label: Optional[str], sink: S) -> None:
        ...

    def output_serialization_constant(
        self, label: Optional[str], type_: type, tag: int, sink: S
    ) -> None:
        ...

    def output_weak_reference(self, label: Optional[str], sink: S) -> None:
        ...

    def output_inline_object(self, label: Optional[str], type_: type, obj: Any, sink: S) -> None:
        ...

    def output_primitive(self, info: PrimitiveInfo, parent: Any, sink: S) -> None:
        ...

    def check_cache(
        self, label: Optional[str], type_: type, obj: Any, sink: S
    ) -> Optional[Descriptor]:
        """
        Return None when `obj` is already represented (the walker must not
        descend), or a fresh Descriptor when this is its first visit.
        """
        ...

    def output_byte_array(
        self, label: Optional[str], descriptor: Descriptor, obj: Any, data: bytes, sink: S
    ) -> None:
        ...

    def output_inline_array(
        self, label: Optional[str], descriptor: Descriptor, arr: Any, sink: S
    ) -> None:
        ...

    def output_empty_aggregate(
        self, label: Optional[str], descriptor: Descriptor, obj: Any, sink: S
    ) -> None:
        ...

    def init_aggregate(
        self, label: Optional[str], descriptor: Descriptor, obj: Any, sink: S
    ) -> S:
        """Open an aggregate; children are reported into the returned sink."""
        ...
