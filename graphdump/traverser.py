# graphdump/traverser.py
"""
Depth-first walker over an arbitrary object graph.

The walk uses an explicit work stack instead of Python recursion, so the
depth of the graph is only bounded by memory. Children are visited in order,
and each child's cache check happens right before it is rendered, exactly as
a recursive walk would do it.
"""
from __future__ import annotations

import array
import logging
import weakref
from collections.abc import Collection, Mapping
from functools import partial
from typing import Any, Callable, Generic, List, Optional, Sequence, Tuple, TypeVar

from .classifier import should_inline
from .collector import GraphDataCollector, Sink
from .descriptor import Descriptor
from .field_info import OpenClassInfo, PrimitiveInfo, get_class_info
from .registry import ConstantRegistry

__all__ = [
    "WEAK_REFERENCE_TYPES",
    "GraphTraverser",
    "is_byte_sequence",
]

_log = logging.getLogger("graphdump.traverser")

S = TypeVar("S", bound=Sink)

# A task runs one step of the walk and returns its follow-up tasks, in order.
_Task = Callable[[], Sequence["_Task"]]

WEAK_REFERENCE_TYPES: Tuple[type, ...] = (weakref.ref, *weakref.ProxyTypes)

_BYTE_TYPECODES = frozenset("bB")

_NO_TASKS: Tuple[_Task, ...] = ()


def is_byte_sequence(obj: Any) -> bool:
    if isinstance(obj, (bytes, bytearray, memoryview)):
        return True
    return isinstance(obj, array.array) and obj.typecode in _BYTE_TYPECODES


def _to_bytes(obj: Any) -> bytes:
    if isinstance(obj, bytes):
        return obj
    if isinstance(obj, (memoryview, array.array)):
        return obj.tobytes()
    return bytes(obj)


class GraphTraverser(Generic[S]):
    """
    Walks the graph rooted at an object and reports every node to `collector`.

    Parameters
    ----------
    registry : ConstantRegistry | None
        Objects registered there are reported as serialization constants and
        never expanded.
    collector : GraphDataCollector
        Receives one callback per node (see ``graphdump.collector``).
    """

    def __init__(self, registry: Optional[ConstantRegistry], collector: GraphDataCollector[S]) -> None:
        self.registry = registry
        self.collector = collector

    def traverse_object(self, label: Optional[str], obj: Any, sink: S) -> None:
        pending: List[_Task] = [partial(self._visit, label, obj, sink)]
        while pending:
            followups = pending.pop()()
            pending.extend(reversed(followups))

    # ----------------------------- node dispatch -----------------------------

    def _visit(self, label: Optional[str], obj: Any, sink: S) -> Sequence[_Task]:
        collector = self.collector
        if obj is None:
            collector.output_null(label, sink)
            return _NO_TASKS

        # type() rather than isinstance(): weak proxies lie about __class__.
        type_ = type(obj)
        if self.registry is not None:
            tag = self.registry.maybe_get_tag_for_constant(obj)
            if tag is not None:
                collector.output_serialization_constant(label, type_, tag, sink)
                return _NO_TASKS

        if issubclass(type_, WEAK_REFERENCE_TYPES):
            collector.output_weak_reference(label, sink)
            return _NO_TASKS

        if should_inline(type_):
            collector.output_inline_object(label, type_, obj, sink)
            return _NO_TASKS

        descriptor = collector.check_cache(label, type_, obj, sink)
        if descriptor is None:
            return _NO_TASKS

        if is_byte_sequence(obj):
            collector.output_byte_array(label, descriptor, obj, _to_bytes(obj), sink)
            return _NO_TASKS
        if isinstance(obj, array.array):
            collector.output_inline_array(label, descriptor, obj, sink)
            return _NO_TASKS
        if isinstance(obj, Mapping):
            return self._visit_map(label, descriptor, obj, sink)
        if isinstance(obj, Collection):
            return self._visit_collection(label, descriptor, obj, sink)
        return self._visit_fields(label, descriptor, obj, sink)

    def _visit_map(self, label: Optional[str], descriptor: Descriptor, obj: Mapping, sink: S) -> Sequence[_Task]:
        if not obj:
            self.collector.output_empty_aggregate(label, descriptor, obj, sink)
            return _NO_TASKS
        child = self.collector.init_aggregate(label, descriptor, obj, sink)
        tasks: List[_Task] = []
        for key, value in obj.items():
            tasks.append(partial(self._visit, "key=", key, child))
            tasks.append(partial(self._visit, "value=", value, child))
        tasks.append(partial(self._complete, child))
        return tasks

    def _visit_collection(
        self, label: Optional[str], descriptor: Descriptor, obj: Collection, sink: S
    ) -> Sequence[_Task]:
        elements = list(obj)
        if not elements:
            self.collector.output_empty_aggregate(label, descriptor, obj, sink)
            return _NO_TASKS
        child = self.collector.init_aggregate(label, descriptor, obj, sink)
        tasks: List[_Task] = [partial(self._visit, None, e, child) for e in elements]
        tasks.append(partial(self._complete, child))
        return tasks

    def _visit_fields(self, label: Optional[str], descriptor: Descriptor, obj: Any, sink: S) -> Sequence[_Task]:
        info = get_class_info(type(obj))
        # should_inline() already filtered closed classes.
        assert isinstance(info, OpenClassInfo), info
        fields = info.fields(obj)
        if not fields:
            self.collector.output_empty_aggregate(label, descriptor, obj, sink)
            return _NO_TASKS
        child = self.collector.init_aggregate(label, descriptor, obj, sink)
        tasks: List[_Task] = []
        for field in fields:
            if isinstance(field, PrimitiveInfo):
                tasks.append(partial(self._primitive, field, obj, child))
            else:
                tasks.append(partial(self._visit_field, field, obj, child))
        tasks.append(partial(self._complete, child))
        return tasks

    # ----------------------------- leaf tasks --------------------------------

    def _visit_field(self, field: Any, parent: Any, sink: S) -> Sequence[_Task]:
        return self._visit(field.name + "=", field.get_value(parent), sink)

    def _primitive(self, info: PrimitiveInfo, parent: Any, sink: S) -> Sequence[_Task]:
        self.collector.output_primitive(info, parent, sink)
        return _NO_TASKS

    def _complete(self, sink: S) -> Sequence[_Task]:
        sink.complete_aggregate()
        return _NO_TASKS
