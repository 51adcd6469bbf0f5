# graphdump/fingerprinter.py
"""
Content fingerprints for every expandable object of a graph.

Fingerprints are computed bottom-up. The graph is walked once while Tarjan's
algorithm groups objects into strongly connected components; a component is
complete only after everything it references is complete, so by then all
children already carry fingerprints. The fingerprint of an object is the
SHA-256 of its visit-order text (see ``dumper.compute_visit_order``), in
which fingerprinted children collapse to ``Type[fingerprint]``.

Cycles cannot be resolved this way. For a component with several members
only its entry object (the first one visited) is fingerprinted; the inner
members have none and are deduplicated by identity by the dumper.
"""
from __future__ import annotations

import hashlib
import io
import logging
from typing import Any, List, Optional

from .descriptor import Descriptor, get_descriptor
from .field_info import PrimitiveInfo
from .identity import IdentityMap
from .registry import ConstantRegistry
from .traverser import GraphTraverser

__all__ = [
    "compute_fingerprints",
    "Fingerprinter",
]

_log = logging.getLogger("graphdump.fingerprinter")


def compute_fingerprints(registry: Optional[ConstantRegistry], obj: Any) -> IdentityMap[str]:
    """
    Return a fingerprint for each object reachable from `obj` that could be
    resolved. Inline values, weak references, registry constants and inner
    members of object cycles are absent from the result.
    """
    fingerprinter = Fingerprinter(registry)
    GraphTraverser(registry, fingerprinter).traverse_object(None, obj, _FrameSink(fingerprinter, None))
    _log.debug(
        "fingerprinted %d of %d objects", len(fingerprinter.fingerprints), len(fingerprinter.frames)
    )
    return fingerprinter.fingerprints


class _Frame:
    __slots__ = ("obj", "index", "low", "parent", "on_stack")

    def __init__(self, obj: Any, index: int, parent: Optional[_Frame]) -> None:
        self.obj = obj
        self.index = index
        self.low = index
        self.parent = parent
        self.on_stack = True


class _FrameSink:
    """Sink handed to the children of one aggregate: remembers their parent frame."""

    __slots__ = ("fingerprinter", "frame")

    def __init__(self, fingerprinter: Fingerprinter, frame: Optional[_Frame]) -> None:
        self.fingerprinter = fingerprinter
        self.frame = frame

    def complete_aggregate(self) -> None:
        assert self.frame is not None
        self.fingerprinter.finish(self.frame)


class Fingerprinter:
    """Collector running Tarjan's algorithm over the walk and fingerprinting components."""

    def __init__(self, registry: Optional[ConstantRegistry]) -> None:
        self.registry = registry
        self.fingerprints: IdentityMap[str] = IdentityMap()
        self.frames: IdentityMap[_Frame] = IdentityMap()
        self._stack: List[_Frame] = []

    # Values that never receive fingerprints.

    def output_null(self, label: Optional[str], sink: _FrameSink) -> None:
        pass

    def output_serialization_constant(
        self, label: Optional[str], type_: type, tag: int, sink: _FrameSink
    ) -> None:
        pass

    def output_weak_reference(self, label: Optional[str], sink: _FrameSink) -> None:
        pass

    def output_inline_object(self, label: Optional[str], type_: type, obj: Any, sink: _FrameSink) -> None:
        pass

    def output_primitive(self, info: PrimitiveInfo, parent: Any, sink: _FrameSink) -> None:
        pass

    def check_cache(
        self, label: Optional[str], type_: type, obj: Any, sink: _FrameSink
    ) -> Optional[Descriptor]:
        parent = sink.frame
        frame = self.frames.get(obj)
        if frame is not None:
            if frame.on_stack and parent is not None:
                parent.low = min(parent.low, frame.index)
            return None
        frame = _Frame(obj, len(self.frames), parent)
        self.frames[obj] = frame
        self._stack.append(frame)
        return get_descriptor(type_, frame.index)

    # Leaves complete immediately.

    def output_byte_array(
        self, label: Optional[str], descriptor: Descriptor, obj: Any, data: bytes, sink: _FrameSink
    ) -> None:
        self.finish(self.frames[obj])

    def output_inline_array(
        self, label: Optional[str], descriptor: Descriptor, arr: Any, sink: _FrameSink
    ) -> None:
        self.finish(self.frames[arr])

    def output_empty_aggregate(
        self, label: Optional[str], descriptor: Descriptor, obj: Any, sink: _FrameSink
    ) -> None:
        self.finish(self.frames[obj])

    def init_aggregate(
        self, label: Optional[str], descriptor: Descriptor, obj: Any, sink: _FrameSink
    ) -> _FrameSink:
        return _FrameSink(self, self.frames[obj])

    def finish(self, frame: _Frame) -> None:
        """Called once every child of `frame` was visited."""
        if frame.low == frame.index:
            component: List[_Frame] = []
            while True:
                member = self._stack.pop()
                member.on_stack = False
                component.append(member)
                if member is frame:
                    break
            if len(component) > 1:
                _log.debug(
                    "cycle of %d objects; fingerprinting its entry %s only",
                    len(component),
                    type(frame.obj).__name__,
                )
            self.fingerprints[frame.obj] = self._fingerprint(frame.obj)
        if frame.parent is not None:
            frame.parent.low = min(frame.parent.low, frame.low)

    def _fingerprint(self, obj: Any) -> str:
        from .dumper import compute_visit_order

        out = io.StringIO()
        compute_visit_order(self.registry, self.fingerprints, obj, out)
        return hashlib.sha256(out.getvalue().encode("utf-8")).hexdigest()
