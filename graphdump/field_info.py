# graphdump/field_info.py
"""
Per-class field metadata used by the graph walker.

A class is either *closed* (instances carry neither ``__dict__`` nor
``__slots__``, so there is nothing to enumerate and the dumper falls back to
the object's own ``str()``) or *open* (fields are listed per instance).

Field order for open classes:
  1) dataclass fields, in declaration order,
  2) data descriptors of C-implemented bases (``BaseException.args``,
     ``functools.partial.func``), then ``__slots__`` entries, base classes first,
  3) the remaining instance ``__dict__`` keys, in insertion order.

Dataclass fields declared with ``field(metadata={"transient": True})`` are
skipped, like transient fields of a serialized class.
"""
from __future__ import annotations

import dataclasses
import functools
import logging
import types
from typing import Any, Callable, Dict, List, Optional, Tuple

from .descriptor import get_type_name
from .errors import FieldAccessError

__all__ = [
    "PRIMITIVE_FIELD_TYPES",
    "FieldInfo",
    "ObjectInfo",
    "PrimitiveInfo",
    "ClassInfo",
    "ClosedClassInfo",
    "OpenClassInfo",
    "get_class_info",
]

_log = logging.getLogger("graphdump.field_info")

PRIMITIVE_FIELD_TYPES: Tuple[type, ...] = (bool, int, float, complex)

_PRIMITIVE_BY_NAME: Dict[str, type] = {t.__name__: t for t in PRIMITIVE_FIELD_TYPES}

_PRIMITIVE_FORMATTERS: Dict[type, Callable[[Any], str]] = {
    bool: str,
    int: int.__repr__,
    float: float.__repr__,
    complex: complex.__repr__,
}

_SPECIAL_SLOTS = frozenset({"__dict__", "__weakref__"})

# Py_TPFLAGS_HEAPTYPE: set on classes created by a class statement.
_HEAPTYPE = 1 << 9

_NATIVE_MEMBER_TYPES = (types.GetSetDescriptorType, types.MemberDescriptorType)

Getter = Callable[[Any], Any]


# ----------------------------- Field infos -----------------------------------

class FieldInfo:
    """A named field plus the accessor reading it from an instance."""

    __slots__ = ("name", "_getter")

    def __init__(self, name: str, getter: Getter) -> None:
        self.name = name
        self._getter = getter

    def get_value(self, parent: Any) -> Any:
        try:
            return self._getter(parent)
        except Exception as exc:
            raise FieldAccessError(get_type_name(type(parent)), self.name) from exc

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r})"


class ObjectInfo(FieldInfo):
    """A field whose value is traversed as a node of the graph."""

    __slots__ = ()


class PrimitiveInfo(FieldInfo):
    """A field declared with a primitive type and currently holding one."""

    __slots__ = ("kind",)

    def __init__(self, name: str, getter: Getter, kind: type) -> None:
        super().__init__(name, getter)
        self.kind = kind

    def get_text(self, parent: Any) -> str:
        value = self.get_value(parent)
        # bool is checked first: it is also an int.
        formatter = _PRIMITIVE_FORMATTERS[bool if isinstance(value, bool) else self.kind]
        return formatter(value)


# ----------------------------- Class infos -----------------------------------

class ClassInfo:
    __slots__ = ("type",)

    def __init__(self, type_: type) -> None:
        self.type = type_


class ClosedClassInfo(ClassInfo):
    """Nothing can be enumerated; instances are rendered by their string form."""

    __slots__ = ()


class OpenClassInfo(ClassInfo):
    __slots__ = ("declared", "transient", "members", "has_dict")

    def __init__(
        self,
        type_: type,
        *,
        declared: Dict[str, Optional[type]],
        transient: frozenset,
        members: Tuple[Tuple[str, Any], ...],
        has_dict: bool,
    ) -> None:
        super().__init__(type_)
        self.declared = declared
        self.transient = transient
        self.members = members
        self.has_dict = has_dict

    def fields(self, obj: Any) -> List[FieldInfo]:
        """
        Return the readable fields of `obj`, in dump order.

        Unset slots, unset native attributes and dataclass fields that were
        never assigned are left out.
        """
        members = dict(self.members)
        instance_dict: Dict[str, Any] = vars(obj) if self.has_dict else {}

        names: List[str] = list(self.declared)
        names.extend(dict.fromkeys(name for name, _ in self.members if name not in self.declared))
        names.extend(name for name in instance_dict if name not in self.declared and name not in members)

        out: List[FieldInfo] = []
        for name in names:
            if name in self.transient:
                continue
            member = members.get(name)
            if member is not None:
                getter = _member_getter(member)
                try:
                    value = getter(obj)
                except AttributeError:
                    continue  # unset slot or native attribute
                except Exception as exc:
                    raise FieldAccessError(get_type_name(type(obj)), name) from exc
            elif name in instance_dict:
                getter = _dict_getter(name)
                value = instance_dict[name]
            else:
                continue
            kind = self.declared.get(name)
            if kind is not None and isinstance(value, kind):
                out.append(PrimitiveInfo(name, getter, kind))
            else:
                out.append(ObjectInfo(name, getter))
        return out


def _member_getter(member: Any) -> Getter:
    def get(obj: Any) -> Any:
        return member.__get__(obj, type(obj))
    return get


def _dict_getter(name: str) -> Getter:
    def get(obj: Any) -> Any:
        return vars(obj)[name]
    return get


def _mangle(klass: type, name: str) -> str:
    if name.startswith("__") and not name.endswith("__"):
        return f"_{klass.__name__.lstrip('_')}{name}"
    return name


def _collect_native(type_: type) -> Tuple[Tuple[str, Any], ...]:
    """Data descriptors of C-implemented bases, e.g. ``BaseException.args``."""
    out: List[Tuple[str, Any]] = []
    seen: set[str] = set()
    for klass in reversed(type_.__mro__):
        if klass is object or klass.__flags__ & _HEAPTYPE:
            continue
        for name, member in vars(klass).items():
            if name.startswith("__") or name in seen or not isinstance(member, _NATIVE_MEMBER_TYPES):
                continue
            seen.add(name)
            out.append((name, member))
    return tuple(out)


def _collect_slots(type_: type) -> Tuple[Tuple[str, Any], ...]:
    out: List[Tuple[str, Any]] = []
    seen: set[str] = set()
    for klass in reversed(type_.__mro__):
        raw = klass.__dict__.get("__slots__", ())
        if isinstance(raw, str):
            raw = (raw,)
        for slot in raw:
            name = _mangle(klass, slot)
            if name in _SPECIAL_SLOTS or name in seen:
                continue
            member = klass.__dict__.get(name)
            if member is None or not hasattr(member, "__get__"):
                continue
            seen.add(name)
            out.append((name, member))
    return tuple(out)


def _primitive_kind(annotation: Any) -> Optional[type]:
    if isinstance(annotation, str):
        return _PRIMITIVE_BY_NAME.get(annotation.strip())
    if annotation in PRIMITIVE_FIELD_TYPES:
        return annotation
    return None


@functools.lru_cache(maxsize=None)
def get_class_info(type_: type) -> ClassInfo:
    """Return (and cache) the field metadata of `type_`."""
    members = _collect_native(type_) + _collect_slots(type_)
    has_dict = getattr(type_, "__dictoffset__", 0) != 0
    defines_slots = any("__slots__" in vars(klass) for klass in type_.__mro__)
    if not defines_slots and not has_dict:
        _log.debug("closed class: %s", get_type_name(type_))
        return ClosedClassInfo(type_)

    declared: Dict[str, Optional[type]] = {}
    transient: set[str] = set()
    if dataclasses.is_dataclass(type_):
        for f in dataclasses.fields(type_):
            if f.metadata.get("transient"):
                transient.add(f.name)
                continue
            declared[f.name] = _primitive_kind(f.type)
    return OpenClassInfo(
        type_,
        declared=declared,
        transient=frozenset(transient),
        members=members,
        has_dict=has_dict,
    )
