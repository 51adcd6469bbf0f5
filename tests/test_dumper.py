# tests/test_dumper.py
import array
import dataclasses
import enum
import re
import sys
import weakref

import pytest

from graphdump.descriptor import get_type_name
from graphdump.dumper import WEAK_REFERENCE_NAME, dump_structure, dump_structure_with_equivalence_reduction
from graphdump.errors import FieldAccessError
from graphdump.registry import ConstantRegistry


class Node:
    def __init__(self, value, next=None):
        self.value = value
        self.next = next


class Empty:
    pass


class Perm(enum.Flag):
    R = 1
    W = 2


@dataclasses.dataclass
class Point:
    x: int
    y: float
    label: str
    cache: dict = dataclasses.field(default_factory=dict, metadata={"transient": True})


class Broken:
    __slots__ = ("value",)


Broken.value = property(lambda self: 1 / 0)


def _ids(text):
    return [int(m) for m in re.findall(r"#(\d+) \[", text)]


# ---------------------- 1) Leaves ----------------------

def test_null_root():
    assert dump_structure(None) == "null"


def test_inline_root():
    assert dump_structure("hello") == "hello"
    assert dump_structure(42) == "42"


def test_bytes_are_hex_with_an_id():
    assert dump_structure(bytes([0x0A, 0xFF])) == "bytes#0 [0AFF]"
    assert dump_structure(bytearray([0, 1])) == "bytearray#0 [0001]"
    assert dump_structure(array.array("B", [1, 2])) == "array.array#0 [0102]"


def test_other_arrays_list_their_elements_inline():
    assert dump_structure(array.array("i", [1, 2])) == "array.array#0 [1, 2]"


def test_empty_aggregates():
    assert dump_structure([]) == "list#0 []"
    assert dump_structure({}) == "dict#0 []"
    assert dump_structure(Empty()) == f"{get_type_name(Empty)}#0 []"


# ---------------------- 2) Aggregates ----------------------

def test_list_of_inline_values():
    assert dump_structure([1, "a", True, 1.5, None]) == (
        "list#0 [\n"
        "  1\n"
        "  a\n"
        "  True\n"
        "  1.5\n"
        "  null\n"
        "]"
    )


def test_map_entries_are_labelled():
    assert dump_structure({"k": [1], 2: None}) == (
        "dict#0 [\n"
        "  key=k\n"
        "  value=list#1 [\n"
        "    1\n"
        "  ]\n"
        "  key=2\n"
        "  value=null\n"
        "]"
    )


def test_object_fields_are_labelled():
    name = get_type_name(Node)
    assert dump_structure(Node(1, Node(2))) == (
        f"{name}#0 [\n"
        "  value=1\n"
        f"  next={name}#1 [\n"
        "    value=2\n"
        "    next=null\n"
        "  ]\n"
        "]"
    )


def test_dataclass_primitive_and_transient_fields():
    name = get_type_name(Point)
    assert dump_structure(Point(3, 1.5, "p", {"skipped": 1})) == (
        f"{name}#0 [\n"
        "  x=3\n"
        "  y=1.5\n"
        "  label=p\n"
        "]"
    )


# ---------------------- 3) Deduplication ----------------------

def test_shared_aggregate_becomes_a_backreference():
    shared = [1]
    assert dump_structure([shared, shared]) == (
        "list#0 [\n"
        "  list#1 [\n"
        "    1\n"
        "  ]\n"
        "  list#1\n"
        "]"
    )


def test_equal_but_distinct_objects_are_not_merged():
    text = dump_structure([[1], [1]])
    assert _ids(text) == [0, 1, 2]


def test_strings_are_never_deduplicated():
    s = "repeated value"
    assert dump_structure([s, s]) == "list#0 [\n  repeated value\n  repeated value\n]"


def test_bytes_are_deduplicated():
    b = bytes([1, 2])
    assert dump_structure([b, b]) == "list#0 [\n  bytes#1 [0102]\n  bytes#1\n]"


def test_self_cycle_terminates():
    a = []
    a.append(a)
    assert dump_structure(a) == "list#0 [\n  list#0\n]"

    n = Node(1)
    n.next = n
    assert dump_structure(n) == f"{get_type_name(Node)}#0 [\n  value=1\n  next={get_type_name(Node)}#0\n]"


def test_ids_are_dense_in_first_visit_order():
    a, b, c = [1], [2], [3]
    root = {"a": a, "b": [b, a], "c": (c, b)}
    ids = _ids(dump_structure(root))
    assert ids == list(range(len(ids)))


def test_dump_is_deterministic():
    shared = Node("s")
    root = [Node(1, shared), Node(2, shared), {"k": shared}]
    assert dump_structure(root) == dump_structure(root)


def test_deep_graph_does_not_hit_the_recursion_limit():
    depth = sys.getrecursionlimit() + 500
    root = []
    cur = root
    for _ in range(depth):
        nxt = []
        cur.append(nxt)
        cur = nxt
    text = dump_structure(root)
    assert text.startswith("list#0 [\n  list#1 [")
    assert f"list#{depth} []" in text


# ---------------------- 4) Constants, weak references, errors ----------------------

def test_registry_constants_are_not_expanded():
    sentinel = [1]
    registry = ConstantRegistry([object(), sentinel])
    assert dump_structure([sentinel, sentinel], registry) == (
        "list#0 [\n"
        "  list[SERIALIZATION_CONSTANT:2]\n"
        "  list[SERIALIZATION_CONSTANT:2]\n"
        "]"
    )


def test_weak_references_are_opaque():
    target = Node(1)
    ref = weakref.ref(target)
    proxy = weakref.proxy(target)
    assert dump_structure([ref, proxy]) == f"list#0 [\n  {WEAK_REFERENCE_NAME}\n  {WEAK_REFERENCE_NAME}\n]"


def test_field_access_errors_abort_the_dump():
    with pytest.raises(FieldAccessError):
        dump_structure([Broken()])


# ---------------------- 5) Flags and exceptions ----------------------

def test_flag_members_are_inline_and_never_deduplicated():
    both = Perm.R | Perm.W
    assert dump_structure([Perm.R, Perm.R, both]) == f"list#0 [\n  {Perm.R}\n  {Perm.R}\n  {both}\n]"


def test_exception_dump_includes_args():
    assert dump_structure(ValueError("boom")) == (
        "ValueError#0 [\n"
        "  args=tuple#1 [\n"
        "    boom\n"
        "  ]\n"
        "]"
    )


def test_exceptions_with_different_args_stay_distinct_under_equivalence():
    root = [ValueError("a"), ValueError("b")]
    text = dump_structure_with_equivalence_reduction(root)
    assert text == dump_structure(root)
    assert "ValueError#1 [" in text and "ValueError#3 [" in text
