"""Verbose, deterministic text dumps of object graphs for serialization tests."""
from .dumper import compute_visit_order, dump_structure, dump_structure_with_equivalence_reduction
from .registry import ConstantRegistry
from .testkit import assert_same_structure

__all__ = [
    "dump_structure",
    "dump_structure_with_equivalence_reduction",
    "compute_visit_order",
    "ConstantRegistry",
    "assert_same_structure",
]
