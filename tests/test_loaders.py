# tests/test_loaders.py
import os.path
import pickle
import sys
from pathlib import Path

import pytest

from graphdump.errors import TargetLoadError
from graphdump.loaders import (
    compute_import_roots,
    load_constants,
    load_pickle,
    prepend_sys_path,
    resolve_target,
)


# ---------------------- 1) Pickle files ----------------------

def test_load_pickle_round_trip(tmp_path: Path):
    p = tmp_path / "obj.pkl"
    p.write_bytes(pickle.dumps({"k": [1, 2]}))
    assert load_pickle(p) == {"k": [1, 2]}


def test_load_pickle_missing_file(tmp_path: Path):
    with pytest.raises(TargetLoadError, match="not found"):
        load_pickle(tmp_path / "nope.pkl")


def test_load_pickle_corrupt_file(tmp_path: Path):
    p = tmp_path / "bad.pkl"
    p.write_bytes(b"definitely not a pickle")
    with pytest.raises(TargetLoadError, match="cannot unpickle"):
        load_pickle(p)


# ---------------------- 2) module:attr targets ----------------------

def test_resolve_target_with_colon():
    assert resolve_target("os.path:join") is os.path.join


def test_resolve_target_dotted_picks_longest_module():
    assert resolve_target("os.path.join") is os.path.join


def test_resolve_target_errors():
    with pytest.raises(TargetLoadError, match="no attribute"):
        resolve_target("os.path:does_not_exist")
    with pytest.raises(TargetLoadError, match="cannot import"):
        resolve_target("graphdump_no_such_module:x")
    with pytest.raises(TargetLoadError, match="no importable module"):
        resolve_target("graphdump_no_such_module.x")


def test_load_constants():
    assert load_constants(None) == []
    assert load_constants(["os.path:sep"]) == [os.path.sep]


# ---------------------- 3) sys.path roots ----------------------

def test_compute_import_roots_dedup_and_relative(tmp_path: Path):
    (tmp_path / "src").mkdir()
    roots = compute_import_roots(tmp_path, ["src", "missing", str(tmp_path)])
    assert roots == [tmp_path.resolve().as_posix(), (tmp_path / "src").resolve().as_posix()]


def test_prepend_sys_path_keeps_order(tmp_path: Path, monkeypatch):
    monkeypatch.setattr(sys, "path", ["/already"])
    prepend_sys_path([tmp_path / "a", tmp_path / "b", "/already"])
    assert sys.path == [(tmp_path / "a").as_posix(), (tmp_path / "b").as_posix(), "/already"]
