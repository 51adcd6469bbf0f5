# tests/test_cli.py
import pickle
import sys
import textwrap
from pathlib import Path

import pytest

from graphdump.cli import main


def _pickle(path: Path, obj) -> Path:
    path.write_bytes(pickle.dumps(obj))
    return path


@pytest.fixture()
def workdir(tmp_path, monkeypatch):
    """Run the CLI from an empty project with no user-level config."""
    monkeypatch.delenv("GRAPHDUMP_CONFIG", raising=False)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    monkeypatch.setattr(sys, "path", list(sys.path))
    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------- 1) dump ----------------------

def test_dump_pickle_to_stdout(workdir, capsys):
    p = _pickle(workdir / "obj.pkl", [1, "a"])
    main(["dump", "--pickle", str(p)])
    assert capsys.readouterr().out == "list#0 [\n  1\n  a\n]\n"


def test_dump_to_output_file(workdir):
    p = _pickle(workdir / "obj.pkl", {"k": None})
    out = workdir / "out" / "dump.txt"
    main(["dump", "--pickle", str(p), "-o", str(out)])
    assert out.read_text(encoding="utf-8") == "dict#0 [\n  key=k\n  value=null\n]\n"


def test_dump_target_from_project_root(workdir, capsys):
    (workdir / "gd_cli_target_mod.py").write_text(
        textwrap.dedent(
            """
            SHARED = [1]
            ROOT = [SHARED, SHARED]
            """
        ),
        encoding="utf-8",
    )
    main(["dump", "--target", "gd_cli_target_mod:ROOT"])
    assert capsys.readouterr().out == "list#0 [\n  list#1 [\n    1\n  ]\n  list#1\n]\n"


def test_dump_equivalence(workdir, capsys):
    p = _pickle(workdir / "obj.pkl", [[1], [1], "x"])
    main(["dump", "--pickle", str(p), "--equivalence"])
    assert capsys.readouterr().out == "list#0 [\n  list#1 [\n    1\n  ]\n  list#1\n  x\n]\n"


def test_dump_without_root_fails(workdir):
    with pytest.raises(SystemExit) as ei:
        main(["dump"])
    assert ei.value.code == 1


def test_missing_pickle_fails(workdir):
    with pytest.raises(SystemExit) as ei:
        main(["dump", "--pickle", str(workdir / "missing.pkl")])
    assert ei.value.code == 1


# ---------------------- 2) fingerprints ----------------------

def test_fingerprints_expand_the_root_one_level(workdir, capsys):
    p = _pickle(workdir / "obj.pkl", [[1], [1]])
    main(["fingerprints", "--pickle", str(p)])
    lines = capsys.readouterr().out.splitlines()
    assert lines[0].startswith("fingerprint: ")
    assert len(lines[0]) == len("fingerprint: ") + 64
    assert lines[1] == "list#0 ["
    assert lines[2].startswith("  list[") and lines[2] == lines[3]
    assert lines[4] == "]"


# ---------------------- 3) diff ----------------------

def test_diff_identical_exits_cleanly(workdir, capsys):
    a = _pickle(workdir / "a.pkl", {"k": [1, 2]})
    b = _pickle(workdir / "b.pkl", {"k": [1, 2]})
    main(["diff", str(a), str(b)])
    assert capsys.readouterr().out == ""


def test_diff_reports_lost_sharing(workdir, capsys):
    shared = [1]
    a = _pickle(workdir / "a.pkl", [shared, shared])
    b = _pickle(workdir / "b.pkl", [[1], [1]])
    with pytest.raises(SystemExit) as ei:
        main(["diff", str(a), str(b)])
    assert ei.value.code == 1
    out = capsys.readouterr().out
    assert f"--- {a}" in out and f"+++ {b}" in out


def test_diff_equivalence_from_project_config(workdir, capsys):
    cfg = workdir / ".graphdump" / "config.toml"
    cfg.parent.mkdir()
    cfg.write_text("[diff]\nequivalence = true\n", encoding="utf-8")
    shared = [1]
    a = _pickle(workdir / "a.pkl", [shared, shared])
    b = _pickle(workdir / "b.pkl", [[1], [1]])
    main(["diff", str(a), str(b)])
    assert capsys.readouterr().out == ""


# ---------------------- 4) config ----------------------

def test_config_report(workdir, capsys):
    main(["-v", "config"])
    out = capsys.readouterr().out
    assert out.startswith("=== graphdump CONFIG REPORT ===")
    assert "Effective [dump]" in out
