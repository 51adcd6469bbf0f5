# graphdump/cli.py
from __future__ import annotations

import argparse
import io
import logging
import sys as _sys
from pathlib import Path
from typing import Any, Optional

from .config import (
    ConfigContext,
    apply_effective_to_args,
    load_layered_config,
    render_config_debug_report,
)
from .dumper import compute_visit_order
from .errors import GraphDumpError, TargetLoadError
from .fingerprinter import compute_fingerprints
from .loaders import (
    compute_import_roots,
    load_constants,
    load_pickle,
    prepend_sys_path,
    resolve_target,
)
from .logconf import configure_logger, level_for
from .registry import ConstantRegistry
from .testkit import dump, structure_diff


def _make_logger(cmd: str) -> logging.Logger:
    return logging.getLogger(f"graphdump.cli.{cmd}")


def _load_ctx_and_fill(section: str, args: argparse.Namespace) -> ConfigContext:
    ctx = load_layered_config()
    apply_effective_to_args(section, ctx, args)
    roots = compute_import_roots(ctx.project_root, getattr(args, "additional_sys_path", None))
    prepend_sys_path(roots)
    return ctx


def _registry_from_args(args: argparse.Namespace) -> Optional[ConstantRegistry]:
    constants = load_constants(getattr(args, "constants", None))
    return ConstantRegistry(constants) if constants else None


def _load_root(args: argparse.Namespace) -> Any:
    if getattr(args, "pickle", None):
        return load_pickle(args.pickle)
    if getattr(args, "target", None):
        return resolve_target(args.target)
    raise TargetLoadError("nothing to dump: pass --pickle PATH or --target module:attr")


def _write(text: str, output: Optional[Path], log: logging.Logger) -> None:
    if output is None:
        _sys.stdout.write(text + "\n")
        return
    output = Path(output)
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(text + "\n", encoding="utf-8")
    log.info("wrote %s", output)


# ---------- dump ----------

def _handle_dump(args: argparse.Namespace) -> None:
    log = _make_logger("dump")
    _load_ctx_and_fill("dump", args)
    obj = _load_root(args)
    text = dump(obj, equivalence=bool(args.equivalence), registry=_registry_from_args(args))
    _write(text, getattr(args, "output", None), log)


# ---------- fingerprints ----------

def _handle_fingerprints(args: argparse.Namespace) -> None:
    log = _make_logger("fingerprints")
    _load_ctx_and_fill("fingerprints", args)
    obj = _load_root(args)
    registry = _registry_from_args(args)

    fingerprints = compute_fingerprints(registry, obj)
    # The root is expanded one level so its children show as fingerprints.
    root_fp = fingerprints.pop(obj, None)
    out = io.StringIO()
    compute_visit_order(registry, fingerprints, obj, out)
    log.debug("%d fingerprinted objects", len(fingerprints) + (root_fp is not None))

    header = f"fingerprint: {root_fp or '<none>'}"
    _write(header + "\n" + out.getvalue(), getattr(args, "output", None), log)


# ---------- diff ----------

def _handle_diff(args: argparse.Namespace) -> None:
    log = _make_logger("diff")
    _load_ctx_and_fill("diff", args)
    left = load_pickle(args.left)
    right = load_pickle(args.right)
    diff = structure_diff(
        left,
        right,
        equivalence=bool(args.equivalence),
        registry=_registry_from_args(args),
        fromfile=str(args.left),
        tofile=str(args.right),
    )
    if not diff:
        log.info("object graphs are identical")
        return
    _sys.stdout.write(diff + "\n")
    _sys.exit(1)


# ---------- config ----------

def _handle_config(args: argparse.Namespace) -> None:
    ctx = load_layered_config()
    _sys.stdout.write(render_config_debug_report(ctx) + "\n")


# ---------- parser ----------

def _add_opt_root(p: argparse.ArgumentParser) -> None:
    g = p.add_mutually_exclusive_group()
    g.add_argument("--pickle", type=Path, default=None, help="pickle file holding the root object")
    g.add_argument("--target", default=None, help="root object to import, as 'module:attr'")


def _add_opt_common(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "--constant", dest="constants", action="append", default=None, metavar="MODULE:ATTR",
        help="object written as a serialization constant (repeatable)",
    )
    p.add_argument(
        "--additional-sys-path", dest="additional_sys_path", nargs="+", default=None,
        help="extra import roots, relative to the project root",
    )


def _add_opt_equivalence(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "--equivalence", action="store_true", default=None,
        help="deduplicate objects by content fingerprint instead of identity",
    )


def add_dump_subparser(subparsers: argparse._SubParsersAction) -> None:
    p = subparsers.add_parser("dump", help="print the structure dump of an object graph")
    _add_opt_root(p)
    _add_opt_equivalence(p)
    p.add_argument("-o", "--output", type=Path, default=None, help="write to FILE instead of stdout")
    _add_opt_common(p)
    p.set_defaults(handler=_handle_dump)


def add_fingerprints_subparser(subparsers: argparse._SubParsersAction) -> None:
    p = subparsers.add_parser("fingerprints", help="print the root one level deep with child fingerprints")
    _add_opt_root(p)
    p.add_argument("-o", "--output", type=Path, default=None, help="write to FILE instead of stdout")
    _add_opt_common(p)
    p.set_defaults(handler=_handle_fingerprints)


def add_diff_subparser(subparsers: argparse._SubParsersAction) -> None:
    p = subparsers.add_parser("diff", help="compare the dumps of two pickled object graphs")
    p.add_argument("left", type=Path)
    p.add_argument("right", type=Path)
    _add_opt_equivalence(p)
    _add_opt_common(p)
    p.set_defaults(handler=_handle_diff)


def add_config_subparser(subparsers: argparse._SubParsersAction) -> None:
    p = subparsers.add_parser("config", help="show config discovery and effective sections")
    p.set_defaults(handler=_handle_config)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="graphdump")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    add_dump_subparser(subparsers)
    add_fingerprints_subparser(subparsers)
    add_diff_subparser(subparsers)
    add_config_subparser(subparsers)
    return parser


def main(argv: Optional[list[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logger(level=level_for(args.verbose))
    try:
        args.handler(args)
    except GraphDumpError as exc:
        logger = logging.getLogger("graphdump.cli")
        logger.error("%s", exc)
        _sys.exit(1)


if __name__ == "__main__":
    main()
