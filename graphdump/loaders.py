# graphdump/loaders.py
"""
Produce the root object of a dump for the command line: unpickle a file or
import ``module:attr``.
"""
from __future__ import annotations

import importlib
import logging
import os
import pickle
import sys
from pathlib import Path
from typing import Any, Iterable, List, Optional, Union

from .errors import TargetLoadError

__all__ = [
    "load_pickle",
    "resolve_target",
    "compute_import_roots",
    "prepend_sys_path",
    "load_constants",
]

Pathish = Union[str, os.PathLike[str], Path]

_log = logging.getLogger("graphdump.loaders")


def load_pickle(path: Pathish) -> Any:
    p = Path(path)
    try:
        with p.open("rb") as f:
            obj = pickle.load(f)
    except FileNotFoundError as exc:
        raise TargetLoadError(f"pickle file not found: {p}") from exc
    except (pickle.UnpicklingError, EOFError, AttributeError, ImportError) as exc:
        raise TargetLoadError(f"cannot unpickle {p}: {exc}") from exc
    _log.info("loaded %s from %s", type(obj).__name__, p)
    return obj


def resolve_target(target: str) -> Any:
    """
    Import and return the object named by `target`.

    Accepts ``pkg.module:attr.sub`` or, without a colon, ``pkg.module.attr``
    (the longest importable module prefix wins).
    """
    if ":" in target:
        module_name, _, attr_path = target.partition(":")
        module = _import(module_name, target)
        return _getattr_path(module, attr_path, target)

    parts = target.split(".")
    for cut in range(len(parts), 0, -1):
        module_name = ".".join(parts[:cut])
        try:
            module = importlib.import_module(module_name)
        except ImportError:
            continue
        return _getattr_path(module, ".".join(parts[cut:]), target)
    raise TargetLoadError(f"no importable module in target '{target}'")


def _import(module_name: str, target: str) -> Any:
    try:
        return importlib.import_module(module_name)
    except ImportError as exc:
        raise TargetLoadError(f"cannot import '{module_name}' for target '{target}': {exc}") from exc


def _getattr_path(obj: Any, attr_path: str, target: str) -> Any:
    for name in filter(None, attr_path.split(".")):
        try:
            obj = getattr(obj, name)
        except AttributeError as exc:
            raise TargetLoadError(f"target '{target}': no attribute '{name}'") from exc
    return obj


def _to_abs_dir(p: Path) -> Path | None:
    try:
        ap = p.resolve()
    except OSError:
        ap = p
    return ap if ap.is_dir() else None


def compute_import_roots(project_root: Path, additional: Iterable[Pathish] | None = None) -> List[str]:
    """
    Ordered, de-duplicated absolute import roots: the project root, then the
    `additional` paths (relative ones are resolved under the project root).
    """
    candidates = [Path(project_root)]
    candidates += [Path(p) if Path(p).is_absolute() else Path(project_root) / p for p in (additional or [])]
    resolved = (_to_abs_dir(c) for c in candidates)
    # dict keeps first-seen order
    return list(dict.fromkeys(d.as_posix() for d in resolved if d is not None))


def prepend_sys_path(roots: Iterable[Pathish]) -> None:
    """Prepend `roots` to sys.path, keeping their order and skipping entries already there."""
    normed = [Path(r).as_posix() for r in roots]
    for s in reversed(normed):
        if s not in sys.path:
            sys.path.insert(0, s)
            _log.debug("sys.path += %s", s)


def load_constants(targets: Optional[Iterable[str]]) -> List[Any]:
    return [resolve_target(t) for t in (targets or [])]
