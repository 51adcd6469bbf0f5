# graphdump/config.py
"""
Layered configuration for the ``graphdump`` command.

Layers, lowest precedence first:
  1) packaged defaults (``graphdump/default_config.toml``),
  2) the user config: ``$GRAPHDUMP_CONFIG``, then
     ``$XDG_CONFIG_HOME/graphdump/``, ``~/.config/graphdump/``, ``~/.graphdump/``,
  3) the nearest ``.graphdump/`` directory found walking up from the start dir.

Each directory may hold ``config.toml``, ``config.yaml`` or ``config.yml``.
Sections are ``[defaults]`` plus one per subcommand; the effective settings of
a subcommand are its section merged over ``[defaults]``.
"""
from __future__ import annotations

import argparse
import importlib.resources as ir
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple

from .errors import ConfigError

_log = logging.getLogger("graphdump.config")

SECTIONS = ("defaults", "dump", "fingerprints", "diff")
CONFIG_DIR = ".graphdump"
CONFIG_NAMES = ("config.toml", "config.yaml", "config.yml")

_TRUE = frozenset({"true", "1", "yes", "on"})
_FALSE = frozenset({"false", "0", "no", "off"})

Event = Dict[str, Any]


@dataclass(frozen=True)
class ConfigContext:
    """Merged configuration plus where it came from."""
    raw: Dict[str, Any]               # merged mapping, one key per section
    project_root: Path                # parent of the .graphdump/ dir, else the start dir
    source_path: Optional[Path]       # project-level file, if any
    debug: List[Event] = field(default_factory=list)


# ---------- Parsing ----------

def _toml(text: str) -> Dict[str, Any]:
    try:
        import tomllib
    except ModuleNotFoundError:  # Python 3.10
        import tomli as tomllib
    try:
        return tomllib.loads(text)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"invalid TOML: {exc}") from exc


def _yaml(text: str) -> Dict[str, Any]:
    import yaml

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"invalid YAML: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"YAML config must be a mapping, got {type(data).__name__}")
    return data


_PARSERS: Dict[str, Callable[[str], Dict[str, Any]]] = {
    ".toml": _toml,
    ".yaml": _yaml,
    ".yml": _yaml,
}


# ---------- Discovery ----------

class _Discovery:
    """Finds and reads config files, recording what it looked at."""

    def __init__(self) -> None:
        self.events: List[Event] = []

    def note(self, kind: str, **details: Any) -> None:
        self.events.append({"kind": kind, **details})

    def read(self, path: Path) -> Dict[str, Any]:
        parser = _PARSERS.get(path.suffix.lower())
        if parser is None:
            self.note("config_unknown_extension", path=str(path))
            _log.warning("ignoring %s: unknown config extension", path)
            return {}
        try:
            data = parser(path.read_text(encoding="utf-8"))
        except ConfigError as exc:
            raise ConfigError(f"{path}: {exc}") from exc
        self.note("config_parsed", path=str(path), sections=sorted(data))
        return data

    def in_dir(self, base: Path) -> Optional[Path]:
        return next((base / n for n in CONFIG_NAMES if (base / n).is_file()), None)

    def _user_dirs(self) -> Iterator[Tuple[str, Path]]:
        xdg = os.getenv("XDG_CONFIG_HOME")
        if xdg:
            yield "xdg", Path(xdg) / "graphdump"
        yield "home_config", Path.home() / ".config" / "graphdump"
        yield "home", Path.home() / CONFIG_DIR

    def user_file(self) -> Optional[Path]:
        env = os.getenv("GRAPHDUMP_CONFIG")
        if env:
            path = Path(env).expanduser()
            self.note("user_env_candidate", value=env, exists=path.is_file())
            if path.is_file():
                return path
            _log.warning("GRAPHDUMP_CONFIG=%s does not exist; searching defaults", env)
        for origin, base in self._user_dirs():
            found = self.in_dir(base)
            self.note("user_candidate", origin=origin, base=str(base), found=str(found or "<none>"))
            if found:
                return found
        return None

    def project_file(self, start: Path) -> Optional[Path]:
        start = start.resolve()
        self.note("project_search_start", start=str(start))
        for directory in (start, *start.parents):
            found = self.in_dir(directory / CONFIG_DIR)
            if found:
                self.note("project_config_found", path=str(found))
                return found
        self.note("project_config_not_found")
        return None


# ---------- Merging & coercion ----------

def _merge(base: Dict[str, Any], top: Dict[str, Any]) -> Dict[str, Any]:
    """Recursive merge; `top` wins, nested mappings are merged key by key."""
    merged = dict(base)
    for key, value in top.items():
        below = merged.get(key)
        merged[key] = _merge(below, value) if isinstance(below, dict) and isinstance(value, dict) else value
    return merged


def _to_bool(key: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise ConfigError(f"'{key}' must be a boolean, got {value!r}")


def _to_str_list(key: str, value: Any) -> List[str]:
    if isinstance(value, (str, Path)):
        return [str(value)]
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value]
    raise ConfigError(f"'{key}' must be a string or a list of strings, got {value!r}")


def _to_path(key: str, value: Any) -> Path:
    if not isinstance(value, (str, Path)):
        raise ConfigError(f"'{key}' must be a path, got {value!r}")
    return Path(value).expanduser()


_COERCERS: Dict[str, Callable[[str, Any], Any]] = {
    "equivalence": _to_bool,
    "output": _to_path,
    "constants": _to_str_list,
    "additional_sys_path": _to_str_list,
}


def _effective(section: str, raw: Dict[str, Any]) -> Dict[str, Any]:
    merged = _merge(raw.get("defaults") or {}, raw.get(section) or {})
    eff = {k: (_COERCERS[k](k, v) if k in _COERCERS and v is not None else v) for k, v in merged.items()}
    _log.debug("effective [%s]: %s", section, eff or "{}")
    return eff


# ---------- Public API ----------

def load_layered_config(start: Optional[Path] = None) -> ConfigContext:
    """
    Merge packaged defaults, the user config and the project config.

    Raises ConfigError when a discovered file cannot be parsed.
    """
    disc = _Discovery()

    packaged = ir.files("graphdump").joinpath("default_config.toml").read_text(encoding="utf-8")
    disc.note("packaged_default_found", size=len(packaged))
    raw = _toml(packaged)

    user = disc.user_file()
    if user is not None:
        _log.info("user config: %s", user)
        raw = _merge(raw, disc.read(user))

    start = (start or Path.cwd()).resolve()
    project = disc.project_file(start)
    project_root = start
    if project is not None:
        _log.info("project config: %s", project)
        raw = _merge(raw, disc.read(project))
        project_root = project.parent.parent

    return ConfigContext(raw=raw, project_root=project_root, source_path=project, debug=disc.events)


def effective_section(ctx: ConfigContext, section: str) -> Dict[str, Any]:
    return _effective(section, ctx.raw)


def apply_effective_to_args(section: str, ctx: ConfigContext, args: argparse.Namespace) -> None:
    """Copy config values onto `args` wherever the command line left them unset or empty."""
    ns = vars(args)
    for key, value in effective_section(ctx, section).items():
        current = ns.get(key)
        if current is None or (isinstance(current, (str, list, dict)) and not current):
            ns[key] = value
            _log.debug("%s <- config: %r", key, value)


def render_config_debug_report(ctx: ConfigContext) -> str:
    lines = [
        "=== graphdump CONFIG REPORT ===",
        f"cwd          : {Path.cwd().resolve()}",
        f"project_root : {ctx.project_root}",
        f"config_source: {ctx.source_path or '<none>'}",
        "",
        "Events:" if ctx.debug else "(no debug events captured)",
    ]
    for event in ctx.debug:
        details = {k: v for k, v in event.items() if k != "kind"}
        lines.append(f"- {event['kind']}")
        lines.extend(f"    {k}: {details[k]}" for k in sorted(details))
    lines.append("")
    for section in SECTIONS:
        eff = _effective(section, ctx.raw)
        body = ", ".join(f"{k}={eff[k]!r}" for k in sorted(eff)) or "<empty>"
        lines.append(f"Effective [{section}]: {body}")
    return "\n".join(lines)
