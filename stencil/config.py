"""
Engine configuration.

EngineConfig carries every engine knob: delimiters, whitespace control,
strictness and the render limits. Configs can be loaded from a YAML
mapping; raw values are coerced into the dataclass by load_typed, which
reports problems with a dotted path to the offending field.
"""

from __future__ import annotations

import dataclasses
import logging
import typing as t
from dataclasses import dataclass, field, fields, is_dataclass
from pathlib import Path
from types import UnionType
from typing import Any, Dict, Optional, Tuple, get_args, get_origin

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from .errors import ConfigError

logger = logging.getLogger(__name__)

_yaml = YAML(typ="safe")


@dataclass(frozen=True)
class EngineConfig:
    """
    Engine settings. Defaults reproduce the standard template grammar.
    """
    print_delimiters: Tuple[str, str] = ("{{", "}}")
    execute_delimiters: Tuple[str, str] = ("{%", "%}")
    comment_delimiters: Tuple[str, str] = ("{#", "#}")
    # Marker glued to a delimiter that strips adjacent whitespace ({%- ... -%}); None disables it
    trim_marker: Optional[str] = "-"
    # Printing or iterating an undefined name is an error
    strict_variables: bool = False
    # Per-loop iteration cap (None = unlimited)
    max_loop_iterations: Optional[int] = None
    # Cap on nested macro calls, includes and parent() per render (None = unlimited)
    max_recursion_depth: Optional[int] = 64
    # Read-only names visible to every render
    globals: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        for name in ("print_delimiters", "execute_delimiters", "comment_delimiters"):
            pair = getattr(self, name)
            if len(pair) != 2 or not all(isinstance(d, str) and d for d in pair):
                raise ConfigError(f"{name}: expected two non-empty strings, got {list(pair)!r}")
            if pair[0] == pair[1]:
                raise ConfigError(f"{name}: opening and closing delimiters must differ")

        openings = [self.print_delimiters[0], self.execute_delimiters[0], self.comment_delimiters[0]]
        if len(set(openings)) != len(openings):
            raise ConfigError(f"opening delimiters must be distinct, got {openings!r}")

        if self.trim_marker is not None and not self.trim_marker:
            raise ConfigError("trim_marker: must be a non-empty string or null")
        if self.max_loop_iterations is not None and self.max_loop_iterations < 0:
            raise ConfigError("max_loop_iterations: must not be negative")
        if self.max_recursion_depth is not None and self.max_recursion_depth < 1:
            raise ConfigError("max_recursion_depth: must be at least 1")


# -------------------- Typed loading --------------------

def _type_name(tp: Any) -> str:
    return getattr(tp, "__name__", str(tp))


def _err(path: str, msg: str) -> ConfigError:
    logger.debug("Config error at %s: %s", path, msg)
    return ConfigError(f"{path}: {msg}")


def _coerce_union(val: Any, tp: Any, path: str) -> Any:
    variants = get_args(tp)
    errs: list[str] = []
    for sub in variants:
        # NoneType matches only None
        if sub is type(None):
            if val is None:
                return None
            continue
        try:
            return load_typed(sub, val, path=path)
        except ConfigError as e:
            errs.append(str(e))
    raise _err(path, " | ".join(errs) or f"no variant of {_type_name(tp)} matched")


def _coerce_mapping(val: Any, tp: Any, path: str) -> Any:
    if not isinstance(val, dict):
        raise _err(path, f"expected mapping, got {type(val).__name__}")
    kt, vt = get_args(tp) or (Any, Any)
    out: dict[Any, Any] = {}
    for k, v in val.items():
        k2 = load_typed(kt, k, path=f"{path}.<key>")
        out[k2] = load_typed(vt, v, path=f"{path}.{k2}")
    return out


def _coerce_sequence(val: Any, tp: Any, path: str) -> Any:
    origin = get_origin(tp)
    if not isinstance(val, (list, tuple)):
        raise _err(path, f"expected list, got {type(val).__name__}")
    args = get_args(tp)

    if origin is tuple and args and args[-1] is not Ellipsis:
        if len(val) != len(args):
            raise _err(path, f"expected {len(args)} items, got {len(val)}")
        return tuple(load_typed(et, v, path=f"{path}[{i}]") for i, (et, v) in enumerate(zip(args, val)))

    et = args[0] if args else Any
    items = [load_typed(et, v, path=f"{path}[{i}]") for i, v in enumerate(val)]
    return tuple(items) if origin is tuple else items


def _coerce_dataclass(val: Any, tp: Any, path: str) -> Any:
    if not isinstance(val, dict):
        raise _err(path, f"expected mapping for {_type_name(tp)}, got {type(val).__name__}")
    type_hints = t.get_type_hints(tp)
    fld_map = {f.name: f for f in fields(tp)}
    extras = set(val.keys()) - set(fld_map.keys())
    if extras:
        raise _err(path, f"unknown key(s): {sorted(str(k) for k in extras)}")

    kwargs: dict[str, Any] = {}
    for name, f in fld_map.items():
        sub_path = f"{path}.{name}"
        if name in val:
            kwargs[name] = load_typed(type_hints.get(name, f.type), val[name], path=sub_path)
        elif f.default is dataclasses.MISSING and f.default_factory is dataclasses.MISSING:
            raise _err(sub_path, "required field missing")
    return tp(**kwargs)


def load_typed(tp: Any, val: Any, *, path: str = "$") -> Any:
    """
    Recursively coerces a raw YAML value into the annotated type tp.

    Supports dataclasses, Optional/Union, Dict, List/Tuple and primitives.

    Raises:
        ConfigError: The value does not fit the type; the message starts with the field path
    """
    origin = get_origin(tp)

    if tp is Any or tp is object:
        return val
    if isinstance(tp, type) and is_dataclass(tp):
        return _coerce_dataclass(val, tp, path)
    if origin in (t.Union, UnionType):
        return _coerce_union(val, tp, path)
    if origin is dict:
        return _coerce_mapping(val, tp, path)
    if origin in (list, tuple):
        return _coerce_sequence(val, tp, path)

    if tp in (str, int, float, bool):
        # bool is an int subclass but never a valid count
        if not isinstance(val, tp) or (tp is not bool and isinstance(val, bool)):
            raise _err(path, f"expected {_type_name(tp)}, got {type(val).__name__}")
        return val

    return val


def _read_yaml_map(path: Path) -> dict:
    """Reads a YAML file and returns a mapping ({} when the file is missing)."""
    if not path.is_file():
        return {}
    try:
        raw = _yaml.load(path.read_text(encoding="utf-8")) or {}
    except YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e
    if not isinstance(raw, dict):
        raise ConfigError(f"YAML must be a mapping: {path}")
    return raw


def load_config(path: Path) -> EngineConfig:
    """
    Loads EngineConfig from a YAML file.

    A missing file yields the defaults.

    Raises:
        ConfigError: Malformed YAML, unknown keys or values of the wrong type
    """
    raw = _read_yaml_map(path)
    if not raw:
        logger.debug(f"No engine config at {path}, using defaults")
        return EngineConfig()
    config = load_typed(EngineConfig, raw)
    logger.debug(f"Loaded engine config from {path}")
    return config


__all__ = ["EngineConfig", "load_typed", "load_config"]
