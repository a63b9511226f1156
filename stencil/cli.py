from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from .config import EngineConfig, load_config
from .engine import Engine
from .errors import ConfigError, StencilUserError
from .loader import FileSystemLoader
from .template.analysis import find_referenced_templates
from .version import tool_version

_yaml = YAML(typ="safe")


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="stencil",
        description="Stencil template engine",
        add_help=True,
    )
    p.add_argument("--version", action="version", version=f"%(prog)s {tool_version()}")
    p.add_argument("-v", "--verbose", action="store_true", help="debug logging to stderr")
    sub = p.add_subparsers(dest="cmd", required=True)

    # Общие аргументы для всех подкоманд
    def add_common(sp: argparse.ArgumentParser) -> None:
        sp.add_argument("name", help="template name relative to --root")
        sp.add_argument("--root", default=".", type=Path, help="template directory (default: current)")
        sp.add_argument("--config", type=Path, help="engine config (YAML)")

    sp_render = sub.add_parser("render", help="render a template to stdout")
    add_common(sp_render)
    sp_render.add_argument("--data", type=Path, help="render variables: YAML or JSON mapping")
    sp_render.add_argument(
        "--var",
        action="append",
        metavar="KEY=VALUE",
        help="string variable (can be given several times; overrides --data)",
    )

    sp_check = sub.add_parser("check", help="lex and parse a template, report 'ok' or the error")
    add_common(sp_check)

    sp_deps = sub.add_parser("deps", help="JSON list of templates referenced via extends/include/import")
    add_common(sp_deps)

    return p


def _parse_vars(items: Optional[List[str]]) -> Dict[str, str]:
    """Парсит список 'key=value' в словарь."""
    result: Dict[str, str] = {}
    for item in items or []:
        if "=" not in item:
            raise ConfigError(f"Invalid variable '{item}'. Expected 'key=value'")
        key, value = item.split("=", 1)
        result[key.strip()] = value
    return result


def _load_data(path: Optional[Path]) -> Dict[str, Any]:
    if path is None:
        return {}
    if not path.is_file():
        raise ConfigError(f"Data file not found: {path}")
    try:
        raw = _yaml.load(path.read_text(encoding="utf-8")) or {}
    except YAMLError as e:
        raise ConfigError(f"Invalid data file {path}: {e}") from e
    if not isinstance(raw, dict):
        raise ConfigError(f"Data file must contain a mapping: {path}")
    return raw


def _engine(ns: argparse.Namespace) -> Engine:
    if ns.config and not ns.config.is_file():
        raise ConfigError(f"Config file not found: {ns.config}")
    config = load_config(ns.config) if ns.config else EngineConfig()
    return Engine(loader=FileSystemLoader(ns.root), config=config)


def main(argv: list[str] | None = None) -> int:
    ns = _build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if ns.verbose else logging.WARNING,
        format="[%(levelname)s] %(name)s: %(message)s",
    )

    try:
        engine = _engine(ns)

        if ns.cmd == "render":
            variables = _load_data(ns.data)
            variables.update(_parse_vars(ns.var))
            engine.render(ns.name, variables, sink=sys.stdout)
            return 0

        if ns.cmd == "check":
            engine.get_template(ns.name)
            sys.stdout.write("ok\n")
            return 0

        if ns.cmd == "deps":
            template = engine.get_template(ns.name)
            sys.stdout.write(json.dumps(find_referenced_templates(template), ensure_ascii=False) + "\n")
            return 0

    except StencilUserError as e:
        sys.stderr.write(str(e).rstrip() + "\n")
        return 2

    return 2


if __name__ == "__main__":
    raise SystemExit(main())
