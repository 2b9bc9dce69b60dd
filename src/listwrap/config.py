from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time
from pathlib import Path
from typing import TypeAlias
import tomllib

DEFAULT_CONFIG_NAME = "listwrap.toml"
PYPROJECT_NAME = "pyproject.toml"

DEFAULT_MAX_WIDTH = 120
DEFAULT_TAB_WIDTH = 4
DEFAULT_INDENT = "    "

TomlScalar: TypeAlias = str | int | float | bool | None | date | datetime | time
TomlValue: TypeAlias = TomlScalar | list["TomlValue"] | dict[str, "TomlValue"]
TomlTable: TypeAlias = dict[str, TomlValue]


@dataclass(frozen=True)
class WrapConfig:
    """Line budget for one formatting run."""

    max_width: int = DEFAULT_MAX_WIDTH
    tab_width: int = DEFAULT_TAB_WIDTH
    indent: str = DEFAULT_INDENT

    def __post_init__(self) -> None:
        if self.max_width < 1:
            raise ValueError(f"max_width must be positive, got {self.max_width}")
        if self.tab_width < 1:
            raise ValueError(f"tab_width must be positive, got {self.tab_width}")
        if not self.indent or self.indent.strip(" \t"):
            raise ValueError(f"indent must be spaces or tabs, got {self.indent!r}")


def _load_toml(path: Path) -> TomlTable:
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return {}
    except OSError:
        return {}
    try:
        data = tomllib.loads(raw)
    except tomllib.TOMLDecodeError:
        return {}
    return data if isinstance(data, dict) else {}


def load_config(root: Path | None = None, config_path: Path | None = None) -> TomlTable:
    """Raw config table; ``listwrap.toml`` wins over ``[tool.listwrap]``."""
    if config_path is not None:
        data = _load_toml(config_path)
        if config_path.name == PYPROJECT_NAME:
            return _pyproject_section(data)
        return data
    base = root if root is not None else Path.cwd()
    data = _load_toml(base / DEFAULT_CONFIG_NAME)
    if data:
        return data
    return _pyproject_section(_load_toml(base / PYPROJECT_NAME))


def _pyproject_section(data: TomlTable) -> TomlTable:
    tool = data.get("tool", {})
    if not isinstance(tool, dict):
        return {}
    section = tool.get("listwrap", {})
    if not isinstance(section, dict):
        return {}
    return {"wrap": section}


def wrap_defaults(root: Path | None = None, config_path: Path | None = None) -> TomlTable:
    data = load_config(root=root, config_path=config_path)
    section = data.get("wrap", {})
    return section if isinstance(section, dict) else {}


def merge_payload(payload: TomlTable, defaults: TomlTable) -> TomlTable:
    merged = dict(defaults)
    for key, value in payload.items():
        if value is None:
            continue
        merged[key] = value
    return merged
