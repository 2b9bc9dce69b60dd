from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Iterable, List, NoReturn, Optional

import typer
from pydantic import ValidationError

from listwrap.canonical import build_formatter
from listwrap.config import merge_payload, wrap_defaults
from listwrap.exceptions import SourceIOError, WrapError
from listwrap.schema import WrapSettingsDTO
from listwrap.wrap.engine import WrapEngine

app = typer.Typer(add_completion=False)

_PROG = "listwrap"
_SKIPPED_DIRS = frozenset({"__pycache__", "build", "dist", "node_modules", "venv"})


def iter_python_paths(paths: Iterable[Path]) -> list[Path]:
    """Expand directories to the python files under them; files pass through."""
    out: list[Path] = []
    for path in paths:
        if not path.is_dir():
            out.append(path)
            continue
        for root, dirnames, filenames in os.walk(path, topdown=True):
            dirnames[:] = sorted(
                name for name in dirnames if not name.startswith(".") and name not in _SKIPPED_DIRS
            )
            for filename in sorted(filenames):
                if filename.endswith(".py"):
                    out.append(Path(root) / filename)
    return out


def _read_source(path: Path) -> str:
    try:
        # Bytes in, bytes out: keeps CRLF files intact.
        return path.read_bytes().decode("utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise SourceIOError(path, str(exc)) from exc


def _read_stdin() -> str:
    try:
        return sys.stdin.buffer.read().decode("utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise SourceIOError(Path("<stdin>"), str(exc)) from exc


def _emit(text: str) -> None:
    # Bytes so CRLF reaches stdout untranslated.
    typer.echo(text.encode("utf-8"), nl=False)


def _write_source(path: Path, text: str) -> None:
    try:
        path.write_bytes(text.encode("utf-8"))
    except OSError as exc:
        raise SourceIOError(path, str(exc)) from exc


def _fail(message: str) -> NoReturn:
    typer.echo(f"{_PROG}: {message}", err=True)
    raise typer.Exit(code=1)


def _build_engine(
    *,
    root: Path,
    config_path: Path | None,
    max_width: int | None,
    tab_width: int | None,
) -> WrapEngine:
    defaults = wrap_defaults(root=root, config_path=config_path)
    payload = merge_payload({"max_width": max_width, "tab_width": tab_width}, defaults)
    try:
        settings = WrapSettingsDTO.model_validate(payload)
    except ValidationError as exc:
        raise typer.BadParameter(str(exc)) from exc
    return WrapEngine(config=settings.to_config(), formatter=build_formatter(settings.formatter))


@app.command()
def main(
    paths: List[Path] = typer.Argument(None, help="Files or directories; stdin when omitted."),
    max_width: Optional[int] = typer.Option(None, "-m", "--max-width", help="Maximum line width [default: 120]."),
    tab_width: Optional[int] = typer.Option(None, "-t", "--tab-width", help="Tab stop width [default: 4]."),
    write: bool = typer.Option(False, "-w", "--write", help="Write results back to the source files."),
    check: bool = typer.Option(False, "--check", help="Report files that would change; write nothing."),
    config: Optional[Path] = typer.Option(None, "--config", help="listwrap.toml or pyproject.toml to read."),
    root: Path = typer.Option(Path("."), "--root", help="Directory searched for configuration."),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Log every wrap decision."),
) -> None:
    """Re-wrap long call, literal and signature lists; collapse ones that fit again."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(name)s: %(levelname)s: %(message)s",
    )
    engine = _build_engine(root=root, config_path=config, max_width=max_width, tab_width=tab_width)

    if not paths:
        try:
            out = engine.format(_read_stdin())
        except WrapError as exc:
            _fail(str(exc))
        _emit(out)
        return

    would_change: list[Path] = []
    for path in iter_python_paths(paths):
        try:
            source = _read_source(path)
            out = engine.format(source)
            if check:
                if out != source:
                    would_change.append(path)
            elif write:
                if out != source:
                    _write_source(path, out)
            else:
                _emit(out)
        except SourceIOError as exc:
            _fail(str(exc))
        except WrapError as exc:
            _fail(f"{path}: {exc}")
    if would_change:
        for path in would_change:
            typer.echo(f"would rewrap {path}", err=True)
        raise typer.Exit(code=1)
