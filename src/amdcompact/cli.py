from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

import typer

from amdcompact.config import convert_defaults, merge_payload, normalize_name_list
from amdcompact.exceptions import ConversionError
from amdcompact.orchestrator import analyze, convert
from amdcompact.refactor.rewrite import required_ids
from amdcompact.schema import BundleGraphDTO, ModuleDTO

app = typer.Typer(add_completion=False)

_STDIO_ALIAS = "-"


def _configure_logging(*, verbose: int, quiet: int) -> logging.Logger:
    """Configure the amdcompact logger.

    :param verbose: Verbosity count (0+).
    :param quiet: Quietness count (0+).
    :returns: Configured logger.
    """

    level: int = logging.INFO
    if quiet >= 2:
        level = logging.ERROR
    elif quiet >= 1:
        level = logging.WARNING
    elif verbose >= 1:
        level = logging.DEBUG

    logger: logging.Logger = logging.getLogger("amdcompact")
    logger.setLevel(level)
    logger.propagate = False

    handler: logging.Handler = logging.StreamHandler(stream=sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))

    logger.handlers.clear()
    logger.addHandler(handler)
    return logger


def _read_input(source: str) -> str:
    if source == _STDIO_ALIAS:
        return sys.stdin.read()
    try:
        return Path(source).read_text(encoding="utf-8")
    except OSError as exc:
        typer.echo(f"error: cannot read {source}: {exc.strerror or exc}", err=True)
        raise typer.Exit(code=2) from exc


def _write_output(target: Optional[Path], text: str) -> None:
    if target is None or str(target) == _STDIO_ALIAS:
        typer.echo(text)
        return
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(text + "\n", encoding="utf-8")


@app.command("convert")
def convert_command(
    source: str = typer.Argument(..., metavar="INPUT", help="AMD bundle file, or - for stdin."),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Write the result here instead of stdout."
    ),
    mode: Optional[str] = typer.Option(
        None, "--mode", help="Output mode (standalone|compact). Defaults to standalone."
    ),
    entry: Optional[List[str]] = typer.Option(
        None,
        "--entry",
        help="Root module id to expose in compact mode. Repeat for several entries.",
    ),
    config: Optional[Path] = typer.Option(None, "--config"),
    verbose: int = typer.Option(0, "--verbose", "-v", count=True),
    quiet: int = typer.Option(0, "--quiet", "-q", count=True),
) -> None:
    """Convert an AMD bundle into standalone or compact code."""
    logger = _configure_logging(verbose=verbose, quiet=quiet)
    defaults = convert_defaults(config_path=config)
    payload = merge_payload({"mode": mode, "entries": entry or None}, defaults)
    options = {
        "mode": payload.get("mode"),
        "entries": normalize_name_list(payload.get("entries")),
    }
    logger.debug("options: %s", options)
    text = _read_input(source)
    try:
        result = convert(text, options)
    except ConversionError as exc:
        typer.echo(f"error: {exc}", err=True)
        raise typer.Exit(code=2) from exc
    _write_output(output, result)


@app.command("graph")
def graph_command(
    source: str = typer.Argument(..., metavar="INPUT", help="AMD bundle file, or - for stdin."),
) -> None:
    """Print the modules of a bundle and their root/internal/external classes as JSON."""
    text = _read_input(source)
    try:
        graph = analyze(text)
    except ConversionError as exc:
        typer.echo(f"error: {exc}", err=True)
        raise typer.Exit(code=2) from exc
    classification = graph.classification
    payload = BundleGraphDTO(
        modules=[
            ModuleDTO(
                id=record.id,
                dependencies=list(record.dependencies),
                requires=list(required_ids(record.body)),
            )
            for record in graph.records
        ],
        roots=list(classification.roots),
        internals=list(classification.internals),
        externals=list(classification.externals),
    )
    typer.echo(json.dumps(payload.model_dump(), indent=2))
