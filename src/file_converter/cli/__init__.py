from __future__ import annotations

import asyncio
import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from ..compatibility import compatible_targets, label_for, resolve_target
from ..config import AppConfig, dump_config, load_config
from ..core import ConversionError, ConversionService
from ..detection import classify, guess_declared_type, resolve_source_format
from ..settings import get_settings
from ..utils import prune_runs

console = Console()

app = typer.Typer(help="Local file format conversion toolkit")


def _load_config(path: Path | None) -> AppConfig:
    return load_config(path or get_settings().config_path)


def _target(value: str) -> str:
    try:
        return resolve_target(value)
    except ConversionError as exc:
        console.print(f"[red]Unknown target[/red]: {exc.code} - {exc}")
        raise typer.Exit(1) from exc


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging")) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@app.command()
def convert(
    file: Path,
    to: str = typer.Option(..., "--to", help="Target format (MIME type, label or extension)"),
    config: Path | None = typer.Option(None, "--config", help="Path to config.toml"),
) -> None:
    cfg = _load_config(config)
    service = ConversionService(cfg)
    target = _target(to)
    try:
        result = asyncio.run(service.convert_file(file, target))
    except ConversionError as exc:
        console.print(f"[red]Conversion failed[/red]: {exc.code} - {exc}")
        raise typer.Exit(1) from exc
    console.print(f"[green]Success[/green]: {result.summary}")
    console.print(f"Output: {result.output_path} ({result.size_bytes} bytes)")


@app.command()
def batch(
    path: list[Path],
    to: str = typer.Option(..., "--to", help="Target format for every file"),
    config: Path | None = typer.Option(None, "--config", help="Path to config.toml"),
    parallel: int | None = typer.Option(None, "--parallel", min=1, help="Concurrent conversions"),
) -> None:
    cfg = _load_config(config)
    service = ConversionService(cfg)
    target = _target(to)
    batch_result = asyncio.run(service.batch_convert(path, target, parallelism=parallel))
    table = Table(title="Batch summary")
    table.add_column("Source")
    table.add_column("Result")
    for result in batch_result.runs:
        table.add_row(str(result.source_path), f"[green]{result.output_path}[/green]")
    for source, code in batch_result.failures.items():
        table.add_row(source, f"[red]{code}[/red]")
    console.print(table)
    summary = batch_result.summary
    console.print(f"Processed {summary.total} files: {summary.successes} succeeded, {summary.failures} failed.")
    if summary.failures:
        raise typer.Exit(1)


@app.command()
def targets(file: Path) -> None:
    """List the formats FILE can be converted to."""

    category = classify(file.name, guess_declared_type(file))
    if category is None:
        console.print(f"[red]Unsupported file[/red]: {file.name}")
        raise typer.Exit(1)
    table = Table(title=f"Targets for {file.name} ({category.value})")
    table.add_column("Label")
    table.add_column("MIME type")
    for entry in compatible_targets(category):
        table.add_row(entry.label, entry.mime_type)
    console.print(table)


@app.command(name="classify")
def classify_file(file: Path) -> None:
    mime = guess_declared_type(file)
    category = classify(file.name, mime)
    if category is None:
        console.print(f"{file.name}: [red]unsupported[/red]")
        raise typer.Exit(1)
    source_format = resolve_source_format(file.name, mime, category)
    labels = ", ".join(label_for(entry.mime_type) for entry in compatible_targets(category))
    console.print(f"{file.name}: {category.value} ({source_format.value}) -> {labels}")


@app.command()
def clean(
    older_than: int = typer.Option(
        0,
        "--older-than",
        min=0,
        help="Delete runs older than the given days",
    ),
    keep: int = typer.Option(
        0,
        "--keep",
        min=0,
        help="Keep the most recent N runs and delete the rest",
    ),
    config: Path | None = typer.Option(None, "--config", help="Path to config.toml"),
) -> None:
    cfg = _load_config(config)
    output_dir = cfg.runtime.output_dir
    if not output_dir.exists():
        console.print("No runs directory found.")
        raise typer.Exit()
    removed = prune_runs(
        output_dir,
        keep=keep or None,
        older_than_s=older_than * 86400 if older_than else None,
    )
    console.print(f"Removed {len(removed)} run directories.")


@app.command()
def show_config(config: Path | None = typer.Option(None, "--config", help="Path to config.toml")) -> None:
    console.print_json(dump_config(_load_config(config)))


if __name__ == "__main__":
    app()
