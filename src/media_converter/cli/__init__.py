from __future__ import annotations

import asyncio
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from ..backends.imaging import ensure_encoder
from ..config import AppConfig, dump_config, load_config
from ..core import BatchOrchestrator
from ..errors import ConversionError, EncodeUnsupported
from ..logging import RunLogger
from ..models import ConversionMode, ConversionOptions, ImageFormat, InputUnit
from ..settings import get_settings
from ..utils import iter_files

console = Console()

app = typer.Typer(help="Batch image and PDF conversion toolkit")


def _load_config(path: Path | None) -> AppConfig:
    settings = get_settings()
    config = load_config(path or settings.config_path)
    if settings.strict_formats is not None:
        config.runtime.strict_formats = settings.strict_formats
    if settings.output_dir is not None:
        config.runtime.output_dir = settings.output_dir
    return config


def _format_size(size: int) -> str:
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    return f"{size / (1024 * 1024):.1f} MB"


@app.command()
def convert(
    mode: ConversionMode = typer.Argument(..., help="Conversion mode"),
    files: list[Path] = typer.Argument(..., exists=True, help="Input files or directories"),
    target: str | None = typer.Option(None, "--format", "-f", help="Target encoding: jpeg, png or webp"),
    quality: int | None = typer.Option(None, "--quality", min=1, max=100, help="Lossy encoder quality"),
    output_dir: Path | None = typer.Option(None, "--output-dir", "-o", help="Where to save the artifacts"),
    config: Path | None = typer.Option(None, "--config", help="Path to config.toml"),
) -> None:
    cfg = _load_config(config)
    logger = RunLogger(cfg.runtime.output_dir / cfg.runtime.log_file) if cfg.runtime.log_file else None
    orchestrator = BatchOrchestrator(cfg, logger=logger)
    units = [InputUnit.from_path(path) for path in iter_files(files)]
    try:
        options = ConversionOptions.from_values(
            target or cfg.runtime.default_format,
            quality if quality is not None else cfg.runtime.quality,
            strict=cfg.runtime.strict_formats,
        )
        orchestrator.select_batch(units, mode)
        orchestrator.set_options(mode, options)
        run = asyncio.run(orchestrator.run())
    except ConversionError as exc:
        console.print(f"[red]Conversion failed[/red]: {exc.code} - {exc}")
        raise typer.Exit(1) from exc
    if run is None:
        console.print("[yellow]No input files selected.[/yellow]")
        raise typer.Exit(1)

    destination = output_dir or cfg.runtime.output_dir
    table = Table(title=f"Run {run.run_id}")
    table.add_column("Artifact")
    table.add_column("Kind")
    table.add_column("Size", justify="right")
    table.add_column("Saved to")
    try:
        for artifact in run.artifacts:
            saved = orchestrator.registry.save(artifact.artifact_id, destination)
            table.add_row(artifact.name, artifact.kind.value, _format_size(artifact.size), str(saved))
    finally:
        orchestrator.reset()
    console.print(table)
    console.print(
        f"[green]Success[/green]: {len(run.results)} result(s) from {len(run.inputs)} file(s) "
        f"in {run.mode.value} mode."
    )


@app.command()
def formats() -> None:
    table = Table(title="Target encodings")
    table.add_column("Name")
    table.add_column("Extension")
    table.add_column("Available")
    for fmt in ImageFormat:
        try:
            ensure_encoder(fmt)
            available = "yes"
        except EncodeUnsupported:
            available = "no"
        table.add_row(fmt.value, fmt.extension, available)
    console.print(table)


@app.command()
def show_config(
    config: Path | None = typer.Option(None, "--config", help="Path to config.toml"),
) -> None:
    console.print_json(dump_config(_load_config(config)))


if __name__ == "__main__":
    app()
