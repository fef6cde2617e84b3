"""Typer-based CLI for building static source trees from LSIF dumps."""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from . import __version__
from .bench import Bench
from .config import DEFAULT_INPUT
from .config_manager import resolve_build_config
from .errors import SourceTreeError, ValidationFailure
from .orchestrator import SiteBuilder
from .storage import IndexedGraph

logger = logging.getLogger(__name__)

console = Console()

app = typer.Typer(
    help="🌳 sourcetree: browsable, statically served source code from LSIF dumps.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


def version_callback(value: bool):
    """Print version and exit."""
    if value:
        typer.echo(f"sourcetree v{__version__}")
        raise typer.Exit()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", help="Log debug output to stderr."),
):
    """sourcetree: hover, go-to-definition and find-references without a language server."""
    _configure_logging(verbose)


@app.command("build")
def build(
    input: Optional[Path] = typer.Option(None, "--input", "-i", help="LSIF dump path [default: dump.lsif]."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Output folder for generated files [default: out]."),
    dist: Optional[Path] = typer.Option(None, "--dist", help="Folder of client assets to copy instead of the bundled ones."),
    uri_map: Optional[Path] = typer.Option(None, "--uri-map", help="JSON object mapping URI prefixes to output folders."),
    workers: Optional[int] = typer.Option(None, "--workers", "-w", min=1, max=256, help="Worker threads."),
    bench: Optional[bool] = typer.Option(None, "--bench/--no-bench", help="Print timings of each stage."),
    check: Optional[bool] = typer.Option(None, "--check/--no-check", help="Validate the generated HTML."),
    config_file: Optional[Path] = typer.Option(None, "--config", help="Settings file [default: sourcetree.toml]."),
):
    """Generate the static site for an LSIF dump."""
    started = time.perf_counter()
    try:
        build_config = resolve_build_config(
            input=input,
            output=output,
            dist=dist,
            uri_map=uri_map,
            workers=workers,
            bench=bench,
            check=check,
            config_file=config_file,
        )
    except (ValueError, OSError) as exc:
        raise typer.BadParameter(str(exc))

    if not build_config.input.exists():
        raise typer.BadParameter(f"Input dump '{build_config.input}' does not exist.")
    if build_config.dist is not None and not build_config.dist.is_dir():
        raise typer.BadParameter(f"Dist folder '{build_config.dist}' does not exist.")

    builder = SiteBuilder(build_config, Bench(enabled=build_config.bench, console=console))
    try:
        result = builder.run()
    except ValidationFailure as exc:
        console.print(f"[red]Invalid HTML in {exc.file_path}[/red]")
        for problem in exc.problems[:10]:
            console.print(f"  line {problem['line']}, col {problem['column']}: {problem['error']}")
        raise typer.Exit(code=1)
    except (SourceTreeError, OSError) as exc:
        console.print(f"[red]Build failed:[/red] {escape(str(exc))}")
        logger.debug("Build failed", exc_info=True)
        raise typer.Exit(code=1)

    typer.echo(f"Generated {result.documents} pages in '{result.output}'.")
    typer.echo(f"Annotated ranges: {result.annotated_ranges} | Reference files: {result.reference_files}")
    if result.skipped:
        typer.echo(f"Skipped {result.skipped} documents outside the project.")
    if result.checked is not None:
        typer.echo(f"Checked {result.checked} HTML files: all valid.")
    duration = time.perf_counter() - started
    typer.echo(f"Finished building the source tree in {duration:.2f} seconds.")


@app.command("stats")
def stats(
    input: Path = typer.Option(DEFAULT_INPUT, "--input", "-i", exists=True, dir_okay=False, help="LSIF dump path."),
):
    """Show element counts of an LSIF dump."""
    try:
        graph = IndexedGraph.load(input)
        project_root = graph.project_root
    except SourceTreeError as exc:
        console.print(f"[red]Cannot read dump:[/red] {escape(str(exc))}")
        raise typer.Exit(code=1)

    counts = graph.stats()
    typer.echo(f"Project root: {project_root}")
    typer.echo(f"Documents: {len(graph.documents)}")

    table = Table(title="LSIF elements")
    table.add_column("Kind", style="cyan")
    table.add_column("Label")
    table.add_column("Count", justify="right")
    for kind, name in (("vertices", "vertex"), ("edges", "edge")):
        for label, count in sorted(counts[kind].items()):
            table.add_row(name, label, str(count))
    console.print(table)


if __name__ == "__main__":
    app()
