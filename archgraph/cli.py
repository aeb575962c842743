"""Typer-based CLI for archgraph."""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from . import __version__
from .analyzer import ArchitectureAnalyzer
from .config_manager import load_settings
from .file_tree import build_file_tree, load_file_tree
from .graph_export import render_dot, render_json, render_mermaid
from .layout import LayoutEngine
from .models import ArchitectureAnalysis

console = Console()

app = typer.Typer(
    help="Repository architecture graphs: dependencies, layers, and layouts.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


class OutputFormat(str, Enum):
    summary = "summary"
    json = "json"
    mermaid = "mermaid"
    dot = "dot"


def version_callback(value: bool):
    """Print version and exit."""
    if value:
        typer.echo(f"archgraph v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    )
):
    """archgraph: dependency graphs and diagram layouts for source trees."""
    pass


def _print_summary(analysis: ArchitectureAnalysis) -> None:
    m = analysis.metrics
    table = Table(title="Architecture Metrics", show_header=True)
    table.add_column("Metric", style="cyan", width=20)
    table.add_column("Value", justify="right")
    table.add_row("Files", str(m.total_files))
    table.add_row("Lines of code", str(m.total_lines))
    table.add_row("Avg complexity", f"{m.average_complexity:.2f}")
    table.add_row("Coupling", f"{m.coupling:.2f}")
    table.add_row("Cohesion", f"{m.cohesion:.2f}")
    table.add_row("Edges", str(len(analysis.edges)))
    console.print(table)

    layers = Table(title="Layers", show_header=True)
    layers.add_column("Layer", style="magenta", width=16)
    layers.add_column("Files", justify="right", style="green", width=6)
    layers.add_column("Examples", min_width=30)
    for layer_name, members in analysis.layers.as_dict().items():
        names = [analysis.node(i).name for i in members[:3]]
        layers.add_row(layer_name, str(len(members)), ", ".join(names))
    console.print(layers)


@app.command("analyze")
def analyze_command(
    source: Path = typer.Argument(..., exists=True, help="Project directory or JSON file tree."),
    output_format: OutputFormat = typer.Option(
        OutputFormat.summary, "--format", "-f", help="summary, json, mermaid, or dot.",
    ),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the result to a file."),
    max_depth: Optional[int] = typer.Option(None, "--max-depth", min=0, help="Directory depth limit."),
    focus: str = typer.Option("", "--focus", help="DOT only: keep nodes matching this text and neighbours."),
    config_file: Optional[Path] = typer.Option(None, "--config", help="Settings TOML file."),
    verbose: bool = typer.Option(False, "--verbose", help="Log per-file decisions."),
):
    """Analyze a source tree and print or export its architecture."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if source.is_dir():
        tree = build_file_tree(source, max_depth=max_depth)
    elif source.suffix == ".json":
        tree = load_file_tree(source)
    else:
        raise typer.BadParameter("SOURCE must be a directory or a .json file tree.")

    analysis_settings, layout_settings = load_settings(config_file)
    analysis = ArchitectureAnalyzer(analysis_settings).analyze(tree)

    if output_format == OutputFormat.summary:
        _print_summary(analysis)
        return

    if output_format == OutputFormat.dot:
        text = render_dot(analysis, focus=focus)
    else:
        flowchart = LayoutEngine(layout_settings).generate_flowchart(analysis)
        text = render_json(flowchart) if output_format == OutputFormat.json else render_mermaid(flowchart)

    if output is not None:
        output.write_text(text, encoding="utf-8")
        typer.echo(f"Wrote {output_format.value} to {output}")
    else:
        typer.echo(text, nl=False)


if __name__ == "__main__":
    app()
