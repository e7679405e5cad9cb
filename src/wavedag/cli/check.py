"""
wavedag check - Validate a graph definition and show its execution layers.
"""

from pathlib import Path

import typer
from rich.console import Console

from wavedag.config.loader import load_config
from wavedag.core.builder import build_graph
from wavedag.exceptions import WaveDagError

console = Console()


def check(
    definition: Path = typer.Argument(..., help="Graph definition YAML file"),
    env: str | None = typer.Option(None, "--env", "-e", help="Environment overlay (loads <stem>.<env>.yaml)"),
    tree: bool = typer.Option(False, "--tree", "-t", help="Also show the dependency tree"),
) -> None:
    """
    Validate a graph definition without running it.

    Reports malformed definitions, unknown vertices and cycles, then prints
    the execution layers (vertices in one layer run in the same wave when
    every vertex passes).
    """
    try:
        graph = build_graph(load_config(definition, env=env))
    except (FileNotFoundError, WaveDagError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from e

    summary = graph.get_summary()
    console.print(
        f"[green]OK[/green] {summary['total_vertices']} vertices, {summary['total_edges']} edges",
        highlight=False,
    )
    console.print(graph.visualize_layers(), markup=False, highlight=False)
    if tree:
        console.print()
        console.print(graph.visualize_tree(), markup=False, highlight=False)
