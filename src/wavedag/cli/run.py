"""
wavedag run - Execute a graph definition.
"""

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from wavedag.config.loader import load_config
from wavedag.core.builder import build_graph
from wavedag.core.report import RunReport
from wavedag.core.scheduler import WaveScheduler
from wavedag.core.status import Status
from wavedag.exceptions import WaveDagError
from wavedag.units import CommandExecutionUnit, RandomExecutionUnit
from wavedag.utils.logging import get_logger, setup_logging_from_config

logger = get_logger("wavedag.cli.run")
console = Console()

STATUS_STYLES = {
    Status.PASSED: "green",
    Status.FAILED: "red",
    Status.PENDING: "dim",
}


def run(
    definition: Path = typer.Argument(..., help="Graph definition YAML file"),
    env: str | None = typer.Option(None, "--env", "-e", help="Environment overlay (loads <stem>.<env>.yaml)"),
    random_outcomes: bool = typer.Option(
        False, "--random", help="Use random pass/fail outcomes instead of running vertex commands"
    ),
    pass_rate: float = typer.Option(0.5, "--pass-rate", help="Probability of a passing attempt with --random"),
    seed: int | None = typer.Option(None, "--seed", help="Random seed for --random"),
    max_workers: int | None = typer.Option(
        None, "--max-workers", "-w", help="Worker threads (default: from definition or auto)"
    ),
    timeout: float | None = typer.Option(None, "--timeout", help="Per-command timeout in seconds"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
) -> None:
    """
    Execute a graph wave by wave.

    Exits with code 0 when the run passes and 1 when it fails.

    Examples:
        wavedag run pipeline.yaml
        wavedag run pipeline.yaml --env ci
        wavedag run pipeline.yaml --random --seed 7
    """
    try:
        config = load_config(definition, env=env)
        config.validate()
        if verbose:
            config.data["logging"] = {**(config.data.get("logging") or {}), "level": "DEBUG"}
        setup_logging_from_config(config.data, project_dir=definition.resolve().parent)
        graph = build_graph(config)
    except (FileNotFoundError, WaveDagError) as e:
        logger.debug(f"Could not load {definition}: {e}")
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from e

    if random_outcomes:
        try:
            unit = RandomExecutionUnit(pass_rate=pass_rate, seed=seed)
        except ValueError as e:
            typer.echo(f"Error: {e}", err=True)
            raise typer.Exit(2) from e
    else:
        unit = CommandExecutionUnit(timeout=timeout, cwd=definition.resolve().parent)

    workers = max_workers if max_workers is not None else config.get("scheduler.max_workers")
    try:
        scheduler = WaveScheduler(graph, unit, max_workers=workers)
    except ValueError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(2) from e

    status = scheduler.run()
    _print_report(scheduler.report)

    if status is not Status.PASSED:
        raise typer.Exit(1)


def _print_report(report: RunReport) -> None:
    """Print per-vertex outcomes and the run summary."""
    summary = report.get_summary()

    table = Table(title=f"Run {report.run_id[:8]}", title_style="bold")
    table.add_column("Vertex", style="cyan")
    table.add_column("Status")
    table.add_column("Wave", justify="right", style="dim")
    table.add_column("Attempts", justify="right")

    wave_of: dict[str, int] = {}
    attempts_of: dict[str, int] = {}
    for wave in report.waves:
        for attempt in wave.attempts:
            wave_of[attempt.vertex_id] = wave.number
            attempts_of[attempt.vertex_id] = attempts_of.get(attempt.vertex_id, 0) + 1

    for vertex_id in sorted(report.vertex_status):
        status = report.vertex_status[vertex_id]
        table.add_row(
            vertex_id,
            f"[{STATUS_STYLES[status]}]{status.value}[/]",
            str(wave_of.get(vertex_id, "-")),
            str(attempts_of.get(vertex_id, 0)),
        )

    console.print(table)

    style = STATUS_STYLES[report.status]
    console.print(
        f"[{style}]Graph {report.status.value}[/] - "
        f"{summary['waves']} waves, {summary['attempts']} attempts, "
        f"{summary['failed_attempts']} failed, {summary['duration'] or 0.0:.2f}s"
    )
