"""
Programmatic API for wavedag.
"""

from pathlib import Path

from wavedag.config.loader import load_config
from wavedag.core.builder import build_graph
from wavedag.core.graph import Graph
from wavedag.core.report import RunReport
from wavedag.core.scheduler import WaveScheduler
from wavedag.units import CommandExecutionUnit, ExecutionUnit


def run_graph(graph: Graph, unit: ExecutionUnit, max_workers: int | str | None = None) -> RunReport:
    """
    Run a graph to a terminal status, blocking the caller.

    Args:
        graph: Graph to run; it is started (frozen) by the run
        unit: Execution unit invoked for every attempt
        max_workers: Thread pool size, "auto", or None

    Returns:
        The run report; ``report.status`` is the terminal status
    """
    scheduler = WaveScheduler(graph, unit, max_workers=max_workers)
    scheduler.run()
    return scheduler.report


async def run_graph_async(graph: Graph, unit: ExecutionUnit, max_workers: int | str | None = None) -> RunReport:
    """Coroutine form of run_graph, for callers already inside an event loop."""
    scheduler = WaveScheduler(graph, unit, max_workers=max_workers)
    await scheduler.run_async()
    return scheduler.report


def run_definition(
    path: str | Path,
    unit: ExecutionUnit | None = None,
    env: str | None = None,
    max_workers: int | str | None = None,
) -> tuple[Graph, RunReport]:
    """
    Load a graph definition file, build the graph and run it.

    Args:
        path: Path to the YAML graph definition
        unit: Execution unit (default: CommandExecutionUnit rooted at the file's directory)
        env: Environment overlay name
        max_workers: Overrides ``scheduler.max_workers`` from the definition

    Returns:
        Tuple of (graph, run report)
    """
    config = load_config(path, env=env)
    graph = build_graph(config)
    if unit is None:
        unit = CommandExecutionUnit(cwd=Path(path).resolve().parent)
    if max_workers is None:
        max_workers = config.get("scheduler.max_workers")
    return graph, run_graph(graph, unit, max_workers=max_workers)
