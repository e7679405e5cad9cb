"""
wavedag - a minimal in-process dependency-graph task scheduler.

Vertices are connected by depends-on edges. The scheduler runs every vertex
whose dependencies have resolved as one concurrent wave, waits for the wave,
and repeats until every vertex has resolved (Passed) or a vertex that cannot
fail has failed (Failed).
"""

__version__ = "0.1.0"

from wavedag.core import (
    AttemptRecord,
    Graph,
    RunReport,
    Status,
    Vertex,
    WaveRecord,
    WaveScheduler,
    build_graph,
)
from wavedag.core.api import run_definition, run_graph, run_graph_async
from wavedag.config import Config, load_config

# Exceptions
from wavedag.exceptions import (
    ConfigurationError,
    CycleError,
    ExecutionError,
    GraphError,
    GraphFailedError,
    GraphStartedError,
    UnknownVertexError,
    VertexExecutionError,
    WaveDagError,
)
from wavedag.units import CommandExecutionUnit, ExecutionUnit, RandomExecutionUnit

# Logging utilities
from wavedag.utils.logging import get_logger, setup_logging, setup_logging_from_config

__all__ = [
    # Model
    "Status",
    "Vertex",
    "Graph",
    "build_graph",
    # Execution
    "WaveScheduler",
    "run_graph",
    "run_graph_async",
    "run_definition",
    "RunReport",
    "WaveRecord",
    "AttemptRecord",
    # Execution units
    "ExecutionUnit",
    "RandomExecutionUnit",
    "CommandExecutionUnit",
    # Config
    "Config",
    "load_config",
    # Logging
    "setup_logging",
    "setup_logging_from_config",
    "get_logger",
    # Exceptions
    "WaveDagError",
    "ConfigurationError",
    "GraphError",
    "GraphStartedError",
    "CycleError",
    "UnknownVertexError",
    "GraphFailedError",
    "ExecutionError",
    "VertexExecutionError",
]
