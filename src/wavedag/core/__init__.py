"""
Core engine: vertices, graph construction, readiness, and the wave scheduler.
"""

from wavedag.core.builder import build_graph
from wavedag.core.graph import Graph
from wavedag.core.report import AttemptRecord, RunReport, WaveRecord
from wavedag.core.scheduler import WaveScheduler
from wavedag.core.status import Status
from wavedag.core.vertex import Vertex

__all__ = [
    "Status",
    "Vertex",
    "Graph",
    "WaveScheduler",
    "build_graph",
    "RunReport",
    "WaveRecord",
    "AttemptRecord",
]
