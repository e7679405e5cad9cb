"""
Vertex: a schedulable task node.

A vertex carries its identity, status, repetition count and failure policy.
Status writes go through the owning graph's lock so that fail-fast escalation
is atomic with respect to every other status write in the graph.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from wavedag.core.status import Status
from wavedag.exceptions import GraphError
from wavedag.utils.logging import get_logger

if TYPE_CHECKING:
    from wavedag.core.graph import Graph

logger = get_logger("wavedag.vertex")


@dataclass(eq=False)
class Vertex:
    """
    A task node in a dependency graph.

    Attributes:
        id: Identity string, unique within the owning graph
        repetitions: Number of concurrent attempts dispatched when the vertex is ready
        can_fail: If False, a failure of this vertex aborts the whole run
        status: Current status (Pending until an attempt records an outcome)
        metadata: Free-form data for execution units (e.g. ``command``)
    """

    id: str
    repetitions: int = 1
    can_fail: bool = True
    status: Status = Status.PENDING
    metadata: dict[str, Any] = field(default_factory=dict)

    # Set by Graph.add_vertex; the graph owns the vertex, not the other way round
    graph: Graph | None = field(default=None, repr=False, compare=False)

    def __post_init__(self) -> None:
        if not isinstance(self.id, str) or not self.id.strip():
            raise ValueError("vertex id must be a non-empty string")
        if isinstance(self.repetitions, bool) or not isinstance(self.repetitions, int) or self.repetitions < 1:
            raise ValueError(f"repetitions must be a positive integer, got {self.repetitions!r}")
        self.status = Status(self.status)

    def _owner(self) -> Graph:
        if self.graph is None:
            raise GraphError(f"Vertex '{self.id}' is not attached to a graph", details={"vertex": self.id})
        return self.graph

    def mark_passed(self) -> bool:
        """
        Record a passing outcome.

        No-op once the graph has failed.

        Returns:
            True if the status write was recorded
        """
        graph = self._owner()
        with graph.lock:
            if graph.status is Status.FAILED:
                return False
            self.status = Status.PASSED
            return True

    def mark_failed(self) -> bool:
        """
        Record a failing outcome, escalating to a graph failure if this vertex cannot fail.

        No-op once the graph has failed.

        Returns:
            True if the status write was recorded
        """
        graph = self._owner()
        with graph.lock:
            if graph.status is Status.FAILED:
                return False
            self.status = Status.FAILED
            if not self.can_fail:
                logger.error(f"Vertex '{self.id}' failed, but it cannot fail - aborting run")
                graph.status = Status.FAILED
            else:
                logger.warning(f"Vertex '{self.id}' failed (absorbed, can_fail=True)")
            return True

    def state(self) -> str:
        """Log and return a human-readable status line (diagnostics only)."""
        line = f"Vertex {self.id} is in state: {self.status.value.capitalize()}"
        logger.info(line)
        return line
