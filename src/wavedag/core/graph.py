"""
Dependency graph of vertices.

The graph owns its vertices, the parent/child adjacency derived from edges,
the shared run status and the single lock that guards every status write.
Topology is frozen once the graph starts.
"""

import threading
from collections import defaultdict, deque
from typing import Any

from wavedag.core.readiness import can_execute, ready_set
from wavedag.core.status import Status
from wavedag.core.vertex import Vertex
from wavedag.exceptions import CycleError, GraphFailedError, GraphStartedError, UnknownVertexError
from wavedag.utils.logging import get_logger

logger = get_logger("wavedag.graph")


class Graph:
    """Directed acyclic graph of vertices with a shared run status."""

    def __init__(self) -> None:
        self.vertices: dict[str, Vertex] = {}
        self._parents: dict[str, list[str]] = defaultdict(list)  # vertex -> dependencies
        self._children: dict[str, list[str]] = defaultdict(list)  # vertex -> dependents
        self.lock = threading.Lock()
        self.status = Status.PENDING
        self.started = False

    def __len__(self) -> int:
        return len(self.vertices)

    def __contains__(self, vertex_id: object) -> bool:
        return vertex_id in self.vertices

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    def add_vertex(self, vertex: Vertex) -> None:
        """Register a vertex under its id. A duplicate id replaces the previous vertex."""
        if self.started:
            raise GraphStartedError("add vertex")
        if vertex.id in self.vertices:
            logger.warning(f"Vertex '{vertex.id}' already registered, replacing it")
            self.vertices[vertex.id].graph = None
        vertex.graph = self
        self.vertices[vertex.id] = vertex

    def add_edge(self, from_id: str, to_id: str) -> None:
        """
        Add a depends-on edge: ``to_id`` runs after ``from_id`` resolves.

        Raises:
            GraphStartedError: The graph has already started
            UnknownVertexError: Either endpoint is not registered
            CycleError: The edge would close a cycle
        """
        if self.started:
            raise GraphStartedError("add edge")
        for vertex_id in (from_id, to_id):
            if vertex_id not in self.vertices:
                raise UnknownVertexError(vertex_id)
        if self.is_cyclic(from_id, to_id):
            raise CycleError(from_id, to_id)

        if from_id not in self._parents[to_id]:
            self._parents[to_id].append(from_id)
            self._children[from_id].append(to_id)

    def is_cyclic(self, from_id: str, to_id: str) -> bool:
        """
        Check whether adding ``from_id -> to_id`` would close a cycle.

        Depth-first search from ``to_id`` over existing child edges, looking
        for ``from_id``. A self-edge always counts as a cycle.
        """
        if from_id == to_id:
            return True

        visited: set[str] = set()
        stack = [to_id]
        while stack:
            node = stack.pop()
            for child in self._children.get(node, []):
                if child == from_id:
                    return True
                if child not in visited:
                    visited.add(child)
                    stack.append(child)
        return False

    # ------------------------------------------------------------------
    # Topology queries
    # ------------------------------------------------------------------

    def get_vertex(self, vertex_id: str) -> Vertex:
        """Get a registered vertex."""
        try:
            return self.vertices[vertex_id]
        except KeyError:
            raise UnknownVertexError(vertex_id) from None

    def get_parents(self, vertex_id: str) -> list[str]:
        """Get the vertices this one depends on."""
        return list(self._parents.get(vertex_id, []))

    def get_children(self, vertex_id: str) -> list[str]:
        """Get the vertices that depend on this one."""
        return list(self._children.get(vertex_id, []))

    def edges(self) -> list[tuple[str, str]]:
        """All edges as ``(from_id, to_id)`` pairs in insertion order per parent."""
        return [(parent, child) for parent, children in self._children.items() for child in children]

    def topological_sort(self) -> list[str]:
        """
        Topological sort of vertex ids.

        Kahn's algorithm; ties are broken lexicographically so the same graph
        always yields the same order.
        """
        in_degree = {vertex_id: len(self._parents.get(vertex_id, [])) for vertex_id in self.vertices}
        ready = sorted(vertex_id for vertex_id, degree in in_degree.items() if degree == 0)
        queue = deque(ready)
        result = []

        while queue:
            vertex_id = queue.popleft()
            result.append(vertex_id)

            unlocked = []
            for child in self._children.get(vertex_id, []):
                in_degree[child] -= 1
                if in_degree[child] == 0:
                    unlocked.append(child)
            queue.extend(sorted(unlocked))

        return result

    def get_layers(self) -> dict[str, int]:
        """
        Get the execution level of each vertex.

        Returns a dictionary mapping vertex_id -> layer_number (0-based).
        When every vertex passes, the scheduler's waves match these layers.
        """
        layers: dict[str, int] = {}
        for vertex_id in self.topological_sort():
            parents = self._parents.get(vertex_id, [])
            layers[vertex_id] = max((layers[p] + 1 for p in parents), default=0)
        return layers

    def visualize_layers(self) -> str:
        """
        Visualize the graph as layers (execution levels).

        Vertices in the same layer run in the same wave.
        """
        layers: dict[int, list[str]] = defaultdict(list)
        for vertex_id, layer in self.get_layers().items():
            layers[layer].append(vertex_id)

        lines = []
        for layer_num in sorted(layers):
            layer_vertices = sorted(layers[layer_num])
            lines.append(f"Layer {layer_num}: {' ── '.join(layer_vertices)}")

        return "\n".join(lines)

    def visualize_tree(self, root: str | None = None) -> str:
        """
        Visualize the graph as a tree starting from root vertices (no parents).

        Shows dependents with tree branches (│, ├─, └─). Vertices reachable
        through several parents appear under each of them.
        """
        if root:
            roots = [root] if root in self.vertices else []
        else:
            roots = [v for v in self.vertices if not self._parents.get(v)]

        if not roots:
            return "No root vertices found"

        lines: list[str] = []

        def build_tree(vertex_id: str, prefix: str = "", is_last: bool = True) -> None:
            branch = "└─ " if is_last else "├─ "
            lines.append(f"{prefix}{branch}{vertex_id}")

            children = sorted(self._children.get(vertex_id, []))
            extension = "   " if is_last else "│  "
            for i, child in enumerate(children):
                build_tree(child, prefix + extension, i == len(children) - 1)

        for i, root_vertex in enumerate(sorted(roots)):
            if i > 0:
                lines.append("")
            build_tree(root_vertex)

        return "\n".join(lines)

    # ------------------------------------------------------------------
    # Readiness
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Freeze the topology. Idempotent."""
        if not self.started:
            self.started = True
            logger.debug(f"Graph started with {len(self.vertices)} vertices")

    def can_execute(self, vertex: Vertex) -> bool:
        """True iff the vertex is Pending and every parent has resolved."""
        return can_execute(vertex, self.vertices, self._parents)

    def next(self) -> list[Vertex]:
        """
        Compute the ready set, starting the graph on first call.

        Statuses are read under the graph lock, so the snapshot is consistent
        with any concurrent status writes.

        Raises:
            GraphFailedError: The graph has already failed
        """
        self.start()
        with self.lock:
            if self.status is Status.FAILED:
                raise GraphFailedError("Graph has failed")
            return ready_set(self.vertices, self._parents)

    # ------------------------------------------------------------------
    # Run status
    # ------------------------------------------------------------------

    def fail(self) -> None:
        """Abort the run from outside the scheduler. No-op if already terminal."""
        with self.lock:
            if self.status is Status.PENDING:
                logger.error("Graph failed by request")
                self.status = Status.FAILED

    def succeed(self) -> bool:
        """
        Declare success unless a failure has been declared.

        Returns:
            True if the graph moved to Passed
        """
        with self.lock:
            if self.status is not Status.PENDING:
                return False
            self.status = Status.PASSED
            return True

    def has_failed(self) -> bool:
        return self.status is Status.FAILED

    def has_succeeded(self) -> bool:
        return self.status is Status.PASSED

    def has_finished(self) -> bool:
        return self.has_failed() or self.has_succeeded()

    def get_summary(self) -> dict[str, Any]:
        """Get graph summary statistics."""
        statuses = [v.status for v in self.vertices.values()]
        return {
            "status": self.status.value,
            "started": self.started,
            "total_vertices": len(statuses),
            "total_edges": sum(len(children) for children in self._children.values()),
            "pending": statuses.count(Status.PENDING),
            "passed": statuses.count(Status.PASSED),
            "failed": statuses.count(Status.FAILED),
        }
