"""
Readiness computation.

Pure functions over vertex statuses and parent adjacency. A vertex is ready
when it is still Pending and every parent has left Pending. A Failed parent
counts as resolved: only a graph-level failure halts progress.
"""

from collections.abc import Mapping, Sequence

from wavedag.core.status import Status
from wavedag.core.vertex import Vertex


def can_execute(
    vertex: Vertex,
    vertices: Mapping[str, Vertex],
    parents: Mapping[str, Sequence[str]],
) -> bool:
    """Check whether a single vertex may run now."""
    if vertex.status is not Status.PENDING:
        return False
    for parent_id in parents.get(vertex.id, ()):
        parent = vertices.get(parent_id)
        if parent is None or parent.status is Status.PENDING:
            return False
    return True


def ready_set(
    vertices: Mapping[str, Vertex],
    parents: Mapping[str, Sequence[str]],
) -> list[Vertex]:
    """
    Compute the ready set.

    Returns vertices sorted by id so that waves are dispatched in a
    deterministic order.
    """
    return [
        vertices[vertex_id] for vertex_id in sorted(vertices) if can_execute(vertices[vertex_id], vertices, parents)
    ]
