"""
Graph building from a graph definition.
"""

from typing import Any

from wavedag.config.loader import Config, edge_endpoints
from wavedag.core.graph import Graph
from wavedag.core.vertex import Vertex


def build_graph(config: Config | dict[str, Any]) -> Graph:
    """
    Build a graph from a graph definition.

    All vertices are added before any edge, so edge order in the definition
    does not matter. ``command`` and ``description`` keys are stored in the
    vertex metadata alongside any explicit ``metadata`` mapping.

    Args:
        config: Loaded Config or a raw definition dictionary

    Returns:
        Graph instance, not yet started

    Raises:
        ConfigurationError: The definition is malformed
        UnknownVertexError: An edge references an undeclared vertex
        CycleError: The edges do not form a DAG
    """
    if not isinstance(config, Config):
        config = Config(config)
    config.validate()

    graph = Graph()

    for vertex_info in config.vertices:
        metadata = dict(vertex_info.get("metadata") or {})
        for key in ("command", "description"):
            if vertex_info.get(key) is not None:
                metadata[key] = vertex_info[key]

        graph.add_vertex(
            Vertex(
                id=vertex_info["id"],
                repetitions=vertex_info.get("repetitions", 1),
                can_fail=vertex_info.get("can_fail", True),
                metadata=metadata,
            )
        )

    for edge in config.edges:
        from_id, to_id = edge_endpoints(edge)
        graph.add_edge(from_id, to_id)

    return graph
