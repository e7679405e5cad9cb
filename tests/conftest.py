"""
Shared fixtures.
"""

import logging

import pytest

from wavedag import Graph, Vertex


@pytest.fixture(autouse=True)
def reset_wavedag_logger():
    """Drop handlers installed by setup_logging so tests don't leak log config."""
    yield
    logger = logging.getLogger("wavedag")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def diamond_graph():
    """A -> B, A -> C, B -> D, C -> D."""
    graph = Graph()
    for vertex_id in ("A", "B", "C", "D"):
        graph.add_vertex(Vertex(vertex_id))
    graph.add_edge("A", "B")
    graph.add_edge("A", "C")
    graph.add_edge("B", "D")
    graph.add_edge("C", "D")
    return graph


@pytest.fixture
def write_definition(tmp_path):
    """Write a graph definition file and return its path."""

    def _write(content: str, name: str = "graph.yaml"):
        path = tmp_path / name
        path.write_text(content)
        return path

    return _write
