"""
Tests for graph construction, cycle prevention, readiness and status queries.
"""

import logging

import pytest

from wavedag import Graph, Status, Vertex
from wavedag.exceptions import CycleError, GraphError, GraphFailedError, GraphStartedError, UnknownVertexError

SCENARIO_EDGES = [
    ("A", "B"),
    ("A", "C"),
    ("B", "D"),
    ("C", "D"),
    ("D", "E"),
    ("A", "D"),
    ("A", "E"),
    ("C", "E"),
]


def make_graph(vertex_ids, edges=()):
    graph = Graph()
    for vertex_id in vertex_ids:
        graph.add_vertex(Vertex(vertex_id))
    for from_id, to_id in edges:
        graph.add_edge(from_id, to_id)
    return graph


@pytest.fixture
def scenario_graph():
    return make_graph("ABCDE", SCENARIO_EDGES)


class TestConstruction:
    """Tests for add_vertex and add_edge."""

    def test_add_vertex_sets_back_reference(self):
        graph = Graph()
        vertex = Vertex("A")
        graph.add_vertex(vertex)
        assert vertex.graph is graph
        assert graph.get_vertex("A") is vertex
        assert "A" in graph
        assert len(graph) == 1

    def test_duplicate_vertex_replaces(self, caplog):
        graph = Graph()
        first = Vertex("A", repetitions=1)
        second = Vertex("A", repetitions=3)
        graph.add_vertex(first)
        with caplog.at_level(logging.WARNING, logger="wavedag"):
            graph.add_vertex(second)
        assert graph.get_vertex("A") is second
        assert len(graph) == 1
        assert "already registered" in caplog.text

    def test_replaced_vertex_is_detached(self):
        graph = Graph()
        first = Vertex("A")
        graph.add_vertex(first)
        graph.add_vertex(Vertex("A"))
        assert first.graph is None
        with pytest.raises(GraphError, match="not attached"):
            first.mark_failed()
        assert graph.get_vertex("A").status is Status.PENDING

    def test_re_adding_same_vertex_keeps_it_attached(self):
        graph = Graph()
        vertex = Vertex("A")
        graph.add_vertex(vertex)
        graph.add_vertex(vertex)
        assert vertex.graph is graph

    def test_add_edge_updates_both_directions(self):
        graph = make_graph("AB", [("A", "B")])
        assert graph.get_parents("B") == ["A"]
        assert graph.get_children("A") == ["B"]
        assert graph.get_parents("A") == []
        assert graph.get_children("B") == []
        assert graph.edges() == [("A", "B")]

    def test_parent_order_follows_insertion(self):
        graph = make_graph("ABCD", [("C", "D"), ("A", "D"), ("B", "D")])
        assert graph.get_parents("D") == ["C", "A", "B"]

    def test_duplicate_edge_ignored(self):
        graph = make_graph("AB", [("A", "B"), ("A", "B")])
        assert graph.get_parents("B") == ["A"]
        assert graph.get_children("A") == ["B"]

    @pytest.mark.parametrize("edge", [("A", "ghost"), ("ghost", "A")])
    def test_unknown_vertex_rejected(self, edge):
        graph = make_graph("A")
        with pytest.raises(UnknownVertexError, match="ghost"):
            graph.add_edge(*edge)
        assert graph.edges() == []

    def test_get_vertex_unknown(self):
        with pytest.raises(UnknownVertexError):
            Graph().get_vertex("A")


class TestCycles:
    """Tests for insertion-time cycle prevention."""

    def test_scenario_edges_accepted(self, scenario_graph):
        assert sorted(scenario_graph.edges()) == sorted(SCENARIO_EDGES)

    @pytest.mark.parametrize("edge", [("B", "A"), ("D", "A"), ("E", "A")])
    def test_scenario_back_edges_rejected(self, scenario_graph, edge):
        with pytest.raises(CycleError):
            scenario_graph.add_edge(*edge)

    def test_three_cycle_rejected(self):
        graph = make_graph("ABC", [("A", "B"), ("B", "C")])
        with pytest.raises(CycleError, match="C -> A"):
            graph.add_edge("C", "A")

    def test_rejected_edge_leaves_adjacency_unmodified(self):
        graph = make_graph("ABC", [("A", "B"), ("B", "C")])
        before = (graph.edges(), graph.get_parents("A"), graph.get_children("C"))
        with pytest.raises(CycleError):
            graph.add_edge("C", "A")
        assert (graph.edges(), graph.get_parents("A"), graph.get_children("C")) == before

    def test_self_edge_rejected(self):
        graph = make_graph("A")
        with pytest.raises(CycleError):
            graph.add_edge("A", "A")

    def test_is_cyclic_uses_existing_edges_only(self, scenario_graph):
        assert scenario_graph.is_cyclic("E", "A")
        assert scenario_graph.is_cyclic("D", "B")
        assert not scenario_graph.is_cyclic("B", "C")
        assert not scenario_graph.is_cyclic("A", "E")

    def test_parallel_branches_are_not_cycles(self):
        # Two paths to the same vertex are a diamond, not a cycle
        graph = make_graph("ABCD", [("A", "B"), ("A", "C"), ("B", "D")])
        graph.add_edge("C", "D")
        assert graph.get_parents("D") == ["B", "C"]


class TestFreeze:
    """Tests for topology freeze once the graph starts."""

    def test_next_starts_graph(self):
        graph = make_graph("A")
        assert graph.started is False
        graph.next()
        assert graph.started is True

    def test_add_vertex_after_start(self):
        graph = make_graph("A")
        graph.next()
        with pytest.raises(GraphStartedError, match="add vertex"):
            graph.add_vertex(Vertex("B"))
        assert "B" not in graph

    def test_add_edge_after_start(self):
        graph = make_graph("AB")
        graph.start()
        with pytest.raises(GraphStartedError, match="add edge"):
            graph.add_edge("A", "B")
        assert graph.edges() == []

    def test_start_is_idempotent(self):
        graph = make_graph("A")
        graph.start()
        graph.start()
        assert graph.started is True


class TestReadiness:
    """Tests for can_execute and next()."""

    def test_roots_ready_first(self, scenario_graph):
        assert [v.id for v in scenario_graph.next()] == ["A"]

    def test_next_sorted_by_id(self):
        graph = make_graph(["c", "a", "b"])
        assert [v.id for v in graph.next()] == ["a", "b", "c"]

    def test_children_unlock_after_parent_resolves(self, diamond_graph):
        diamond_graph.get_vertex("A").mark_passed()
        assert [v.id for v in diamond_graph.next()] == ["B", "C"]

    def test_failed_parent_counts_as_resolved(self, diamond_graph):
        diamond_graph.get_vertex("A").mark_failed()
        assert not diamond_graph.has_failed()
        assert [v.id for v in diamond_graph.next()] == ["B", "C"]

    def test_can_execute(self, diamond_graph):
        a, b, d = (diamond_graph.get_vertex(v) for v in "ABD")
        assert diamond_graph.can_execute(a)
        assert not diamond_graph.can_execute(b)
        a.mark_passed()
        assert not diamond_graph.can_execute(a)
        assert diamond_graph.can_execute(b)
        b.mark_passed()
        # C still pending
        assert not diamond_graph.can_execute(d)

    def test_next_empty_when_all_resolved(self, diamond_graph):
        for vertex in diamond_graph.vertices.values():
            vertex.mark_passed()
        assert diamond_graph.next() == []

    def test_next_on_failed_graph(self, diamond_graph):
        diamond_graph.fail()
        with pytest.raises(GraphFailedError):
            diamond_graph.next()


class TestRunStatus:
    """Tests for the shared run status and its queries."""

    def _assert_consistent(self, graph):
        assert graph.has_finished() == (graph.has_failed() or graph.has_succeeded())

    def test_initial(self):
        graph = Graph()
        assert graph.status is Status.PENDING
        assert not graph.has_failed()
        assert not graph.has_succeeded()
        assert not graph.has_finished()
        self._assert_consistent(graph)

    def test_succeed(self):
        graph = Graph()
        assert graph.succeed() is True
        assert graph.has_succeeded()
        assert graph.has_finished()
        self._assert_consistent(graph)

    def test_fail(self):
        graph = Graph()
        graph.fail()
        assert graph.has_failed()
        assert graph.has_finished()
        self._assert_consistent(graph)

    def test_terminal_status_is_final(self):
        graph = Graph()
        graph.fail()
        assert graph.succeed() is False
        assert graph.status is Status.FAILED

        graph = Graph()
        graph.succeed()
        graph.fail()
        assert graph.status is Status.PASSED

    def test_summary(self, diamond_graph):
        diamond_graph.get_vertex("A").mark_passed()
        diamond_graph.get_vertex("B").mark_failed()
        assert diamond_graph.get_summary() == {
            "status": "pending",
            "started": False,
            "total_vertices": 4,
            "total_edges": 4,
            "pending": 2,
            "passed": 1,
            "failed": 1,
        }


class TestTopologyViews:
    """Tests for topological sort, layers and text renderings."""

    def test_topological_sort(self, scenario_graph):
        assert scenario_graph.topological_sort() == ["A", "B", "C", "D", "E"]

    def test_topological_sort_respects_edges(self, scenario_graph):
        order = scenario_graph.topological_sort()
        for from_id, to_id in SCENARIO_EDGES:
            assert order.index(from_id) < order.index(to_id)

    def test_layers(self, scenario_graph):
        assert scenario_graph.get_layers() == {"A": 0, "B": 1, "C": 1, "D": 2, "E": 3}

    def test_visualize_layers(self, scenario_graph):
        assert scenario_graph.visualize_layers() == "Layer 0: A\nLayer 1: B ── C\nLayer 2: D\nLayer 3: E"

    def test_visualize_tree(self):
        graph = make_graph("ABC", [("A", "B"), ("A", "C")])
        assert graph.visualize_tree() == "└─ A\n   ├─ B\n   └─ C"

    def test_visualize_tree_unknown_root(self):
        assert make_graph("A").visualize_tree(root="Z") == "No root vertices found"

    def test_empty_graph(self):
        graph = Graph()
        assert graph.topological_sort() == []
        assert graph.visualize_layers() == ""
