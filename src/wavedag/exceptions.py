"""
wavedag exception hierarchy.

All domain-specific exceptions inherit from WaveDagError, so embedders can
catch any scheduler error with a single base class while still allowing
fine-grained handling when needed.

Hierarchy::

    WaveDagError
    ├── ConfigurationError        - graph definition loading, parsing, validation
    ├── GraphError                - precondition violations on a graph
    │   ├── GraphStartedError     - topology mutation after the graph started
    │   ├── CycleError            - edge would close a cycle
    │   ├── UnknownVertexError    - edge endpoint not registered
    │   └── GraphFailedError      - readiness/run requested on a failed graph
    └── ExecutionError            - vertex execution failures
        └── VertexExecutionError  - execution unit raised or misbehaved

Task-domain failures (an execution unit reporting Failed) are not exceptions;
they are recorded as vertex status.
"""

from __future__ import annotations


class WaveDagError(Exception):
    """Base exception for all wavedag errors."""

    def __init__(self, message: str, *, details: dict | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


# --- Configuration -----------------------------------------------------------


class ConfigurationError(WaveDagError):
    """Raised when a graph definition cannot be loaded, parsed, or validated."""


# --- Graph -------------------------------------------------------------------


class GraphError(WaveDagError):
    """Raised when an operation violates a graph precondition."""


class GraphStartedError(GraphError):
    """Raised when vertices or edges are added to a graph that has started."""

    def __init__(self, operation: str) -> None:
        super().__init__(
            f"Cannot {operation} to a graph that has already started",
            details={"operation": operation},
        )
        self.operation = operation


class CycleError(GraphError):
    """Raised when an edge would close a cycle."""

    def __init__(self, from_id: str, to_id: str) -> None:
        super().__init__(
            f"Cannot add cyclic edge {from_id} -> {to_id}",
            details={"from": from_id, "to": to_id},
        )
        self.from_id = from_id
        self.to_id = to_id


class UnknownVertexError(GraphError):
    """Raised when an edge references a vertex that is not registered."""

    def __init__(self, vertex_id: str) -> None:
        super().__init__(f"Vertex not found: {vertex_id}", details={"vertex": vertex_id})
        self.vertex_id = vertex_id


class GraphFailedError(GraphError):
    """Raised when readiness or a run is requested on a failed graph."""


# --- Execution ---------------------------------------------------------------


class ExecutionError(WaveDagError):
    """Raised when vertex execution fails."""


class VertexExecutionError(ExecutionError):
    """Raised when an execution unit raises or returns an invalid outcome."""

    def __init__(self, vertex_id: str, message: str, *, cause: Exception | None = None) -> None:
        full = f"Vertex '{vertex_id}' failed: {message}"
        super().__init__(full, details={"vertex": vertex_id})
        self.vertex_id = vertex_id
        if cause is not None:
            self.__cause__ = cause
