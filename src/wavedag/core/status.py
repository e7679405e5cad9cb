"""
Status values shared by vertices and graphs.
"""

from enum import StrEnum


class Status(StrEnum):
    """Vertex and run status. Passed and Failed are terminal."""

    PENDING = "pending"
    PASSED = "passed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not Status.PENDING
