"""
Run, wave and attempt tracking.

A RunReport represents one scheduler run.
A WaveRecord represents one wave: a snapshot of ready vertices and their attempts.
An AttemptRecord represents a single execution-unit invocation.
"""

import time
import uuid
from dataclasses import dataclass, field
from typing import Any

from wavedag.core.status import Status


@dataclass
class AttemptRecord:
    """Outcome of a single execution attempt."""

    vertex_id: str
    attempt: int  # 1-based within the wave
    outcome: Status = Status.PENDING
    recorded: bool = False  # False when the write was suppressed by a graph failure
    error: str | None = None
    elapsed: float = 0.0  # time inside the execution unit, excluding thread-pool queue wait


@dataclass
class WaveRecord:
    """A single wave of the scheduler loop."""

    number: int
    vertex_ids: list[str] = field(default_factory=list)
    attempts: list[AttemptRecord] = field(default_factory=list)
    started_at: float | None = None
    completed_at: float | None = None

    def start(self) -> None:
        self.started_at = time.time()

    def complete(self) -> None:
        self.completed_at = time.time()

    def get_duration(self) -> float | None:
        """Get wave duration in seconds."""
        if self.started_at and self.completed_at:
            return self.completed_at - self.started_at
        elif self.started_at:
            return time.time() - self.started_at
        return None

    @property
    def failed_attempts(self) -> list[AttemptRecord]:
        return [a for a in self.attempts if a.outcome is Status.FAILED]


@dataclass
class RunReport:
    """
    Report for one scheduler run.

    The report is diagnostic: the graph and vertex statuses remain the
    authoritative outcome.
    """

    run_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    status: Status = Status.PENDING
    started_at: float | None = None
    completed_at: float | None = None
    waves: list[WaveRecord] = field(default_factory=list)
    vertex_status: dict[str, Status] = field(default_factory=dict)

    def start(self) -> None:
        """Mark run as started."""
        self.started_at = time.time()

    def complete(self, status: Status, vertex_status: dict[str, Status] | None = None) -> None:
        """Mark run as completed with its terminal status."""
        self.status = status
        self.completed_at = time.time()
        if vertex_status is not None:
            self.vertex_status = dict(vertex_status)

    def new_wave(self, vertex_ids: list[str]) -> WaveRecord:
        wave = WaveRecord(number=len(self.waves) + 1, vertex_ids=list(vertex_ids))
        self.waves.append(wave)
        return wave

    def get_duration(self) -> float | None:
        """Get run duration in seconds."""
        if self.started_at and self.completed_at:
            return self.completed_at - self.started_at
        elif self.started_at:
            return time.time() - self.started_at
        return None

    def get_summary(self) -> dict[str, Any]:
        """Get run summary statistics."""
        attempts = [a for wave in self.waves for a in wave.attempts]
        return {
            "run_id": self.run_id,
            "status": self.status.value,
            "waves": len(self.waves),
            "attempts": len(attempts),
            "failed_attempts": sum(1 for a in attempts if a.outcome is Status.FAILED),
            "dropped_attempts": sum(1 for a in attempts if not a.recorded),
            "duration": self.get_duration(),
            "vertices": {vertex_id: status.value for vertex_id, status in self.vertex_status.items()},
        }
