"""
Execution units.

An execution unit performs the work of a vertex and reports Passed or Failed.
It may be a plain callable (run on the scheduler's thread pool) or a
coroutine function (awaited on the event loop). Units may be invoked
concurrently and several times per vertex per wave, and must not mutate the
graph topology.
"""

from __future__ import annotations

import random
import subprocess
import threading
from collections.abc import Awaitable, Mapping
from pathlib import Path
from typing import Protocol

from wavedag.core.status import Status
from wavedag.core.vertex import Vertex
from wavedag.utils.logging import get_logger

logger = get_logger("wavedag.units")


class ExecutionUnit(Protocol):
    """Callable performing the work of one vertex attempt."""

    def __call__(self, vertex: Vertex) -> Status | bool | Awaitable[Status | bool]: ...


class RandomExecutionUnit:
    """
    Pseudo-random pass/fail outcomes.

    Useful for exercising graphs and failure policies without real work.
    Pass a ``seed`` for reproducible draws; the draw order still depends on
    thread scheduling when attempts run concurrently.
    """

    def __init__(self, pass_rate: float = 0.5, seed: int | None = None) -> None:
        if not 0.0 <= pass_rate <= 1.0:
            raise ValueError(f"pass_rate must be within [0, 1], got {pass_rate}")
        self.pass_rate = pass_rate
        self._random = random.Random(seed)
        self._lock = threading.Lock()

    def __call__(self, vertex: Vertex) -> Status:
        with self._lock:
            draw = self._random.random()
        return Status.PASSED if draw < self.pass_rate else Status.FAILED


class CommandExecutionUnit:
    """
    Run ``vertex.metadata["command"]`` through the shell.

    Exit code 0 passes; a non-zero exit code or a timeout fails. Vertices
    without a command pass without running anything.
    """

    def __init__(
        self,
        timeout: float | None = None,
        cwd: str | Path | None = None,
        env: Mapping[str, str] | None = None,
    ) -> None:
        self.timeout = timeout
        self.cwd = Path(cwd) if cwd is not None else None
        self.env = dict(env) if env is not None else None

    def __call__(self, vertex: Vertex) -> Status:
        command = vertex.metadata.get("command")
        if not command:
            logger.debug(f"Vertex '{vertex.id}' has no command, passing")
            return Status.PASSED

        try:
            completed = subprocess.run(
                command,
                shell=True,
                cwd=self.cwd,
                env=self.env,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired:
            logger.warning(f"Vertex '{vertex.id}' command timed out after {self.timeout}s: {command}")
            return Status.FAILED

        if completed.stdout:
            logger.debug(f"[{vertex.id}] stdout:\n{completed.stdout.rstrip()}")
        if completed.stderr:
            logger.debug(f"[{vertex.id}] stderr:\n{completed.stderr.rstrip()}")

        if completed.returncode != 0:
            logger.warning(f"Vertex '{vertex.id}' command exited with code {completed.returncode}: {command}")
            return Status.FAILED
        return Status.PASSED
