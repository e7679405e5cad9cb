"""
Wave scheduler.

Alternates readiness computation, concurrent dispatch of a wave of ready
vertices, and a barrier wait, until the graph reaches a terminal status.
"""

from __future__ import annotations

import asyncio
import inspect
import os
import time
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING, Any

from wavedag.core.graph import Graph
from wavedag.core.report import AttemptRecord, RunReport
from wavedag.core.status import Status
from wavedag.core.vertex import Vertex
from wavedag.exceptions import GraphFailedError, VertexExecutionError
from wavedag.utils.logging import get_logger

if TYPE_CHECKING:
    from wavedag.units import ExecutionUnit

logger = get_logger("wavedag.scheduler")


class WaveScheduler:
    """
    Runs a graph wave by wave.

    Each wave dispatches ``vertex.repetitions`` concurrent attempts for every
    ready vertex and waits for all of them before computing the next wave.
    A dispatched wave always runs to completion, even if a vertex that cannot
    fail escalates mid-wave; outcomes arriving after the escalation are
    dropped by the graph.

    Plain callables run on a thread pool; coroutine functions are awaited on
    the event loop. When several attempts of the same vertex race, the last
    status write to land wins.

    Attributes:
        graph: Graph being run
        unit: Execution unit invoked for each attempt
        thread_pool_size: Number of worker threads for plain callables
        report: Report of the most recent run
    """

    DEFAULT_THREAD_POOL_SIZE = None  # None means auto-detect

    def __init__(self, graph: Graph, unit: ExecutionUnit, max_workers: int | str | None = DEFAULT_THREAD_POOL_SIZE):
        self.graph = graph
        self.unit = unit
        self.thread_pool_size = self._determine_thread_pool_size(max_workers)
        self.report = RunReport()
        self._unit_is_async = inspect.iscoroutinefunction(unit) or inspect.iscoroutinefunction(
            getattr(unit, "__call__", None)
        )

    def _determine_thread_pool_size(self, max_workers: int | str | None) -> int:
        """
        Determine thread pool size from configuration.

        Args:
            max_workers: Configuration value - can be:
                - None or "auto": min(32, (CPU count * 2) + 4)
                - Integer: Use explicit value

        Returns:
            Integer thread pool size
        """
        if max_workers is None or (isinstance(max_workers, str) and max_workers.lower() == "auto"):
            cpu_count = os.cpu_count()
            if cpu_count is None:
                logger.warning("Could not determine CPU count, defaulting to 8 workers")
                return 8
            return min(32, (cpu_count * 2) + 4)
        elif isinstance(max_workers, int) and not isinstance(max_workers, bool):
            if max_workers <= 0:
                raise ValueError(f"max_workers must be positive, got {max_workers}")
            return max_workers
        else:
            raise ValueError(
                f"max_workers must be an integer, 'auto', or None, got {type(max_workers).__name__}: {max_workers}"
            )

    def run(self) -> Status:
        """
        Run the graph to a terminal status, blocking the caller.

        Must not be called from inside a running event loop; use
        ``run_async`` there.

        Raises:
            GraphFailedError: The graph had already failed before the run
        """
        return asyncio.run(self.run_async())

    async def run_async(self) -> Status:
        """Run the graph to a terminal status."""
        if self.graph.has_failed():
            raise GraphFailedError("Cannot run a graph that has already failed")
        if self.graph.has_succeeded():
            logger.info("Graph has already succeeded, nothing to run")
            return self.graph.status

        self.report = RunReport()
        self.report.start()
        logger.info(f"Starting run {self.report.run_id} ({len(self.graph)} vertices, {self.thread_pool_size} workers)")

        pool = ThreadPoolExecutor(max_workers=self.thread_pool_size, thread_name_prefix="wavedag")
        try:
            while not self.graph.has_finished():
                try:
                    ready = self.graph.next()
                except GraphFailedError:
                    # Failed by the embedder between the status check and the snapshot
                    break

                if not ready:
                    self.graph.succeed()
                    break

                await self._run_wave(ready, pool)
        finally:
            pool.shutdown(wait=True)

        status = self.graph.status
        self.report.complete(status, {vertex_id: v.status for vertex_id, v in self.graph.vertices.items()})
        duration = self.report.get_duration() or 0.0
        if status is Status.PASSED:
            logger.info(f"Run {self.report.run_id} passed in {duration:.2f}s after {len(self.report.waves)} waves")
        else:
            logger.error(f"Run {self.report.run_id} failed in {duration:.2f}s after {len(self.report.waves)} waves")
        return status

    async def _run_wave(self, ready: list[Vertex], pool: ThreadPoolExecutor) -> None:
        """Dispatch every attempt of a wave and wait for all of them (barrier)."""
        wave = self.report.new_wave([v.id for v in ready])
        wave.start()

        attempts = []
        for vertex in ready:
            for attempt in range(1, vertex.repetitions + 1):
                record = AttemptRecord(vertex_id=vertex.id, attempt=attempt)
                wave.attempts.append(record)
                attempts.append(self._run_attempt(vertex, record, pool))

        logger.info(f"Wave {wave.number}: {len(attempts)} attempts for {', '.join(wave.vertex_ids)}")
        await asyncio.gather(*attempts)
        wave.complete()

        failed = len(wave.failed_attempts)
        logger.info(
            f"Wave {wave.number} finished in {wave.get_duration() or 0.0:.2f}s: "
            f"{len(wave.attempts) - failed} passed, {failed} failed"
        )

    async def _run_attempt(self, vertex: Vertex, record: AttemptRecord, pool: ThreadPoolExecutor) -> None:
        """Invoke the execution unit once and record the outcome on the vertex."""
        try:
            outcome = await self._invoke(vertex, record, pool)
        except Exception as e:
            if isinstance(e, VertexExecutionError):
                error = e
            else:
                error = VertexExecutionError(vertex.id, str(e) or type(e).__name__, cause=e)
            logger.error(error.message, exc_info=e)
            record.error = error.message
            outcome = Status.FAILED
        record.outcome = outcome

        if outcome is Status.PASSED:
            record.recorded = vertex.mark_passed()
        else:
            record.recorded = vertex.mark_failed()

        if not record.recorded:
            logger.debug(f"Vertex '{vertex.id}' attempt {record.attempt} outcome dropped: graph already failed")
        else:
            logger.debug(f"Vertex '{vertex.id}' attempt {record.attempt} {outcome.value} in {record.elapsed:.3f}s")

    async def _invoke(self, vertex: Vertex, record: AttemptRecord, pool: ThreadPoolExecutor) -> Status:
        if self._unit_is_async:
            start_time = time.monotonic()
            try:
                result = await self.unit(vertex)
            finally:
                record.elapsed = time.monotonic() - start_time
        else:
            loop = asyncio.get_running_loop()
            result = await loop.run_in_executor(pool, self._call_unit, vertex, record)
        return _coerce_outcome(vertex.id, result)

    def _call_unit(self, vertex: Vertex, record: AttemptRecord) -> Any:
        """Call a plain unit on a worker thread, timing only the call itself."""
        start_time = time.monotonic()
        try:
            return self.unit(vertex)
        finally:
            record.elapsed = time.monotonic() - start_time


def _coerce_outcome(vertex_id: str, result: Any) -> Status:
    """Map an execution unit's return value to Passed or Failed."""
    if isinstance(result, bool):
        return Status.PASSED if result else Status.FAILED
    if isinstance(result, Status) and result is not Status.PENDING:
        return result
    raise VertexExecutionError(vertex_id, f"execution unit returned {result!r}, expected Status or bool")
