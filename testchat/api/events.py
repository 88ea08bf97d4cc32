from __future__ import annotations

import asyncio
import time
from typing import Any, Callable, Dict, List, Set

# step_started, step_finished and run_finished payloads, each carrying "runId"
ExecutionEvent = Dict[str, Any]

RUN_FINISHED = "run_finished"
DEFAULT_RETENTION_SECONDS = 300.0


class ExecutionEventBroker:
    """Fans execution progress events out to SSE subscribers, keyed by run id.

    Events published before anyone subscribes are kept per run so a client that
    connects late still sees the full sequence. Once a run has published
    ``run_finished`` its backlog is dropped when the last subscriber leaves, or
    after ``retention_seconds`` if nobody is subscribed.
    """

    def __init__(
        self,
        max_backlog: int = 500,
        retention_seconds: float = DEFAULT_RETENTION_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._listeners: Dict[str, Set[asyncio.Queue]] = {}
        self._backlog: Dict[str, List[ExecutionEvent]] = {}
        self._finished_at: Dict[str, float] = {}
        self._lock = asyncio.Lock()
        self._max_backlog = max_backlog
        self._retention = retention_seconds
        self._clock = clock

    async def connect(self, run_id: str) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue()
        async with self._lock:
            self._prune_finished()
            for event in self._backlog.get(run_id, []):
                queue.put_nowait(event)
            self._listeners.setdefault(run_id, set()).add(queue)
        return queue

    async def disconnect(self, run_id: str, queue: asyncio.Queue) -> None:
        async with self._lock:
            listeners = self._listeners.get(run_id)
            if not listeners:
                return
            listeners.discard(queue)
            if not listeners:
                self._listeners.pop(run_id, None)
                if run_id in self._finished_at:
                    self._drop(run_id)

    async def publish(self, run_id: str, message: ExecutionEvent) -> None:
        async with self._lock:
            backlog = self._backlog.setdefault(run_id, [])
            backlog.append(message)
            del backlog[: -self._max_backlog]
            if message.get("type") == RUN_FINISHED:
                self._finished_at[run_id] = self._clock()
            queues = list(self._listeners.get(run_id, set()))
            self._prune_finished()
        for queue in queues:
            await queue.put(message)

    def retained_runs(self) -> List[str]:
        return list(self._backlog)

    def _prune_finished(self) -> None:
        now = self._clock()
        expired = [
            run_id
            for run_id, finished in self._finished_at.items()
            if run_id not in self._listeners and now - finished >= self._retention
        ]
        for run_id in expired:
            self._drop(run_id)

    def _drop(self, run_id: str) -> None:
        self._backlog.pop(run_id, None)
        self._finished_at.pop(run_id, None)


execution_events = ExecutionEventBroker()
