"""Sequential execution of a plan against an external executor."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Protocol, Union

from .catalog import MethodCatalog, MethodDescriptor
from .planner import ExecutionPlan

logger = logging.getLogger(__name__)

STATUS_SUCCESS = "success"
STATUS_FAILURE = "failure"

EventCallback = Callable[[Dict[str, Any]], Awaitable[None]]


@dataclass(frozen=True)
class ExecutionOptions:
    headless: bool = True
    extra_flags: str = ""
    working_directory: str = ""
    output_directory: str = ""


@dataclass(frozen=True)
class CommandResult:
    exit_code: int
    stdout: str = ""
    stderr: str = ""
    command: str = ""

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0


class Executor(Protocol):
    def run(self, class_name: str, method_name: str, options: ExecutionOptions) -> CommandResult:
        ...


@dataclass
class StepOutcome:
    reference: str
    class_name: str
    method_name: str
    name: str
    status: str
    error: Optional[str] = None
    duration_ms: Optional[float] = None
    started_at: Optional[str] = None
    finished_at: Optional[str] = None
    stdout: str = ""
    stderr: str = ""
    command: str = ""

    @property
    def succeeded(self) -> bool:
        return self.status == STATUS_SUCCESS

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ExecutionReport:
    outcomes: List[StepOutcome] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.outcomes)

    @property
    def passed(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.succeeded)

    @property
    def failed(self) -> int:
        return self.total - self.passed

    @property
    def success_rate(self) -> int:
        return round(self.passed / self.total * 100) if self.total else 0

    @property
    def all_passed(self) -> bool:
        return self.total > 0 and self.failed == 0

    def rows(self) -> List[Dict[str, Any]]:
        """Rows in the shape report sinks consume: name, status, error, duration."""
        return [
            {
                "name": outcome.name,
                "status": outcome.status,
                "error": outcome.error,
                "duration": outcome.duration_ms,
            }
            for outcome in self.outcomes
        ]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "passed": self.passed,
            "failed": self.failed,
            "successRate": self.success_rate,
            "outcomes": [outcome.to_dict() for outcome in self.outcomes],
        }


def _utc_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _failure_reason(result: CommandResult) -> str:
    for stream in (result.stderr, result.stdout):
        lines = [line.strip() for line in (stream or "").splitlines() if line.strip()]
        if lines:
            return lines[-1]
    return f"Process exited with code {result.exit_code}"


class ExecutionCoordinator:
    """Run plan entries one at a time, in order, without stopping on failure.

    The executor fronts a single browser / test-runner session, so a shared
    lock keeps at most one execution in flight across every caller of this
    coordinator.
    """

    def __init__(self, executor: Executor) -> None:
        self.executor = executor
        self._lock = asyncio.Lock()

    async def execute(
        self,
        plan: Union[ExecutionPlan, Iterable[str]],
        catalog: MethodCatalog,
        options: Optional[ExecutionOptions] = None,
        on_event: Optional[EventCallback] = None,
        executor: Optional[Executor] = None,
    ) -> ExecutionReport:
        """Run every entry of the plan; ``executor`` overrides the default for this call only."""
        sequence = list(plan.sequence if isinstance(plan, ExecutionPlan) else plan)
        options = options or ExecutionOptions()
        executor = executor or self.executor
        report = ExecutionReport()

        for index, reference in enumerate(sequence):
            await self._emit(on_event, {"type": "step_started", "index": index, "reference": reference})
            outcome = await self._run_step(executor, reference, catalog, options)
            report.outcomes.append(outcome)
            await self._emit(on_event, {"type": "step_finished", "index": index, "outcome": outcome.to_dict()})

        logger.info("[Coordinator] Finished %d step(s): %d passed, %d failed", report.total, report.passed, report.failed)
        await self._emit(on_event, {"type": "run_finished", "report": report.to_dict()})
        return report

    async def _run_step(
        self, executor: Executor, reference: str, catalog: MethodCatalog, options: ExecutionOptions
    ) -> StepOutcome:
        class_name, _, method_name = reference.partition("#")
        method: Optional[MethodDescriptor] = catalog.find(class_name, method_name)
        if method is None:
            logger.warning("[Coordinator] %s is not in the catalog; recording failure", reference)
            now = _utc_iso()
            return StepOutcome(
                reference=reference,
                class_name=class_name,
                method_name=method_name,
                name=reference,
                status=STATUS_FAILURE,
                error=f"Test method not found in catalog: {reference}",
                started_at=now,
                finished_at=now,
            )

        started_at = _utc_iso()
        start = time.perf_counter()
        logger.info("[Coordinator] Running %s", reference)
        try:
            async with self._lock:
                result = await asyncio.to_thread(executor.run, class_name, method_name, options)
        except Exception as exc:  # noqa: BLE001 - executor errors are per-step failures
            duration_ms = (time.perf_counter() - start) * 1000
            logger.warning("[Coordinator] Executor raised for %s: %s", reference, exc)
            return StepOutcome(
                reference=reference,
                class_name=class_name,
                method_name=method_name,
                name=method.display_name,
                status=STATUS_FAILURE,
                error=str(exc) or exc.__class__.__name__,
                duration_ms=duration_ms,
                started_at=started_at,
                finished_at=_utc_iso(),
            )

        duration_ms = (time.perf_counter() - start) * 1000
        succeeded = result.succeeded
        if not succeeded:
            logger.warning("[Coordinator] %s failed with exit code %s", reference, result.exit_code)
        return StepOutcome(
            reference=reference,
            class_name=class_name,
            method_name=method_name,
            name=method.display_name,
            status=STATUS_SUCCESS if succeeded else STATUS_FAILURE,
            error=None if succeeded else _failure_reason(result),
            duration_ms=duration_ms,
            started_at=started_at,
            finished_at=_utc_iso(),
            stdout=result.stdout,
            stderr=result.stderr,
            command=result.command,
        )

    @staticmethod
    async def _emit(on_event: Optional[EventCallback], event: Dict[str, Any]) -> None:
        if on_event is not None:
            await on_event(event)
