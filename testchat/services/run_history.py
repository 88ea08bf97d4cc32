"""In-memory record of executed commands, filterable by date for the reports view."""
from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Tuple
from uuid import uuid4

from ..core.coordinator import ExecutionReport
from ..core.planner import ExecutionPlan

FILTER_TYPES = ("all", "today", "yesterday", "week", "month", "custom")


@dataclass
class RunRecord:
    command: str
    plan: ExecutionPlan
    report: ExecutionReport
    summary: str = ""
    id: str = field(default_factory=lambda: uuid4().hex)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self, include_outcomes: bool = True) -> Dict[str, Any]:
        report = self.report.to_dict()
        if not include_outcomes:
            report.pop("outcomes")
        return {
            "id": self.id,
            "command": self.command,
            "plan": self.plan.to_dict(),
            "report": report,
            "summary": self.summary,
            "createdAt": self.created_at.isoformat(),
        }


def resolve_date_range(
    filter_type: str,
    today: date,
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> Tuple[Optional[date], Optional[date]]:
    """Inclusive date bounds for a report filter; ``(None, None)`` means no bound."""
    if filter_type == "today":
        return today, today
    if filter_type == "yesterday":
        yesterday = today - timedelta(days=1)
        return yesterday, yesterday
    if filter_type == "week":
        return today - timedelta(days=7), today
    if filter_type == "month":
        return today - timedelta(days=30), today
    if filter_type == "custom":
        return start, end or start
    if filter_type == "all":
        return None, None
    raise ValueError(f"Unknown report filter: {filter_type}")


class RunHistory:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._runs: List[RunRecord] = []

    def add(self, record: RunRecord) -> RunRecord:
        with self._lock:
            self._runs.append(record)
        return record

    def get(self, run_id: str) -> Optional[RunRecord]:
        with self._lock:
            for record in self._runs:
                if record.id == run_id:
                    return record
        return None

    def list(
        self,
        filter_type: str = "all",
        start: Optional[date] = None,
        end: Optional[date] = None,
        today: Optional[date] = None,
    ) -> List[RunRecord]:
        """Most recent first."""
        low, high = resolve_date_range(filter_type, today or datetime.now(timezone.utc).date(), start, end)
        with self._lock:
            runs = list(self._runs)
        selected = [
            record
            for record in runs
            if (low is None or record.created_at.date() >= low) and (high is None or record.created_at.date() <= high)
        ]
        return sorted(selected, key=lambda r: r.created_at, reverse=True)

    def clear(self) -> None:
        with self._lock:
            self._runs.clear()


_run_history: Optional[RunHistory] = None


def get_run_history() -> RunHistory:
    global _run_history
    if _run_history is None:
        _run_history = RunHistory()
    return _run_history
