"""Chat transcript messages for the natural-language test assistant."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List

from ..core.catalog import MethodCatalog
from ..core.coordinator import ExecutionReport
from ..core.planner import ExecutionPlan, maven_selector

AVAILABLE_PREVIEW = 5


def message(role: str, content: str, **extra: Any) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "role": role,
        "content": content,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    payload.update(extra)
    return payload


def empty_catalog_message() -> Dict[str, Any]:
    return message(
        "bot",
        "❌ No test methods are available. Please upload your Java TestNG project in the Admin panel first.",
    )


def no_match_message(command: str, catalog: MethodCatalog) -> Dict[str, Any]:
    names = catalog.names()
    lines = [f"❌ I couldn't identify any test methods from your command: \"{command}\"", "", "Available test methods:"]
    lines.extend(f"• {name}" for name in names[:AVAILABLE_PREVIEW])
    if len(names) > AVAILABLE_PREVIEW:
        lines.append(f"... and {len(names) - AVAILABLE_PREVIEW} more")
    return message("bot", "\n".join(lines))


def analysis_message(plan: ExecutionPlan, maven_command: str = "mvn test -Dtest=") -> Dict[str, Any]:
    steps = "\n".join(f"{idx}. {ref}" for idx, ref in enumerate(plan.sequence, start=1))
    content = (
        f"🤖 **k.ai Command Analysis:** {plan.reasoning}\n\n"
        f"**Execution Plan:**\n{steps}\n\n"
        f"**Maven Command:** `{maven_selector(plan, maven_command)}`"
    )
    return message("bot", content, plan=plan.to_dict())


def results_message(report: ExecutionReport) -> Dict[str, Any]:
    lines = ["**k.ai Execution Results:**"]
    for outcome in report.outcomes:
        lines.append(f"{outcome.reference}: {'✅ PASSED' if outcome.succeeded else '❌ FAILED'}")
        if outcome.error:
            lines.append(f"  Error: {outcome.error}")
    lines.append("")
    lines.append(f"**Summary:** {report.passed}/{report.total} tests passed")
    return message(
        "system",
        "\n".join(lines),
        executionResult={"success": report.all_passed, "passed": report.passed, "total": report.total},
    )


def transcript(command: str, *messages: Dict[str, Any]) -> List[Dict[str, Any]]:
    return [message("user", command), *messages]
