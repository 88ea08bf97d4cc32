from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Optional, Tuple

from .catalog import MethodDescriptor
from .matcher import MethodMatcher
from .splitter import split_steps

logger = logging.getLogger(__name__)

CONFIDENCE_MATCHED = 0.85
CONFIDENCE_UNMATCHED = 0.2


@dataclass(frozen=True)
class ExecutionPlan:
    sequence: Tuple[str, ...]
    confidence: float
    reasoning: str
    steps: Tuple[str, ...] = field(default_factory=tuple)
    command: str = ""

    @property
    def is_empty(self) -> bool:
        return not self.sequence

    def to_dict(self) -> Dict[str, Any]:
        return {
            "command": self.command,
            "steps": list(self.steps),
            "sequence": list(self.sequence),
            "confidence": self.confidence,
            "reasoning": self.reasoning,
        }


class CommandPlanner:
    """Turn free text into an ordered list of ``Class#method`` references.

    Steps that match nothing are dropped; an empty sequence is a valid plan.
    """

    def __init__(self, matcher: Optional[MethodMatcher] = None) -> None:
        self.matcher = matcher or MethodMatcher()

    def plan(self, command: str, catalog: Iterable[MethodDescriptor]) -> ExecutionPlan:
        command = command or ""
        methods = tuple(catalog)
        steps = split_steps(command.lower())

        sequence = []
        for step in steps:
            method = self.matcher.find(step, methods)
            if method is not None:
                sequence.append(method.reference)

        if sequence:
            reasoning = f"Identified {len(sequence)} test steps: {' → '.join(steps)}"
        else:
            reasoning = f'Could not identify test methods from: "{command}"'

        logger.info("[Planner] %d step(s), %d matched for command %r", len(steps), len(sequence), command)
        return ExecutionPlan(
            sequence=tuple(sequence),
            confidence=CONFIDENCE_MATCHED if sequence else CONFIDENCE_UNMATCHED,
            reasoning=reasoning,
            steps=tuple(steps),
            command=command,
        )


def maven_selector(plan: ExecutionPlan, maven_command: str = "mvn test -Dtest=") -> str:
    return f"{maven_command}{','.join(plan.sequence)}"
