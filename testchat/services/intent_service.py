"""Natural-language front door: optional Gemini mapping with the local planner as fallback."""
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional

from ..core.catalog import MethodCatalog
from ..core.llm_client import GeminiClient, GeminiError
from ..core.planner import CONFIDENCE_MATCHED, CommandPlanner, ExecutionPlan
from ..core.splitter import split_steps
from .config_service import IntegrationSettings
from .report_service import generate_test_summary

logger = logging.getLogger(__name__)

ClientFactory = Callable[[IntegrationSettings], GeminiClient]


def _default_client_factory(settings: IntegrationSettings) -> GeminiClient:
    return GeminiClient(settings.gemini_api_key, model=settings.gemini_model)


class IntentService:
    def __init__(
        self,
        planner: Optional[CommandPlanner] = None,
        client_factory: ClientFactory = _default_client_factory,
    ) -> None:
        self.planner = planner or CommandPlanner()
        self.client_factory = client_factory

    def interpret(
        self,
        command: str,
        catalog: MethodCatalog,
        settings: Optional[IntegrationSettings] = None,
    ) -> ExecutionPlan:
        if settings is not None and settings.use_gemini and settings.gemini_api_key and catalog:
            try:
                plan = self._interpret_with_gemini(command, catalog, settings)
            except GeminiError as exc:
                logger.warning("[Intent] Gemini unavailable, using local matcher: %s", exc)
            else:
                if plan is not None:
                    return plan
                logger.info("[Intent] Gemini mapped nothing, using local matcher")
        return self.planner.plan(command, catalog)

    def _interpret_with_gemini(
        self,
        command: str,
        catalog: MethodCatalog,
        settings: IntegrationSettings,
    ) -> Optional[ExecutionPlan]:
        client = self.client_factory(settings)
        answer = client.parse_user_intent(command, catalog.to_dicts())
        mapped = answer.get("mappedTests") or []
        sequence = tuple(ref for ref in mapped if isinstance(ref, str) and catalog.resolve(ref) is not None)
        if not sequence:
            return None
        try:
            confidence = float(answer.get("confidence", CONFIDENCE_MATCHED))
        except (TypeError, ValueError):
            confidence = CONFIDENCE_MATCHED
        return ExecutionPlan(
            sequence=sequence,
            confidence=min(max(confidence, 0.0), 1.0),
            reasoning=str(answer.get("reasoning") or f"Identified {len(sequence)} test steps"),
            steps=tuple(split_steps(command)),
            command=command,
        )

    def summarize(self, rows: List[Dict[str, Any]], settings: Optional[IntegrationSettings] = None) -> str:
        """Report summary from Gemini when enabled, else the local emoji summary."""
        if settings is not None and settings.use_gemini and settings.gemini_api_key and rows:
            try:
                text = self.client_factory(settings).summarize(rows).strip()
            except GeminiError as exc:
                logger.warning("[Intent] Gemini summary failed, using local summary: %s", exc)
            else:
                if text:
                    return text
        return generate_test_summary(rows)
