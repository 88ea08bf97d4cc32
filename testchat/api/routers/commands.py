from __future__ import annotations

import asyncio
import logging
from typing import AsyncGenerator, Optional
from uuid import uuid4

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from ..auth import jwt_required
from ..deps import catalog_store, coordinator, intent_service, maven_executor, run_history, settings_store
from ..events import RUN_FINISHED, ExecutionEvent, execution_events
from ..sse import KEEPALIVE_FRAME, format_event, sse_response
from ...core.catalog import CatalogStore
from ...core.coordinator import ExecutionCoordinator, Executor
from ...core.settings_store import SettingsStore
from ...services import chat_service
from ...services.config_service import load_integrations, load_test_config
from ...services.intent_service import IntentService
from ...services.run_history import RunHistory, RunRecord


router = APIRouter(prefix="/commands", tags=["commands"], dependencies=[Depends(jwt_required)])
logger = logging.getLogger(__name__)

KEEPALIVE_SECONDS = 15.0


class CommandRequest(BaseModel):
    command: str = Field(..., description="Free-text command, e.g. 'create customer and then create job'.")


class RunRequest(CommandRequest):
    runId: Optional[str] = Field(None, description="Client-chosen run id so the event stream can be opened first.")


async def _close_unstarted_run(run_id: Optional[str]) -> None:
    # a client may already be listening on its chosen run id
    if run_id:
        await execution_events.publish(run_id, {"runId": run_id, "type": RUN_FINISHED, "report": None})


@router.post("/plan")
async def plan_command(
    req: CommandRequest,
    store: CatalogStore = Depends(catalog_store),
    settings: SettingsStore = Depends(settings_store),
    intents: IntentService = Depends(intent_service),
) -> dict:
    """Interpret a command without running anything."""
    catalog = store.snapshot()
    if not catalog:
        return {"plan": None, "messages": chat_service.transcript(req.command, chat_service.empty_catalog_message())}

    plan = await asyncio.to_thread(intents.interpret, req.command, catalog, load_integrations(settings))
    if plan.is_empty:
        reply = chat_service.no_match_message(req.command, catalog)
    else:
        reply = chat_service.analysis_message(plan, load_test_config(settings).maven_command)
    return {"plan": plan.to_dict(), "messages": chat_service.transcript(req.command, reply)}


@router.post("/run")
async def run_command(
    req: RunRequest,
    store: CatalogStore = Depends(catalog_store),
    settings: SettingsStore = Depends(settings_store),
    intents: IntentService = Depends(intent_service),
    runner: ExecutionCoordinator = Depends(coordinator),
    history: RunHistory = Depends(run_history),
    executor: Executor = Depends(maven_executor),
) -> dict:
    """Plan and execute a command; progress is published to the run's event stream."""
    command = req.command
    if not command.strip():
        raise HTTPException(status_code=400, detail="command must not be empty")

    # one snapshot for planning and execution
    catalog = store.snapshot()
    if not catalog:
        await _close_unstarted_run(req.runId)
        return {
            "runId": None,
            "plan": None,
            "report": None,
            "summary": "",
            "messages": chat_service.transcript(command, chat_service.empty_catalog_message()),
        }

    integrations = load_integrations(settings)
    plan = await asyncio.to_thread(intents.interpret, command, catalog, integrations)
    if plan.is_empty:
        await _close_unstarted_run(req.runId)
        return {
            "runId": None,
            "plan": plan.to_dict(),
            "report": None,
            "summary": "",
            "messages": chat_service.transcript(command, chat_service.no_match_message(command, catalog)),
        }

    run_id = req.runId or uuid4().hex
    config = load_test_config(settings)

    async def publish(event: ExecutionEvent) -> None:
        await execution_events.publish(run_id, {"runId": run_id, **event})

    logger.info("[API] Run %s: executing %d step(s) for %r", run_id, len(plan.sequence), command)
    report = await runner.execute(
        plan,
        catalog,
        options=config.execution_options(),
        on_event=publish,
        executor=executor,
    )
    summary = await asyncio.to_thread(intents.summarize, report.rows(), integrations)
    record = history.add(RunRecord(command=command, plan=plan, report=report, summary=summary, id=run_id))

    messages = chat_service.transcript(
        command,
        chat_service.analysis_message(plan, config.maven_command),
        chat_service.results_message(report),
    )
    return {
        "runId": record.id,
        "plan": plan.to_dict(),
        "report": report.to_dict(),
        "summary": summary,
        "messages": messages,
    }


@router.get("/runs/{run_id}/events")
async def run_events(run_id: str):
    """Server-sent events for one run; ends after the run_finished event."""

    async def gen() -> AsyncGenerator[bytes, None]:
        queue = await execution_events.connect(run_id)
        try:
            while True:
                try:
                    event = await asyncio.wait_for(queue.get(), timeout=KEEPALIVE_SECONDS)
                except asyncio.TimeoutError:
                    yield KEEPALIVE_FRAME
                    continue
                yield format_event(event)
                if event.get("type") == RUN_FINISHED:
                    break
        finally:
            await execution_events.disconnect(run_id, queue)

    return sse_response(gen())
