"""Run history, downloadable reports and Slack sharing."""
from __future__ import annotations

import asyncio
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import HTMLResponse, Response
from pydantic import BaseModel

from ..auth import jwt_required
from ..deps import run_history, settings_store
from ...core.settings_store import SettingsStore
from ...services.config_service import load_integrations
from ...services.report_service import render_html_report, report_filename, report_to_excel_bytes
from ...services.run_history import RunHistory, RunRecord
from ...services.slack_service import SlackError, SlackService

router = APIRouter(prefix="/reports", tags=["reports"], dependencies=[Depends(jwt_required)])

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


class SlackShareRequest(BaseModel):
    channel: Optional[str] = None


def _get_run(history: RunHistory, run_id: str) -> RunRecord:
    record = history.get(run_id)
    if record is None:
        raise HTTPException(status_code=404, detail=f"Run not found: {run_id}")
    return record


@router.get("/runs")
async def list_runs(
    filter_type: str = Query("all", alias="filter", description="all, today, yesterday, week, month or custom"),
    start: Optional[date] = Query(None, alias="from"),
    end: Optional[date] = Query(None, alias="to"),
    history: RunHistory = Depends(run_history),
) -> dict:
    try:
        runs = history.list(filter_type, start, end)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    passed = sum(record.report.passed for record in runs)
    total = sum(record.report.total for record in runs)
    return {
        "filter": filter_type,
        "count": len(runs),
        "totals": {
            "tests": total,
            "passed": passed,
            "failed": total - passed,
            "successRate": round(passed / total * 100) if total else 0,
        },
        "runs": [record.to_dict(include_outcomes=False) for record in runs],
    }


@router.get("/runs/{run_id}")
async def get_run(run_id: str, history: RunHistory = Depends(run_history)) -> dict:
    return _get_run(history, run_id).to_dict()


@router.get("/runs/{run_id}/html", response_class=HTMLResponse)
async def download_html(
    run_id: str,
    logo: Optional[str] = Query(None, description="Optional logo URL or data URI"),
    history: RunHistory = Depends(run_history),
) -> HTMLResponse:
    record = _get_run(history, run_id)
    body = render_html_report(record.report.rows(), record.summary, record.created_at, company_logo=logo)
    filename = report_filename(record.created_at, "html")
    return HTMLResponse(body, headers={"Content-Disposition": f'attachment; filename="{filename}"'})


@router.get("/runs/{run_id}/xlsx")
async def download_xlsx(run_id: str, history: RunHistory = Depends(run_history)) -> Response:
    record = _get_run(history, run_id)
    content = await asyncio.to_thread(report_to_excel_bytes, record.report.rows())
    filename = report_filename(record.created_at, "xlsx")
    return Response(
        content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/runs/{run_id}/slack")
async def share_to_slack(
    run_id: str,
    req: SlackShareRequest,
    history: RunHistory = Depends(run_history),
    settings: SettingsStore = Depends(settings_store),
) -> dict:
    record = _get_run(history, run_id)
    integrations = load_integrations(settings)
    slack = SlackService(integrations.slack_bot_token, integrations.slack_channel, outbox=settings)
    channel = req.channel or integrations.slack_channel
    try:
        delivered = await asyncio.to_thread(
            slack.post_test_report, record.report.rows(), record.summary, record.created_at, channel
        )
    except SlackError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return {"runId": run_id, "channel": channel, "delivered": delivered, "queued": not delivered}
