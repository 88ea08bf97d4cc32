"""Report rendering for executed command runs: text summary, HTML document, XLSX export."""
from __future__ import annotations

import html
from datetime import datetime
from io import BytesIO
from typing import Any, Dict, List, Optional

import pandas as pd

from ..core.coordinator import STATUS_FAILURE, STATUS_SUCCESS


def _count(rows: List[Dict[str, Any]], status: str) -> int:
    return sum(1 for row in rows if row.get("status") == status)


def pass_rate(rows: List[Dict[str, Any]]) -> int:
    return round(_count(rows, STATUS_SUCCESS) / len(rows) * 100) if rows else 0


def generate_test_summary(rows: List[Dict[str, Any]]) -> str:
    """Human-readable run summary used in chat, reports and Slack posts."""
    lines = ["🤖 **Test Execution Summary:**", ""]
    for row in rows:
        if row.get("status") == STATUS_SUCCESS:
            lines.append(f"✅ **{row['name']}**: Passed successfully")
        elif row.get("status") == STATUS_FAILURE:
            lines.append(f"❌ **{row['name']}**: Failed - {row.get('error') or 'Unknown error'}")
        else:
            lines.append(f"⏳ **{row['name']}**: Currently running")

    passed = _count(rows, STATUS_SUCCESS)
    failed = _count(rows, STATUS_FAILURE)
    lines.append("")
    lines.append(f"📊 **Overall**: {passed} passed, {failed} failed out of {len(rows)} tests")
    if failed == 0:
        lines.append("🎉 All tests passed! Great job!")
    else:
        lines.append(f"⚠️ {failed} test(s) need attention. Please check the detailed logs.")
    return "\n".join(lines)


def report_filename(execution_date: datetime, suffix: str = "html") -> str:
    return f"test-report-{execution_date.date().isoformat()}.{suffix}"


def _format_duration(duration: Optional[float]) -> str:
    if duration is None:
        return "-"
    return f"{duration / 1000:.2f}s"


def _render_rows(rows: List[Dict[str, Any]]) -> str:
    parts = []
    for row in rows:
        status = row.get("status")
        label = "PASSED" if status == STATUS_SUCCESS else "FAILED"
        error = row.get("error")
        error_html = f'<div class="error">{html.escape(str(error))}</div>' if error else ""
        parts.append(
            f"""
            <div class="test-item {html.escape(str(status))}">
                <div class="test-name">{html.escape(str(row.get('name', '')))}</div>
                <div class="test-meta">
                    <span class="badge {html.escape(str(status))}">{label}</span>
                    <span class="duration">{_format_duration(row.get('duration'))}</span>
                </div>
                {error_html}
            </div>"""
        )
    return "".join(parts)


def render_html_report(
    rows: List[Dict[str, Any]],
    summary: str,
    execution_date: datetime,
    company_logo: Optional[str] = None,
) -> str:
    total = len(rows)
    passed = _count(rows, STATUS_SUCCESS)
    failed = _count(rows, STATUS_FAILURE)
    rate = pass_rate(rows)
    logo_html = f'<img class="logo" src="{html.escape(company_logo)}" alt="logo">' if company_logo else ""
    summary_html = html.escape(summary).replace("\n", "<br>")

    return f"""<!DOCTYPE html>
<html>
<head>
    <title>k.ai Test Execution Report</title>
    <meta charset="UTF-8">
    <style>
        body {{ font-family: 'Segoe UI', Tahoma, Geneva, Verdana, sans-serif; margin: 0; padding: 20px; background: #f1f3f9; }}
        .container {{ max-width: 800px; margin: 0 auto; background: white; border-radius: 10px; overflow: hidden; }}
        .header {{ background: linear-gradient(135deg, #667eea 0%, #764ba2 100%); color: white; padding: 30px; text-align: center; }}
        .logo {{ max-height: 60px; margin-bottom: 20px; }}
        .content {{ padding: 30px; }}
        .summary-cards {{ display: grid; grid-template-columns: repeat(auto-fit, minmax(150px, 1fr)); gap: 20px; margin-bottom: 30px; }}
        .card {{ background: #f8f9fa; border-radius: 8px; padding: 20px; text-align: center; border-left: 4px solid #667eea; }}
        .card.success {{ border-left-color: #28a745; }}
        .card.failure {{ border-left-color: #dc3545; }}
        .card-value {{ font-size: 2rem; font-weight: bold; }}
        .pie-chart {{ width: 200px; height: 200px; border-radius: 50%; margin: 20px auto;
            background: conic-gradient(#28a745 0deg {rate * 3.6}deg, #dc3545 {rate * 3.6}deg 360deg); }}
        .test-item {{ border-bottom: 1px solid #eee; padding: 12px 0; }}
        .badge.success {{ color: #28a745; }}
        .badge.failure {{ color: #dc3545; }}
        .error {{ color: #dc3545; font-family: monospace; margin-top: 6px; }}
    </style>
</head>
<body>
    <div class="container">
        <div class="header">
            {logo_html}
            <h1>k.ai Test Execution Report</h1>
            <p>Executed: {html.escape(execution_date.strftime('%Y-%m-%d %H:%M:%S'))}</p>
        </div>
        <div class="content">
            <div class="summary-cards">
                <div class="card"><div class="card-value">{total}</div><div class="card-label">Total Tests</div></div>
                <div class="card success"><div class="card-value">{passed}</div><div class="card-label">Passed</div></div>
                <div class="card failure"><div class="card-value">{failed}</div><div class="card-label">Failed</div></div>
                <div class="card"><div class="card-value">{rate}%</div><div class="card-label">Pass Rate</div></div>
            </div>
            <div class="chart-container"><div class="pie-chart"></div></div>
            <h2>AI Analysis</h2>
            <div class="summary">{summary_html}</div>
            <h2>Test Details</h2>
            <div class="test-details">{_render_rows(rows)}
            </div>
        </div>
    </div>
</body>
</html>
"""


def report_to_excel_bytes(rows: List[Dict[str, Any]]) -> bytes:
    """Serialize report rows to XLSX bytes."""

    df = pd.DataFrame(rows, columns=["name", "status", "error", "duration"])
    df = df.rename(columns={"name": "Test", "status": "Status", "error": "Error", "duration": "Duration (ms)"})
    buffer = BytesIO()
    with pd.ExcelWriter(buffer, engine="xlsxwriter") as writer:
        df.to_excel(writer, index=False, sheet_name="TestResults")
    buffer.seek(0)
    return buffer.read()
