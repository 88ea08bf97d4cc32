"""Report rendering and Slack posting (HTTP is mocked)."""
from datetime import datetime
from unittest.mock import Mock

import pytest
import requests

from testchat.services import slack_service
from testchat.services.report_service import (
    generate_test_summary,
    pass_rate,
    render_html_report,
    report_filename,
    report_to_excel_bytes,
)
from testchat.services.slack_service import SLACK_OUTBOX_KEY, SlackError, SlackService, format_test_report

ROWS = [
    {"name": "Create Customer", "status": "success", "error": None, "duration": 1200.0},
    {"name": "Create Job", "status": "failure", "error": "AssertionError: job missing", "duration": 800.0},
]
EXECUTED_AT = datetime(2024, 5, 20, 9, 30, 0)


def test_summary_lists_each_test_and_totals():
    summary = generate_test_summary(ROWS)

    assert "✅ **Create Customer**: Passed successfully" in summary
    assert "❌ **Create Job**: Failed - AssertionError: job missing" in summary
    assert "1 passed, 1 failed out of 2 tests" in summary
    assert "need attention" in summary


def test_summary_all_passed():
    assert "All tests passed" in generate_test_summary(ROWS[:1])
    assert pass_rate(ROWS) == 50
    assert pass_rate([]) == 0


def test_html_report_escapes_content():
    rows = [{"name": "<script>alert(1)</script>", "status": "failure", "error": "a < b", "duration": None}]

    body = render_html_report(rows, "summary & more", EXECUTED_AT)

    assert "<script>alert(1)</script>" not in body
    assert "&lt;script&gt;" in body
    assert "summary &amp; more" in body
    assert "k.ai Test Execution Report" in body
    assert "2024-05-20 09:30:00" in body


def test_report_filename():
    assert report_filename(EXECUTED_AT) == "test-report-2024-05-20.html"
    assert report_filename(EXECUTED_AT, "xlsx") == "test-report-2024-05-20.xlsx"


def test_excel_export_is_xlsx():
    assert report_to_excel_bytes(ROWS)[:2] == b"PK"


def test_format_test_report():
    message = format_test_report(ROWS, "All good", EXECUTED_AT)

    assert "• Total Tests: 2" in message
    assert "• Success Rate: 50%" in message
    assert "📅 *Executed:* 2024-05-20 09:30:00" in message


def _response(payload):
    response = Mock()
    response.json.return_value = payload
    response.raise_for_status.return_value = None
    return response


def test_post_message_success(monkeypatch):
    post = Mock(return_value=_response({"ok": True}))
    monkeypatch.setattr(slack_service.requests, "post", post)

    delivered = SlackService("xoxb-token", "#qa-reports").post_test_report(ROWS, "summary", EXECUTED_AT)

    assert delivered is True
    kwargs = post.call_args.kwargs
    assert post.call_args.args[0] == "https://slack.com/api/chat.postMessage"
    assert kwargs["headers"]["Authorization"] == "Bearer xoxb-token"
    assert kwargs["json"]["channel"] == "#qa-reports"
    assert kwargs["json"]["username"] == "k.ai"


def test_api_error_is_queued(monkeypatch, settings):
    monkeypatch.setattr(slack_service.requests, "post", Mock(return_value=_response({"ok": False, "error": "channel_not_found"})))

    delivered = SlackService("xoxb-token", "#qa-reports", outbox=settings).post_message("hello", "#nowhere")

    assert delivered is False
    queued = settings.get(SLACK_OUTBOX_KEY)
    assert queued[0]["channel"] == "#nowhere"
    assert queued[0]["status"] == "pending"
    assert queued[0]["reason"] == "channel_not_found"


def test_transport_error_is_queued(monkeypatch, settings):
    monkeypatch.setattr(slack_service.requests, "post", Mock(side_effect=requests.ConnectionError("offline")))

    assert SlackService("xoxb-token", "#qa", outbox=settings).post_message("hello") is False
    assert len(settings.get(SLACK_OUTBOX_KEY)) == 1


def test_missing_token_raises():
    with pytest.raises(SlackError):
        SlackService("", "#qa").post_message("hello")
