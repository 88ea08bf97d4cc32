import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import requests

from ..core.settings_store import SettingsStore
from .report_service import pass_rate

logger = logging.getLogger(__name__)

SLACK_POST_URL = "https://slack.com/api/chat.postMessage"
SLACK_OUTBOX_KEY = "slack_outbox"


class SlackError(RuntimeError):
    """Raised when Slack posting is not configured."""


def format_test_report(rows: List[Dict[str, Any]], summary: str, executed_at: datetime) -> str:
    total = len(rows)
    passed = sum(1 for row in rows if row.get("status") == "success")
    failed = total - passed
    return "\n".join([
        "🤖 *k.ai Test Execution Report*",
        "",
        "📊 *Summary:*",
        f"• Total Tests: {total}",
        f"• Passed: ✅ {passed}",
        f"• Failed: ❌ {failed}",
        f"• Success Rate: {pass_rate(rows)}%",
        "",
        "🧠 *AI Analysis:*",
        summary,
        "",
        f"📅 *Executed:* {executed_at.strftime('%Y-%m-%d %H:%M:%S')}",
    ])


class SlackService:
    def __init__(
        self,
        bot_token: str,
        default_channel: str,
        outbox: Optional[SettingsStore] = None,
        timeout: int = 30,
    ) -> None:
        self.bot_token = bot_token
        self.default_channel = default_channel
        self.outbox = outbox
        self.timeout = timeout

    def post_message(self, message: str, channel: Optional[str] = None) -> bool:
        """Post to Slack. Returns False when the message was queued instead of delivered."""
        if not self.bot_token:
            raise SlackError("Slack bot token is not configured")

        target_channel = channel or self.default_channel
        try:
            response = requests.post(
                SLACK_POST_URL,
                headers={
                    "Authorization": f"Bearer {self.bot_token}",
                    "Content-Type": "application/json; charset=utf-8",
                },
                json={
                    "channel": target_channel,
                    "text": message,
                    "username": "k.ai",
                    "icon_emoji": ":robot_face:",
                },
                timeout=self.timeout,
            )
            response.raise_for_status()
            result = response.json()
        except (requests.RequestException, ValueError) as exc:
            logger.error("[Slack] Error posting to Slack: %s", exc)
            return self._queue(message, target_channel, str(exc))

        if not result.get("ok"):
            logger.error("[Slack] Slack API error: %s", result.get("error"))
            return self._queue(message, target_channel, str(result.get("error")))

        logger.info("[Slack] Posted message to %s", target_channel)
        return True

    def _queue(self, message: str, channel: str, reason: str) -> bool:
        if self.outbox is not None:
            self.outbox.append(
                SLACK_OUTBOX_KEY,
                {
                    "message": message,
                    "channel": channel,
                    "timestamp": datetime.now(timezone.utc).isoformat(),
                    "status": "pending",
                    "reason": reason,
                },
            )
        return False

    def post_test_report(
        self,
        rows: List[Dict[str, Any]],
        summary: str,
        executed_at: Optional[datetime] = None,
        channel: Optional[str] = None,
    ) -> bool:
        message = format_test_report(rows, summary, executed_at or datetime.now(timezone.utc))
        return self.post_message(message, channel)
