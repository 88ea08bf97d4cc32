"""Gemini REST client for mapping commands to test methods and summarising runs."""
import json
import logging
import os
import re
from typing import Any, Dict, List, Optional

import requests

logger = logging.getLogger(__name__)

GEMINI_API_BASE = os.getenv("GEMINI_API_BASE", "https://generativelanguage.googleapis.com/v1beta")
DEFAULT_GEMINI_MODEL = "gemini-1.5-flash"


class GeminiError(RuntimeError):
    """Raised when the Gemini API cannot be reached or returns an unusable answer."""


class GeminiClient:
    def __init__(self, api_key: str, model: Optional[str] = None, temperature: float = 0.2, timeout: int = 60):
        if not api_key:
            raise GeminiError("Gemini API key is not configured")
        self.api_key = api_key
        self.model = model or os.getenv("GEMINI_MODEL", DEFAULT_GEMINI_MODEL)
        self.temperature = temperature
        self.timeout = timeout

    @property
    def endpoint(self) -> str:
        return f"{GEMINI_API_BASE}/models/{self.model}:generateContent"

    def invoke(self, prompt: str) -> str:
        payload = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {"temperature": self.temperature},
        }
        try:
            logger.info("[Gemini] Sending request to %s", self.endpoint)
            response = requests.post(
                self.endpoint,
                params={"key": self.api_key},
                json=payload,
                timeout=self.timeout,
            )
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as exc:
            logger.warning("[Gemini] Request failed: %s", exc)
            raise GeminiError(f"Gemini request error: {exc}") from exc

        try:
            parts = data["candidates"][0]["content"]["parts"]
        except (KeyError, IndexError, TypeError) as exc:
            raise GeminiError("Gemini response contained no candidates") from exc
        return "".join(part.get("text", "") for part in parts).strip()

    def parse_user_intent(self, command: str, available: List[Dict[str, Any]]) -> Dict[str, Any]:
        """Ask the model which ``Class#method`` references the command asks for, in order."""
        listing = "\n".join(
            f"- {item['className']}#{item['methodName']} ({item.get('name', '')}): {item.get('description', '')}"
            for item in available
        )
        prompt = f"""
User wants to run tests with this request: "{command}"

Available test methods:
{listing}

Identify which test methods match the user's intent, in the order they should run.
Respond with JSON only, in this shape:
{{"mappedTests": ["ClassName#methodName", ...], "reasoning": "<one sentence>", "confidence": <0..1>}}
"""
        return _extract_json(self.invoke(prompt))

    def summarize(self, rows: List[Dict[str, Any]]) -> str:
        prompt = (
            "Write a short, human-readable summary of this UI test run for a QA team. "
            "Mention failures and their errors.\n\n" + json.dumps(rows, indent=2)
        )
        return self.invoke(prompt)


def _extract_json(text: str) -> Dict[str, Any]:
    match = re.search(r"\{.*\}", text or "", re.DOTALL)
    if not match:
        raise GeminiError("Gemini answer did not contain JSON")
    try:
        data = json.loads(match.group(0))
    except json.JSONDecodeError as exc:
        raise GeminiError(f"Gemini answer was not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise GeminiError("Gemini answer was not a JSON object")
    return data
