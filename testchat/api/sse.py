from __future__ import annotations

import json
from typing import AsyncIterator

from starlette.responses import StreamingResponse

from .events import ExecutionEvent

SSE_MEDIA_TYPE = "text/event-stream"
KEEPALIVE_FRAME = b": keepalive\n\n"


def format_event(event: ExecutionEvent) -> bytes:
    """Frame one execution event as an SSE ``data:`` line of JSON."""
    payload = json.dumps(event, ensure_ascii=False)
    return f"data: {payload}\n\n".encode("utf-8")


def sse_response(frames: AsyncIterator[bytes]) -> StreamingResponse:
    # proxies must not buffer the stream
    return StreamingResponse(
        frames,
        media_type=SSE_MEDIA_TYPE,
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )
