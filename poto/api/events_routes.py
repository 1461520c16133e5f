from __future__ import annotations

import json
import time
from typing import AsyncIterator

import anyio
from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import StreamingResponse

from poto.api.deps import get_event_hub
from poto.services.notifications import EventHub

router = APIRouter(prefix="/events", tags=["events"])

_POLL_SECONDS = 1.0


def _sse(event: str, data: object) -> str:
    payload = json.dumps(data, ensure_ascii=False)
    return f"event: {event}\ndata: {payload}\n\n"


@router.get("/scan")
async def stream_scan_events(
    request: Request,
    keepalive_s: int = Query(15, ge=1, le=300),
    hub: EventHub = Depends(get_event_hub),
) -> StreamingResponse:
    """Scan events as SSE: mediaFound, scanProgress, scanError."""

    async def gen() -> AsyncIterator[str]:
        subscription = hub.subscribe()
        last_sent = time.monotonic()
        try:
            while not await request.is_disconnected():
                event = await anyio.to_thread.run_sync(subscription.get, _POLL_SECONDS)
                if event is not None:
                    yield _sse(event.name, event.data)
                    last_sent = time.monotonic()
                elif time.monotonic() - last_sent >= keepalive_s:
                    yield ": keepalive\n\n"
                    last_sent = time.monotonic()
        finally:
            subscription.close()

    return StreamingResponse(
        gen(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )
