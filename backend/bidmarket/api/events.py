"""Events API router for the live SSE feed."""

import json
from fastapi import APIRouter, Request
from sse_starlette.sse import EventSourceResponse

from bidmarket.core.events import event_bus

router = APIRouter()


@router.get("/events")
async def event_stream(request: Request):
    """
    Server-Sent Events (SSE) stream of marketplace activity.

    Usage:
        const eventSource = new EventSource('/api/events');
        eventSource.addEventListener('bid_submitted', (e) => {
            console.log(JSON.parse(e.data));
        });
    """
    async def generate():
        async for event in event_bus.subscribe():
            if await request.is_disconnected():
                break

            yield {
                "event": event["type"],
                "data": json.dumps({**event["data"], "timestamp": event["timestamp"]})
            }

    return EventSourceResponse(generate())
