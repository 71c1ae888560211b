from __future__ import annotations

import asyncio
import json

from fastapi import APIRouter, Depends, Request
from sse_starlette.sse import EventSourceResponse

from leadboard.api.dependencies import get_page_manager, get_page_session
from leadboard.pages.sessions import PageSession, PageSessionManager

router = APIRouter()

KEEPALIVE_SECONDS = 15


@router.get("/pages/{session_id}")
async def stream_page(
    request: Request,
    session: PageSession = Depends(get_page_session),
    manager: PageSessionManager = Depends(get_page_manager),
):
    session_id = session.id
    queue = manager.listen(session_id)

    async def event_generator():
        try:
            yield {"event": "view", "data": json.dumps(session.page.render())}
            while True:
                if await request.is_disconnected():
                    break
                try:
                    view = await asyncio.wait_for(queue.get(), timeout=KEEPALIVE_SECONDS)
                except asyncio.TimeoutError:
                    continue
                if view is None:
                    yield {"event": "closed", "data": json.dumps({"session_id": session_id})}
                    break
                yield {"event": "view", "data": json.dumps(view)}
        finally:
            manager.unlisten(session_id, queue)

    return EventSourceResponse(event_generator())
