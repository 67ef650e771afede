"""
# Copyright (c) 2025 Fernando Guerriero Cardoso da Silva.
# Created Date: Fri Feb 06 2026
# SPDX-License-Identifier: MIT
"""

import asyncio
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect

from smartplate.events.realtime import ChangeEvent, change_feed
from smartplate.services.session_service import SessionServiceProvider, SessionSnapshot, get_session_provider

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Realtime"])

REALTIME_TABLES = (
    "food_requests",
    "food_request_photos",
    "ngo_details",
    "volunteer_details",
    "verification_documents",
    "user_roles",
)

# Close codes
UNAUTHORIZED = 4401
FORBIDDEN = 4403
BAD_REQUEST = 4400


@router.websocket("/realtime")
async def realtime_feed(
    websocket: WebSocket,
    token: Optional[str] = Query(default=None),
    table: List[str] = Query(default=[]),
    provider: SessionServiceProvider = Depends(get_session_provider),
):
    """
    Pushes invalidation messages for the requested tables until the client disconnects
    or its user signs out. Messages carry no row data; clients refetch.

    Client sends "ping", server answers {"type": "pong"}.
    """
    tables = table or list(REALTIME_TABLES)
    unknown = [name for name in tables if name not in REALTIME_TABLES]
    if unknown:
        await websocket.close(code=BAD_REQUEST, reason=f"Unknown table: {', '.join(unknown)}")
        return

    if not token:
        await websocket.close(code=UNAUTHORIZED, reason="Missing token")
        return

    session = provider.create()
    await session.start()
    result = await session.restore(token)
    if not result.ok:
        await session.close()
        code = FORBIDDEN if result.error.code == "role_missing" else UNAUTHORIZED
        await websocket.close(code=code, reason=result.error.message)
        return

    loop = asyncio.get_running_loop()
    queue: asyncio.Queue = asyncio.Queue()

    def on_change(event: ChangeEvent):
        message = {"type": "invalidate", "table": event.channel, "event": event.event, "record_id": event.record_id}
        loop.call_soon_threadsafe(queue.put_nowait, message)

    def on_session(snapshot: SessionSnapshot):
        if not snapshot.signed_in:
            queue.put_nowait({"type": "signed_out"})
        elif not snapshot.loading:
            queue.put_nowait({"type": "role", "role": snapshot.role.value if snapshot.role else None})

    subscriptions = [change_feed.subscribe(name, on_change) for name in tables]
    unsubscribe_session = session.subscribe(on_session)

    async def forward():
        while True:
            message = await queue.get()
            await websocket.send_json(message)
            if message["type"] == "signed_out":
                return

    async def receive():
        while True:
            if await websocket.receive_text() == "ping":
                queue.put_nowait({"type": "pong"})

    tasks = []
    try:
        await websocket.accept()
        await websocket.send_json({"type": "ready", "tables": tables})
        logger.info("Realtime client connected for user %d (%s)", session.user_id, ", ".join(tables))

        tasks = [asyncio.create_task(forward()), asyncio.create_task(receive())]
        done, _ = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        for task in done:
            error = task.exception()
            if error is not None and not isinstance(error, WebSocketDisconnect):
                raise error
        if tasks[0] in done:
            await websocket.close()
    except WebSocketDisconnect:
        pass
    finally:
        for task in tasks:
            task.cancel()
        for subscription in subscriptions:
            subscription.unsubscribe()
        unsubscribe_session()
        await session.close()
        logger.info("Realtime client disconnected")
