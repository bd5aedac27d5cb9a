"""
WebSocket feed of the caller's recent workouts.

Auth: `?token=<session token>` or `Authorization: Bearer <token>`.
On connect the server sends `connected`, then a `workouts.snapshot` with the
current list and another after every workout write. Clients may send
`{"type": "ping"}` and get a `pong`. The socket is read-only.
"""

import asyncio
import json
import logging
from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

from fastapi import APIRouter, WebSocket, WebSocketDisconnect, status

from fitlikeus.core.auth import extract_bearer_token, get_mailer
from fitlikeus.core.errors import AppError
from fitlikeus.core.logging import log_event
from fitlikeus.core.store import init_store
from fitlikeus.features.auth.service import AuthService
from fitlikeus.models.user import UserProfile
from fitlikeus.realtime.feed import DEFAULT_FEED_LIMIT, hub

logger = logging.getLogger(__name__)

router = APIRouter()


@router.websocket("/v1/ws/workouts")
async def workouts_feed(websocket: WebSocket, limit: int = DEFAULT_FEED_LIMIT):
    await websocket.accept()
    request_id = websocket.headers.get("x-request-id") or str(uuid4())
    store = init_store(websocket.app)

    user = _authenticate(websocket, AuthService(store, mailer=get_mailer(websocket.app)))
    if user is None:
        log_event("info", "ws.unauthorized", request_id=request_id, event_type="ws.unauthorized")
        await websocket.send_json({"type": "error", "code": "unauthenticated", "request_id": request_id})
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.send_json({
        "type": "connected",
        "user_id": user.uid,
        "ts": datetime.now(timezone.utc).isoformat(),
        "request_id": request_id,
    })
    subscription = await hub.open(store, user.uid, max(1, min(limit, 100)))
    log_event("info", "ws.connected", request_id=request_id, user_id=user.uid, event_type="ws.connected")

    sender = asyncio.create_task(_pump(websocket, subscription.queue))
    try:
        while True:
            raw = await websocket.receive_text()
            try:
                data = json.loads(raw)
            except json.JSONDecodeError:
                continue
            if isinstance(data, dict) and data.get("type") == "ping":
                await websocket.send_json({"type": "pong", "ts": datetime.now(timezone.utc).isoformat()})
    except WebSocketDisconnect:
        log_event("info", "ws.disconnected", request_id=request_id, user_id=user.uid, event_type="ws.disconnected")
    finally:
        sender.cancel()
        await hub.close(subscription)


async def _pump(websocket: WebSocket, queue: asyncio.Queue) -> None:
    while True:
        message = await queue.get()
        await websocket.send_json(message)


def _authenticate(websocket: WebSocket, auth: AuthService) -> Optional[UserProfile]:
    token = websocket.query_params.get("token") or extract_bearer_token(websocket.headers.get("authorization"))
    if not token:
        return None
    try:
        return auth.resolve_token(token)
    except AppError as e:
        logger.debug(f"[WS] token rejected: {e.code}")
        return None
