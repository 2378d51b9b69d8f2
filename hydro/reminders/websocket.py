# -*- coding: utf-8 -*-
"""
Reminder WebSocket

One connection per open client. The server owns the session's reminder
timer and pushes ``notification`` messages; the client answers the
``permission_request`` sent on connect.

Client -> server messages:
    {"type": "permission", "granted": true}
    {"type": "status"}
    {"type": "ping"}
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional
from uuid import uuid4

from fastapi import Depends, WebSocket, WebSocketDisconnect

from ..auth.security import TOKEN_COOKIE_NAME, user_from_token
from ..deps import get_store
from ..store import DocumentStore, StoreError
from .scheduler import ReminderScheduler
from .session import ReminderSession

logger = logging.getLogger(__name__)

GRANTED = "granted"
DENIED = "denied"
DEFAULT = "default"


class WebSocketNotifier:
    """Local notification service backed by the client connection."""

    def __init__(self, websocket: WebSocket) -> None:
        self.websocket = websocket
        self.permission = DEFAULT

    async def request_permission(self) -> str:
        if self.permission == DEFAULT:
            await self.websocket.send_json({"type": "permission_request"})
        return self.permission

    def set_permission(self, granted: bool) -> None:
        self.permission = GRANTED if granted else DENIED

    async def show(self, title: str, body: str) -> None:
        if self.permission != GRANTED:
            logger.debug("Notification suppressed (permission=%s)", self.permission)
            return
        await self.websocket.send_json({
            "type": "notification",
            "title": title,
            "body": body,
            "timestamp": datetime.now().isoformat(),
        })


@dataclass
class ReminderConnection:
    session_id: str
    user_id: str
    notifier: WebSocketNotifier
    session: ReminderSession
    started_at: datetime


class ReminderManager:
    """Active reminder connections, keyed by session id."""

    def __init__(self) -> None:
        self.connections: Dict[str, ReminderConnection] = {}

    async def connect(self, websocket: WebSocket, user: Dict[str, Any], store: DocumentStore) -> ReminderConnection:
        await websocket.accept()
        session_id = str(uuid4())
        notifier = WebSocketNotifier(websocket)
        scheduler = ReminderScheduler(notifier, loop=asyncio.get_running_loop())
        session = ReminderSession(store, user["id"], scheduler)
        conn = ReminderConnection(
            session_id=session_id,
            user_id=user["id"],
            notifier=notifier,
            session=session,
            started_at=datetime.now(),
        )
        try:
            await websocket.send_json({
                "type": "connected",
                "session_id": session_id,
                "timestamp": conn.started_at.isoformat(),
            })
            await notifier.request_permission()
            await session.start()
        except BaseException:
            session.close()
            raise

        self.connections[session_id] = conn
        logger.info("Reminder session connected: %s (user %s)", session_id, user["id"])
        return conn

    def disconnect(self, session_id: str) -> None:
        conn = self.connections.pop(session_id, None)
        if conn is not None:
            conn.session.close()
        logger.info("Reminder session disconnected: %s", session_id)

    async def handle_message(self, conn: ReminderConnection, data: Any) -> Optional[dict]:
        kind = data.get("type") if isinstance(data, dict) else None
        if kind == "permission":
            conn.notifier.set_permission(bool(data.get("granted")))
            await conn.session.refresh()
            return None
        if kind == "status":
            await conn.session.refresh()
            return self.status(conn)
        if kind == "ping":
            return {"type": "pong"}
        return {"type": "error", "message": f"Unknown message type: {kind!r}"}

    @staticmethod
    def status(conn: ReminderConnection) -> dict:
        scheduler = conn.session.scheduler
        return {
            "type": "status",
            "session_id": conn.session_id,
            "permission": conn.notifier.permission,
            "armed": scheduler.armed,
            "next_delay_sec": scheduler.next_delay,
            "fired": scheduler.fired,
        }


reminder_manager = ReminderManager()


async def reminders_endpoint(
    websocket: WebSocket,
    token: Optional[str] = None,
    store: DocumentStore = Depends(get_store),
):
    """WebSocket endpoint: ``/ws/reminders?token=...`` (or the auth cookie)."""
    user = await asyncio.to_thread(user_from_token, token or websocket.cookies.get(TOKEN_COOKIE_NAME))
    if not user:
        await websocket.close(code=4401)
        return

    try:
        conn = await reminder_manager.connect(websocket, user, store)
    except WebSocketDisconnect:
        return
    except StoreError as exc:
        logger.error("Reminder session failed to start: %s", exc)
        await websocket.close(code=1011)
        return

    try:
        while True:
            data = await websocket.receive_json()
            reply = await reminder_manager.handle_message(conn, data)
            if reply is not None:
                await websocket.send_json(reply)
    except WebSocketDisconnect:
        pass
    except Exception as exc:
        logger.error("Reminder WebSocket error: %s", exc)
    finally:
        reminder_manager.disconnect(conn.session_id)
