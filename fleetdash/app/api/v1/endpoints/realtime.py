"""
Realtime change feed over WebSocket.

Clients subscribe to one table and receive every committed change to it
as JSON. Drivers only receive changes for their own rows; admins see
everything.
"""

import asyncio
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fleetdash.app.db.session import get_db
from fleetdash.app.core.jwt import decode_access_token
from fleetdash.app.core.redis_client import get_redis
from fleetdash.app.models.enums import ChangeEventType, UserRole
from fleetdash.app.models.user import User
from fleetdash.app.services.change_feed import TABLES, channel_for, decode_event, event_matches

logger = logging.getLogger("fleetdash.realtime")

router = APIRouter(prefix="/realtime", tags=["Realtime"])


def parse_event_types(event: Optional[str]) -> Optional[List[ChangeEventType]]:
    """
    Parse the `event` query parameter.

    Accepts "*" (or nothing) for all events, or a comma-separated list
    such as "INSERT,UPDATE".

    Raises:
        ValueError: On an unknown event name
    """
    if not event or event == "*":
        return None
    return [ChangeEventType(name.strip().upper()) for name in event.split(",") if name.strip()]


async def relay_changes(websocket: WebSocket, pubsub, event_types, driver_id) -> None:
    while True:
        message = await pubsub.get_message(ignore_subscribe_messages=True, timeout=1.0)
        if message is None:
            continue
        change = decode_event(message["data"])
        if change is None or not event_matches(change, event_types, driver_id):
            continue
        await websocket.send_json(change.model_dump(mode="json"))


async def wait_for_disconnect(websocket: WebSocket) -> None:
    # Client messages are ignored; receiving is how a disconnect is noticed.
    while True:
        await websocket.receive_text()


@router.websocket("/{table}")
async def subscribe(
    websocket: WebSocket,
    table: str,
    token: str = Query(...),
    event: Optional[str] = Query(None),
    driver_id: Optional[int] = Query(None),
    db: AsyncSession = Depends(get_db),
    redis=Depends(get_redis)
):
    """
    Subscribe to changes on `table` (trips, users or vehicles).

    Query params:
        token: Access token (browsers cannot set headers on WebSockets)
        event: "*" or a comma-separated list of INSERT/UPDATE/DELETE
        driver_id: Admin-only narrowing to one driver; drivers are always
            narrowed to themselves
    """
    payload = decode_access_token(token)
    if payload is None or not payload.get("user_id"):
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    result = await db.execute(select(User).where(User.id == payload["user_id"]))
    user = result.scalar_one_or_none()
    # No database connection is held while the subscription is open.
    await db.close()
    if user is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    if table not in TABLES:
        await websocket.close(code=status.WS_1003_UNSUPPORTED_DATA)
        return

    try:
        event_types = parse_event_types(event)
    except ValueError:
        await websocket.close(code=status.WS_1003_UNSUPPORTED_DATA)
        return

    if user.role == UserRole.DRIVER:
        driver_id = user.id

    await websocket.accept()
    logger.info(
        "Realtime subscriber connected",
        extra={"table": table, "user_id": user.id, "driver_id": driver_id},
    )

    pubsub = redis.pubsub()
    await pubsub.subscribe(channel_for(table))
    tasks = [
        asyncio.create_task(relay_changes(websocket, pubsub, event_types, driver_id)),
        asyncio.create_task(wait_for_disconnect(websocket)),
    ]
    try:
        done, _ = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        for task in done:
            exc = task.exception()
            if exc is not None and not isinstance(exc, WebSocketDisconnect):
                logger.warning("Realtime subscription ended with error", exc_info=exc)
    finally:
        for task in tasks:
            task.cancel()
        await pubsub.unsubscribe(channel_for(table))
        await pubsub.aclose()
        logger.info("Realtime subscriber disconnected", extra={"table": table, "user_id": user.id})
