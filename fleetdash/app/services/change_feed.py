"""
Change feed.

Publishes row changes (table + event type + new row) on Redis pub/sub and
decides which subscribers a change is relevant to. Publishing happens after
the write is committed and is best effort: a Redis failure is logged and
the write stands.
"""

import json
import logging
from datetime import datetime
from typing import Any, Dict, Iterable, Optional

from pydantic import BaseModel, Field

from fleetdash.app.core.config import settings
from fleetdash.app.db.session import utcnow
from fleetdash.app.models.enums import ChangeEventType

logger = logging.getLogger("fleetdash.change_feed")

TRIPS = "trips"
USERS = "users"
VEHICLES = "vehicles"
TABLES = (TRIPS, USERS, VEHICLES)


class ChangeEvent(BaseModel):
    """One row change as seen by subscribers."""
    table: str
    event: ChangeEventType
    record_id: int
    new: Optional[Dict[str, Any]] = None
    driver_id: Optional[int] = None
    committed_at: datetime = Field(default_factory=utcnow)


def channel_for(table: str) -> str:
    return f"{settings.change_feed_channel_prefix}:{table}"


async def publish_change(redis, event: ChangeEvent) -> bool:
    """
    Publish a change event on its table channel.

    Returns:
        True if Redis accepted the message, False if publishing failed
    """
    try:
        await redis.publish(channel_for(event.table), event.model_dump_json())
        return True
    except Exception:
        logger.warning(
            "Change feed publish failed",
            extra={"table": event.table, "event": event.event.value, "record_id": event.record_id},
            exc_info=True,
        )
        return False


async def publish_row(redis, table: str, event: ChangeEventType, record_id: int,
                      new: Optional[Dict[str, Any]] = None, driver_id: Optional[int] = None) -> bool:
    return await publish_change(
        redis,
        ChangeEvent(table=table, event=event, record_id=record_id, new=new, driver_id=driver_id),
    )


def decode_event(raw) -> Optional[ChangeEvent]:
    """Parse a pub/sub payload; malformed payloads are dropped."""
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8")
    try:
        return ChangeEvent.model_validate(json.loads(raw))
    except (ValueError, TypeError):
        logger.warning("Dropping malformed change event")
        return None


def event_matches(event: ChangeEvent, event_types: Optional[Iterable[ChangeEventType]] = None,
                  driver_id: Optional[int] = None) -> bool:
    """
    Subscription filter.

    Args:
        event: Incoming change
        event_types: Event kinds the subscriber listens to (None for all)
        driver_id: Only pass changes for this driver (None for all)
    """
    if event_types is not None and event.event not in set(event_types):
        return False
    if driver_id is not None and event.driver_id != driver_id:
        return False
    return True
