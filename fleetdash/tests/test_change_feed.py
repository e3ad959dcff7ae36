"""
Change feed publishing and subscription filtering.
"""

import json

import pytest

from fleetdash.app.api.v1.endpoints.realtime import parse_event_types
from fleetdash.app.models.enums import ChangeEventType
from fleetdash.app.services.change_feed import (
    ChangeEvent, channel_for, decode_event, event_matches, publish_row
)


def test_channel_per_table():
    assert channel_for("trips") == "fleet:changes:trips"


@pytest.mark.asyncio
async def test_publish_row(mock_redis):
    ok = await publish_row(mock_redis, "trips", ChangeEventType.INSERT, 7, new={"id": 7}, driver_id=3)

    assert ok is True
    channel, message = mock_redis.published[0]
    assert channel == "fleet:changes:trips"
    body = json.loads(message)
    assert body["event"] == "INSERT"
    assert body["record_id"] == 7
    assert body["driver_id"] == 3
    assert body["new"] == {"id": 7}


@pytest.mark.asyncio
async def test_publish_failure_is_reported_not_raised(mock_redis):
    mock_redis.fail_publish = True

    ok = await publish_row(mock_redis, "vehicles", ChangeEventType.DELETE, 1)

    assert ok is False
    assert mock_redis.published == []


def test_decode_event_accepts_bytes():
    raw = ChangeEvent(table="users", event=ChangeEventType.UPDATE, record_id=2).model_dump_json().encode()
    event = decode_event(raw)
    assert event.table == "users"
    assert event.event == ChangeEventType.UPDATE


def test_decode_event_drops_garbage():
    assert decode_event("{not json") is None
    assert decode_event(json.dumps({"table": "trips"})) is None


def test_event_matches():
    event = ChangeEvent(table="trips", event=ChangeEventType.UPDATE, record_id=1, driver_id=5)

    assert event_matches(event)
    assert event_matches(event, event_types=[ChangeEventType.UPDATE], driver_id=5)
    assert not event_matches(event, event_types=[ChangeEventType.INSERT])
    assert not event_matches(event, driver_id=6)


def test_parse_event_types():
    assert parse_event_types(None) is None
    assert parse_event_types("*") is None
    assert parse_event_types("insert, UPDATE") == [ChangeEventType.INSERT, ChangeEventType.UPDATE]
    with pytest.raises(ValueError):
        parse_event_types("TRUNCATE")


@pytest.mark.asyncio
async def test_writes_stand_when_publishing_fails(client, admin_headers, mock_redis):
    mock_redis.fail_publish = True

    response = await client.post(
        "/v1/admin/vehicles",
        json={"make": "Iveco", "model": "Daily", "year": 2023, "license_plate": "FLT-900"},
        headers=admin_headers,
    )
    assert response.status_code == 201

    listed = await client.get("/v1/admin/vehicles", headers=admin_headers)
    assert [v["license_plate"] for v in listed.json()] == ["FLT-900"]
