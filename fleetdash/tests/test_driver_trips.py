"""
Driver trip execution: lifecycle moves, ownership, live location and history.
"""

import json

import pytest

from fleetdash.app.models.user import User
from fleetdash.app.models.vehicle import Vehicle


@pytest.fixture
async def trip(driver_user, vehicle, assign_trip):
    return await assign_trip(driver_user.id, vehicle.id)


@pytest.mark.asyncio
async def test_driver_sees_only_own_trips(client, driver_headers, trip, make_user, make_vehicle, assign_trip):
    other = await make_user("other@fleet.io")
    await assign_trip(other.id, (await make_vehicle("FLT-222")).id)

    response = await client.get("/v1/driver/trips", headers=driver_headers)
    assert response.status_code == 200
    assert [t["id"] for t in response.json()] == [trip["id"]]

    response = await client.get("/v1/driver/trips/pending", headers=driver_headers)
    assert [t["id"] for t in response.json()] == [trip["id"]]

    response = await client.get("/v1/driver/trips/active", headers=driver_headers)
    assert response.json()["id"] == trip["id"]


@pytest.mark.asyncio
async def test_no_active_trip(client, driver_headers):
    response = await client.get("/v1/driver/trips/active", headers=driver_headers)
    assert response.status_code == 200
    assert response.json() is None


@pytest.mark.asyncio
async def test_start_trip(client, driver_headers, driver_user, vehicle, trip, fetch, mock_redis):
    mock_redis.published.clear()

    response = await client.post(f"/v1/driver/trips/{trip['id']}/start", headers=driver_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "in_progress"
    assert data["start_time"] is not None
    assert data["driver"]["status"] == "on_trip"
    assert data["vehicle"]["status"] == "in_use"

    assert (await fetch(User, driver_user.id)).status.value == "on_trip"
    assert (await fetch(Vehicle, vehicle.id)).status.value == "in_use"

    channels = [channel.rsplit(":", 1)[-1] for channel, _ in mock_redis.published]
    assert channels == ["trips", "users", "vehicles"]
    assert json.loads(mock_redis.published[0][1])["event"] == "UPDATE"
    assert json.loads(mock_redis.published[2][1])["driver_id"] == driver_user.id


@pytest.mark.asyncio
async def test_complete_trip_frees_driver_and_vehicle(client, driver_headers, driver_user, vehicle, trip, fetch):
    await client.post(f"/v1/driver/trips/{trip['id']}/start", headers=driver_headers)

    response = await client.post(f"/v1/driver/trips/{trip['id']}/complete", headers=driver_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "completed"
    assert data["end_time"] is not None

    assert (await fetch(User, driver_user.id)).status.value == "available"
    assert (await fetch(Vehicle, vehicle.id)).status.value == "available"


@pytest.mark.asyncio
async def test_driver_cancel_pending_trip(client, driver_headers, trip):
    response = await client.post(f"/v1/driver/trips/{trip['id']}/cancel", headers=driver_headers)
    assert response.status_code == 200
    assert response.json()["status"] == "cancelled"
    assert response.json()["driver"]["status"] == "available"


@pytest.mark.asyncio
async def test_invalid_transitions(client, driver_headers, trip):
    response = await client.post(f"/v1/driver/trips/{trip['id']}/complete", headers=driver_headers)
    assert response.status_code == 409
    assert response.json()["error_code"] == "ERR_TRIP_TRANSITION"
    assert response.json()["details"] == {"current_status": "pending", "target_status": "completed"}

    await client.post(f"/v1/driver/trips/{trip['id']}/start", headers=driver_headers)
    response = await client.post(f"/v1/driver/trips/{trip['id']}/start", headers=driver_headers)
    assert response.status_code == 409

    await client.post(f"/v1/driver/trips/{trip['id']}/complete", headers=driver_headers)
    response = await client.post(f"/v1/driver/trips/{trip['id']}/cancel", headers=driver_headers)
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_one_in_progress_trip_per_driver(client, driver_headers, driver_user, trip, make_vehicle, assign_trip):
    second = await assign_trip(driver_user.id, (await make_vehicle("FLT-333")).id)
    await client.post(f"/v1/driver/trips/{trip['id']}/start", headers=driver_headers)

    response = await client.post(f"/v1/driver/trips/{second['id']}/start", headers=driver_headers)
    assert response.status_code == 409
    assert response.json()["error_code"] == "ERR_CONFLICT_001"


@pytest.mark.asyncio
async def test_driver_status_follows_all_open_trips(
    client, driver_headers, admin_headers, driver_user, trip, make_vehicle, assign_trip, fetch
):
    await client.post(f"/v1/driver/trips/{trip['id']}/start", headers=driver_headers)

    second = await assign_trip(driver_user.id, (await make_vehicle("FLT-333")).id)
    assert second["driver"]["status"] == "on_trip"
    assert (await fetch(User, driver_user.id)).status.value == "on_trip"

    response = await client.post(f"/v1/admin/trips/{second['id']}/cancel", headers=admin_headers)
    assert response.status_code == 200
    assert (await fetch(User, driver_user.id)).status.value == "on_trip"

    stats = (await client.get("/v1/admin/dashboard/stats", headers=admin_headers)).json()
    assert stats["active_trips"] == 1
    assert stats["active_drivers"] == 1

    await client.post(f"/v1/driver/trips/{trip['id']}/complete", headers=driver_headers)
    assert (await fetch(User, driver_user.id)).status.value == "available"


@pytest.mark.asyncio
async def test_pending_trip_keeps_driver_assigned(client, driver_headers, driver_user, trip, make_vehicle, assign_trip, fetch):
    second = await assign_trip(driver_user.id, (await make_vehicle("FLT-333")).id)

    response = await client.post(f"/v1/driver/trips/{trip['id']}/cancel", headers=driver_headers)
    assert response.status_code == 200
    assert response.json()["driver"]["status"] == "assigned"

    await client.post(f"/v1/driver/trips/{second['id']}/cancel", headers=driver_headers)
    assert (await fetch(User, driver_user.id)).status.value == "available"


@pytest.mark.asyncio
async def test_other_drivers_trip_forbidden(client, trip, make_user, login_as):
    intruder = await make_user("intruder@fleet.io")
    headers = await login_as(intruder.email)

    response = await client.post(f"/v1/driver/trips/{trip['id']}/start", headers=headers)
    assert response.status_code == 403
    assert response.json()["message"] == "This trip is not assigned to you"


@pytest.mark.asyncio
async def test_unknown_trip(client, driver_headers):
    response = await client.post("/v1/driver/trips/999/start", headers=driver_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_location_requires_started_trip(client, driver_headers, trip):
    response = await client.post(
        f"/v1/driver/trips/{trip['id']}/location",
        json={"latitude": 0, "longitude": 0},
        headers=driver_headers,
    )
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_location_accumulates_distance(client, driver_headers, trip, mock_redis):
    await client.post(f"/v1/driver/trips/{trip['id']}/start", headers=driver_headers)
    url = f"/v1/driver/trips/{trip['id']}/location"

    first = await client.post(url, json={"latitude": 0, "longitude": 0}, headers=driver_headers)
    assert first.status_code == 200
    assert first.json()["distance_travelled"] == 0

    mock_redis.published.clear()
    second = await client.post(url, json={"latitude": 1, "longitude": 0}, headers=driver_headers)
    data = second.json()
    assert data["current_lat"] == 1
    assert data["current_lng"] == 0
    assert data["distance_travelled"] == pytest.approx(111.195, abs=0.01)

    # Location pings only touch the trip row
    assert [channel.rsplit(":", 1)[-1] for channel, _ in mock_redis.published] == ["trips"]


@pytest.mark.asyncio
async def test_location_out_of_range(client, driver_headers, trip):
    response = await client.post(
        f"/v1/driver/trips/{trip['id']}/location",
        json={"latitude": 91, "longitude": 0},
        headers=driver_headers,
    )
    assert response.status_code == 422
    assert response.json()["error_code"] == "ERR_VALIDATION"


@pytest.mark.asyncio
async def test_live_map_markers(client, admin_headers, driver_headers, trip):
    response = await client.get("/v1/admin/trips/live", headers=admin_headers)
    assert response.json() == []

    await client.post(f"/v1/driver/trips/{trip['id']}/start", headers=driver_headers)
    response = await client.get("/v1/admin/trips/live", headers=admin_headers)
    marker = response.json()[0]
    assert marker["trip_id"] == trip["id"]
    assert marker["has_position"] is False
    assert marker["vehicle_label"] == "Ford Transit (FLT-001)"
    assert marker["driver_name"] == "Dana Driver"

    await client.post(
        f"/v1/driver/trips/{trip['id']}/location",
        json={"latitude": 52.52, "longitude": 13.405},
        headers=driver_headers,
    )
    marker = (await client.get("/v1/admin/trips/live", headers=admin_headers)).json()[0]
    assert marker["has_position"] is True
    assert marker["latitude"] == 52.52


@pytest.mark.asyncio
async def test_history_groups_completed_trips(client, driver_headers, trip):
    await client.post(f"/v1/driver/trips/{trip['id']}/start", headers=driver_headers)
    done = (await client.post(f"/v1/driver/trips/{trip['id']}/complete", headers=driver_headers)).json()
    month = done["start_time"][:7]

    response = await client.get("/v1/driver/trips/history", headers=driver_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["months"] == [month]
    assert data["selected_month"] == "all"
    assert data["total"] == 1
    assert data["groups"][0]["month"] == month
    assert data["groups"][0]["trips"][0]["id"] == trip["id"]

    response = await client.get("/v1/driver/trips/history?month=1999-01", headers=driver_headers)
    assert response.json()["total"] == 0
    assert response.json()["months"] == [month]

    response = await client.get("/v1/driver/trips/history?month=13-2024", headers=driver_headers)
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_history_leaves_out_open_trips(client, driver_headers, trip):
    response = await client.get("/v1/driver/trips/history", headers=driver_headers)
    assert response.json()["total"] == 0
    assert response.json()["groups"] == []
