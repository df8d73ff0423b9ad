"""
Notification Tests.
"""

import pytest


@pytest.mark.asyncio
async def test_mark_one_and_all_read(client, customer, make_mitra):
    mitra = await make_mitra()
    for _ in range(3):
        await client.post("/v1/user/orders", json={
            "service_type": "GetClean",
            "mitra_id": mitra["id"],
            "user_address": "Jl. Sudirman 10"
        }, headers=customer["headers"])

    response = await client.get("/v1/notifications", headers=mitra["headers"])
    notifications = response.json()
    assert len(notifications) == 3

    response = await client.patch(
        f"/v1/notifications/{notifications[0]['id']}/read", headers=mitra["headers"]
    )
    assert response.status_code == 200

    response = await client.get(
        "/v1/notifications", params={"unread_only": True}, headers=mitra["headers"]
    )
    assert len(response.json()) == 2

    response = await client.patch("/v1/notifications/read-all", headers=mitra["headers"])
    assert response.json()["count"] == 2

    response = await client.get(
        "/v1/notifications", params={"unread_only": True}, headers=mitra["headers"]
    )
    assert response.json() == []


@pytest.mark.asyncio
async def test_cannot_read_someone_elses_notification(client, customer, make_mitra):
    mitra = await make_mitra()
    await client.post("/v1/user/orders", json={
        "service_type": "GetClean",
        "mitra_id": mitra["id"],
        "user_address": "Jl. Sudirman 10"
    }, headers=customer["headers"])
    notification = (await client.get("/v1/notifications", headers=mitra["headers"])).json()[0]

    response = await client.patch(
        f"/v1/notifications/{notification['id']}/read", headers=customer["headers"]
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_broadcast_to_role(client, admin, customer, make_mitra):
    first = await make_mitra("first")
    await make_mitra("second")

    response = await client.post("/v1/admin/notifications/broadcast", json={
        "role_filter": "MITRA",
        "type": "WARNING",
        "title": "Maintenance",
        "message": "Top-ups are paused tonight"
    }, headers=admin["headers"])
    assert response.status_code == 200
    assert response.json()["recipients"] == 2

    response = await client.get("/v1/notifications", headers=first["headers"])
    assert response.json()[0]["title"] == "Maintenance"

    response = await client.get("/v1/notifications", headers=customer["headers"])
    assert response.json() == []


@pytest.mark.asyncio
async def test_broadcast_is_admin_only(client, customer):
    response = await client.post("/v1/admin/notifications/broadcast", json={
        "title": "Hi", "message": "Hello"
    }, headers=customer["headers"])
    assert response.status_code == 403
