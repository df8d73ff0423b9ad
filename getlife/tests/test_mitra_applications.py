"""
Mitra Onboarding Tests.

Public applications and the admin review that turns an application into
a verified mitra.
"""

import pytest

from getlife.app.core.exceptions import InvalidStateTransitionError
from getlife.app.models.mitra_application import MitraApplication
from getlife.app.models.order_enums import ApplicationStatus
from getlife.app.schemas.application import ApplicationApprove
from getlife.app.services.application_service import ApplicationService

APPLICATION = {
    "full_name": "Rina Wati",
    "phone": "0812345678",
    "address": "Jl. Diponegoro 7",
    "expertise": "GetMassage",
    "reason": "Five years of spa experience",
    "ktp_url": "uploads/ktp/rina.jpg"
}


async def submit(client, **overrides):
    response = await client.post("/v1/applications", json={**APPLICATION, **overrides})
    assert response.status_code == 201
    return response.json()


@pytest.mark.asyncio
async def test_anyone_can_apply(client):
    application = await submit(client)
    assert application["status"] == "PENDING"
    assert application["expertise"] == "GetMassage"
    assert application["mitra_user_id"] is None


@pytest.mark.asyncio
async def test_application_requires_known_expertise(client):
    response = await client.post("/v1/applications", json={**APPLICATION, "expertise": "GetCooking"})
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_admin_lists_applications_by_status(client, admin):
    first = await submit(client)
    await submit(client, full_name="Second Applicant")

    await client.post(f"/v1/admin/applications/{first['id']}/reject", headers=admin["headers"])

    response = await client.get(
        "/v1/admin/applications", params={"status": "PENDING"}, headers=admin["headers"]
    )
    assert [a["full_name"] for a in response.json()] == ["Second Applicant"]


@pytest.mark.asyncio
async def test_approval_creates_verified_mitra(client, admin, customer):
    application = await submit(client)

    response = await client.post(f"/v1/admin/applications/{application['id']}/approve", json={
        "email": "rina@test.com",
        "username": "rina",
        "password": "rina1234"
    }, headers=admin["headers"])
    assert response.status_code == 200
    approved = response.json()
    assert approved["status"] == "APPROVED"
    assert approved["reviewed_by_admin_id"] == admin["id"]

    login = await client.post("/v1/auth/login", json={"username": "rina", "password": "rina1234"})
    assert login.status_code == 200
    assert login.json()["role"] == "MITRA"
    assert login.json()["user_id"] == approved["mitra_user_id"]
    headers = {"Authorization": f"Bearer {login.json()['access_token']}"}

    account = await client.get("/v1/mitra/account", headers=headers)
    assert account.json()["balance"] == 0

    notifications = await client.get("/v1/notifications", headers=headers)
    assert notifications.json()[0]["title"] == "Welcome to GetLife"

    mitras = await client.get(
        "/v1/user/mitras", params={"service_type": "GetMassage"}, headers=customer["headers"]
    )
    assert [m["full_name"] for m in mitras.json()] == ["Rina Wati"]


@pytest.mark.asyncio
async def test_new_mitra_must_top_up_before_accepting(client, admin, customer):
    application = await submit(client)
    response = await client.post(f"/v1/admin/applications/{application['id']}/approve", json={
        "email": "rina@test.com", "username": "rina", "password": "rina1234"
    }, headers=admin["headers"])
    mitra_id = response.json()["mitra_user_id"]

    login = await client.post("/v1/auth/login", json={"username": "rina", "password": "rina1234"})
    headers = {"Authorization": f"Bearer {login.json()['access_token']}"}

    order = await client.post("/v1/user/orders", json={
        "service_type": "GetMassage",
        "mitra_id": mitra_id,
        "user_address": "Jl. Sudirman 10"
    }, headers=customer["headers"])
    response = await client.post(f"/v1/mitra/orders/{order.json()['id']}/accept", headers=headers)
    assert response.status_code == 402


@pytest.mark.asyncio
async def test_approval_with_taken_username_is_rejected(client, admin, customer):
    application = await submit(client)

    response = await client.post(f"/v1/admin/applications/{application['id']}/approve", json={
        "email": "fresh@test.com",
        "username": "customer",
        "password": "rina1234"
    }, headers=admin["headers"])
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_overlapping_approval_creates_one_mitra(client, admin, db_session):
    application = await submit(client)
    stale = await db_session.get(MitraApplication, application["id"])
    assert stale.status == ApplicationStatus.PENDING

    response = await client.post(f"/v1/admin/applications/{application['id']}/approve", json={
        "email": "rina@test.com", "username": "rina", "password": "rina1234"
    }, headers=admin["headers"])
    assert response.status_code == 200

    with pytest.raises(InvalidStateTransitionError):
        await ApplicationService.approve(
            db_session,
            application["id"],
            ApplicationApprove(email="rina2@test.com", username="rina2", password="rina1234"),
            {"user_id": admin["id"], "sub": "admin"},
        )
    await db_session.rollback()

    response = await client.get("/v1/admin/users", params={"role": "MITRA"}, headers=admin["headers"])
    assert [u["username"] for u in response.json()["users"]] == ["rina"]
    assert response.json()["error_code"] == "ERR_DUPLICATE"

    response = await client.get("/v1/admin/applications", headers=admin["headers"])
    assert response.json()[0]["status"] == "PENDING"


@pytest.mark.asyncio
async def test_reviewed_application_cannot_be_reviewed_again(client, admin):
    application = await submit(client)
    response = await client.post(
        f"/v1/admin/applications/{application['id']}/reject",
        json={"reason": "Incomplete documents"},
        headers=admin["headers"]
    )
    assert response.json()["status"] == "REJECTED"

    response = await client.post(f"/v1/admin/applications/{application['id']}/approve", json={
        "email": "rina@test.com", "username": "rina", "password": "rina1234"
    }, headers=admin["headers"])
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_application_review_is_admin_only(client, customer):
    application = await submit(client)
    response = await client.get("/v1/admin/applications", headers=customer["headers"])
    assert response.status_code == 403
    response = await client.post(
        f"/v1/admin/applications/{application['id']}/reject", headers=customer["headers"]
    )
    assert response.status_code == 403
