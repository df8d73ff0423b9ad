"""
Work Session Tests.

Covers the order lifecycle from placement through settlement: acceptance
gates, the single running session rule, settlement amounts, blocking on a
negative balance and rollback when the settlement cannot be saved.
"""

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from getlife.app.core.exceptions import InvalidStateTransitionError
from getlife.app.models.enums import ServiceType
from getlife.app.models.order import Order
from getlife.app.models.order_enums import OrderStatus
from getlife.app.services.order_service import OrderService


async def place_order(client, customer, mitra_id, service_type="GetClean"):
    response = await client.post("/v1/user/orders", json={
        "service_type": service_type,
        "mitra_id": mitra_id,
        "user_address": "Jl. Sudirman 10"
    }, headers=customer["headers"])
    assert response.status_code == 201
    return response.json()


async def start_session(client, customer, mitra):
    order = await place_order(client, customer, mitra["id"])
    response = await client.post(f"/v1/mitra/orders/{order['id']}/accept", headers=mitra["headers"])
    assert response.status_code == 200
    response = await client.post(f"/v1/mitra/orders/{order['id']}/start", headers=mitra["headers"])
    assert response.status_code == 200
    return response.json()


async def get_account(client, mitra):
    response = await client.get("/v1/mitra/account", headers=mitra["headers"])
    assert response.status_code == 200
    return response.json()


# --- Placing orders ---

@pytest.mark.asyncio
async def test_customer_sees_available_mitras(client, customer, make_mitra):
    cleaner = await make_mitra("cleaner")
    await make_mitra("barber", expertise=ServiceType.GET_BARBER)
    await make_mitra("blockedcleaner", balance=-500, blocked=True)

    response = await client.get("/v1/user/mitras", headers=customer["headers"])
    assert response.status_code == 200
    names = {m["full_name"] for m in response.json()}
    assert names == {"Mitra cleaner", "Mitra barber"}

    response = await client.get(
        "/v1/user/mitras", params={"service_type": "GetClean"}, headers=customer["headers"]
    )
    assert [m["id"] for m in response.json()] == [cleaner["id"]]


@pytest.mark.asyncio
async def test_order_starts_awaiting_and_notifies_mitra(client, customer, make_mitra):
    mitra = await make_mitra()
    order = await place_order(client, customer, mitra["id"])

    assert order["status"] == "AWAITING"
    assert order["user_id"] == customer["id"]
    assert order["start_time"] is None

    response = await client.get("/v1/notifications", headers=mitra["headers"])
    assert response.json()[0]["type"] == "ORDER_UPDATE"
    assert response.json()[0]["metadata_payload"]["order_id"] == order["id"]


@pytest.mark.asyncio
async def test_order_for_wrong_service_is_rejected(client, customer, make_mitra):
    mitra = await make_mitra(expertise=ServiceType.GET_MASSAGE)
    response = await client.post("/v1/user/orders", json={
        "service_type": "GetClean",
        "mitra_id": mitra["id"],
        "user_address": "Jl. Sudirman 10"
    }, headers=customer["headers"])
    assert response.status_code == 400
    assert response.json()["error_code"] == "ERR_BAD_REQUEST"


@pytest.mark.asyncio
async def test_order_for_unknown_mitra_is_not_found(client, customer):
    response = await client.post("/v1/user/orders", json={
        "service_type": "GetClean",
        "mitra_id": 9999,
        "user_address": "Jl. Sudirman 10"
    }, headers=customer["headers"])
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_mitra_cannot_place_orders(client, make_mitra):
    mitra = await make_mitra()
    response = await client.post("/v1/user/orders", json={
        "service_type": "GetClean",
        "mitra_id": mitra["id"],
        "user_address": "Jl. Sudirman 10"
    }, headers=mitra["headers"])
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_cancel_only_before_acceptance(client, customer, make_mitra):
    mitra = await make_mitra()
    first = await place_order(client, customer, mitra["id"])
    response = await client.post(f"/v1/user/orders/{first['id']}/cancel", headers=customer["headers"])
    assert response.status_code == 200
    assert response.json()["status"] == "CANCELLED"

    second = await place_order(client, customer, mitra["id"])
    await client.post(f"/v1/mitra/orders/{second['id']}/accept", headers=mitra["headers"])
    response = await client.post(f"/v1/user/orders/{second['id']}/cancel", headers=customer["headers"])
    assert response.status_code == 409

    response = await client.get("/v1/user/orders", headers=customer["headers"])
    statuses = {o["id"]: o["status"] for o in response.json()}
    assert statuses == {first["id"]: "CANCELLED", second["id"]: "ACCEPTED"}


# --- Acceptance gates ---

@pytest.mark.asyncio
async def test_accept_requires_minimum_balance(client, customer, make_mitra):
    mitra = await make_mitra(balance=9999)
    order = await place_order(client, customer, mitra["id"])

    response = await client.post(f"/v1/mitra/orders/{order['id']}/accept", headers=mitra["headers"])
    assert response.status_code == 402
    assert response.json()["error_code"] == "ERR_BALANCE_001"

    response = await client.get("/v1/mitra/orders", headers=mitra["headers"])
    assert response.json()[0]["status"] == "AWAITING"


@pytest.mark.asyncio
async def test_accept_at_exact_minimum_balance(client, customer, make_mitra, clock):
    mitra = await make_mitra(balance=10000)
    order = await place_order(client, customer, mitra["id"])

    response = await client.post(f"/v1/mitra/orders/{order['id']}/accept", headers=mitra["headers"])
    assert response.status_code == 200
    assert response.json()["status"] == "ACCEPTED"
    assert response.json()["accepted_at"].startswith("2026-01-05T08:00:00")


@pytest.mark.asyncio
async def test_blocked_mitra_cannot_accept(client, customer, make_mitra):
    mitra = await make_mitra(balance=50000, blocked=True)
    order = await place_order(client, customer, mitra["id"])

    response = await client.post(f"/v1/mitra/orders/{order['id']}/accept", headers=mitra["headers"])
    assert response.status_code == 403
    assert response.json()["error_code"] == "ERR_BLOCKED_001"


@pytest.mark.asyncio
async def test_accept_twice_is_a_state_conflict(client, customer, make_mitra):
    mitra = await make_mitra()
    order = await place_order(client, customer, mitra["id"])
    await client.post(f"/v1/mitra/orders/{order['id']}/accept", headers=mitra["headers"])

    response = await client.post(f"/v1/mitra/orders/{order['id']}/accept", headers=mitra["headers"])
    assert response.status_code == 409
    assert response.json()["error_code"] == "ERR_STATE_001"


@pytest.mark.asyncio
async def test_mitra_cannot_touch_another_mitras_order(client, customer, make_mitra):
    owner = await make_mitra("owner")
    other = await make_mitra("other")
    order = await place_order(client, customer, owner["id"])

    response = await client.post(f"/v1/mitra/orders/{order['id']}/accept", headers=other["headers"])
    assert response.status_code == 404


# --- Starting ---

@pytest.mark.asyncio
async def test_start_requires_accepted_order(client, customer, make_mitra):
    mitra = await make_mitra()
    order = await place_order(client, customer, mitra["id"])

    response = await client.post(f"/v1/mitra/orders/{order['id']}/start", headers=mitra["headers"])
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_only_one_running_session_per_mitra(client, customer, make_mitra):
    mitra = await make_mitra()
    await start_session(client, customer, mitra)

    second = await place_order(client, customer, mitra["id"])
    await client.post(f"/v1/mitra/orders/{second['id']}/accept", headers=mitra["headers"])
    response = await client.post(f"/v1/mitra/orders/{second['id']}/start", headers=mitra["headers"])

    assert response.status_code == 409
    assert "already in progress" in response.json()["message"]


@pytest.mark.asyncio
async def test_racing_starts_leave_one_running_session(client, customer, make_mitra, mocker):
    mitra = await make_mitra()
    first = await place_order(client, customer, mitra["id"])
    second = await place_order(client, customer, mitra["id"])
    for order in (first, second):
        await client.post(f"/v1/mitra/orders/{order['id']}/accept", headers=mitra["headers"])

    # Both starts pass the running-session lookup before either is written
    mocker.patch.object(OrderService, "get_active_session", return_value=None)
    response = await client.post(f"/v1/mitra/orders/{first['id']}/start", headers=mitra["headers"])
    assert response.status_code == 200
    response = await client.post(f"/v1/mitra/orders/{second['id']}/start", headers=mitra["headers"])
    mocker.stopall()

    assert response.status_code == 409
    assert "already in progress" in response.json()["message"]

    response = await client.get(
        "/v1/mitra/orders", params={"status": "IN_PROGRESS"}, headers=mitra["headers"]
    )
    assert [o["id"] for o in response.json()] == [first["id"]]


@pytest.mark.asyncio
async def test_cancel_loses_to_acceptance_loaded_earlier(client, customer, make_mitra, db_session):
    mitra = await make_mitra()
    order = await place_order(client, customer, mitra["id"])
    stale = await db_session.get(Order, order["id"])
    assert stale.status == OrderStatus.AWAITING

    response = await client.post(f"/v1/mitra/orders/{order['id']}/accept", headers=mitra["headers"])
    assert response.status_code == 200

    with pytest.raises(InvalidStateTransitionError):
        await OrderService.cancel_order(db_session, order["id"], {"user_id": customer["id"]})

    response = await client.get("/v1/user/orders", headers=customer["headers"])
    assert response.json()[0]["status"] == "ACCEPTED"


@pytest.mark.asyncio
async def test_start_records_server_timestamp(client, customer, make_mitra, clock):
    mitra = await make_mitra()
    order = await start_session(client, customer, mitra)

    assert order["status"] == "IN_PROGRESS"
    assert order["start_time"].startswith("2026-01-05T08:00:00")


# --- Running session view ---

@pytest.mark.asyncio
async def test_session_view_shows_live_elapsed_and_estimate(client, customer, make_mitra, clock):
    mitra = await make_mitra()
    order = await start_session(client, customer, mitra)

    clock.advance(600)
    response = await client.get("/v1/mitra/session", headers=mitra["headers"])
    assert response.status_code == 200
    data = response.json()
    assert data["order_id"] == order["id"]
    assert data["elapsed_seconds"] == 600
    # 600 * 125000 / 3600 = 20833.33
    assert data["estimated_amount"] == 20833


@pytest.mark.asyncio
async def test_session_view_without_running_session(client, make_mitra):
    mitra = await make_mitra()
    response = await client.get("/v1/mitra/session", headers=mitra["headers"])
    assert response.status_code == 404


# --- Finishing and settlement ---

@pytest.mark.asyncio
async def test_finish_one_hour_settles_and_completes(client, customer, make_mitra, clock):
    mitra = await make_mitra(balance=50000)
    order = await start_session(client, customer, mitra)

    clock.advance(3600)
    response = await client.post(f"/v1/mitra/orders/{order['id']}/finish", headers=mitra["headers"])
    assert response.status_code == 200
    data = response.json()

    assert data["settlement"] == {
        "billable_amount": 125000,
        "commission_amount": 31250,
        "new_balance": 18750,
        "should_block": False,
        "outstanding_debt": 0
    }
    assert data["order"]["status"] == "COMPLETED"
    assert data["order"]["elapsed_seconds"] == 3600
    assert data["order"]["total_amount"] == 125000
    assert data["order"]["admin_fee"] == 31250
    assert data["order"]["mitra_earnings"] == 93750
    assert data["order"]["end_time"].startswith("2026-01-05T09:00:00")

    account = await get_account(client, mitra)
    assert account["balance"] == 18750
    assert account["blocked"] is False
    assert account["version"] == 2

    response = await client.get("/v1/wallet/transactions", headers=mitra["headers"])
    commission = response.json()[0]
    assert commission["type"] == "COMMISSION"
    assert commission["amount"] == -31250
    assert commission["order_id"] == order["id"]


@pytest.mark.asyncio
async def test_finish_that_goes_negative_blocks_the_mitra(client, customer, make_mitra, clock, admin):
    mitra = await make_mitra(balance=20000)
    order = await start_session(client, customer, mitra)

    clock.advance(3600)
    response = await client.post(f"/v1/mitra/orders/{order['id']}/finish", headers=mitra["headers"])
    assert response.status_code == 200
    data = response.json()

    assert data["settlement"]["new_balance"] == -11250
    assert data["settlement"]["should_block"] is True
    assert data["settlement"]["outstanding_debt"] == 11250
    assert data["order"]["status"] == "BLOCKED"
    assert data["order"]["total_amount"] == 125000

    account = await get_account(client, mitra)
    assert account["balance"] == -11250
    assert account["blocked"] is True
    assert account["outstanding_debt"] == 11250

    # Blocked mitras drop out of the booking list and cannot accept
    response = await client.get("/v1/user/mitras", headers=customer["headers"])
    assert response.json() == []

    notifications = await client.get("/v1/notifications", headers=mitra["headers"])
    assert any(n["title"] == "Account blocked" for n in notifications.json())

    response = await client.get(
        "/v1/admin/audit-logs", params={"action": "ACCOUNT_BLOCKED"}, headers=admin["headers"]
    )
    assert response.json()["total"] == 1
    assert response.json()["logs"][0]["meta_data"]["debt_amount"] == 11250


@pytest.mark.asyncio
async def test_finish_at_exact_commission_does_not_block(client, customer, make_mitra, clock):
    mitra = await make_mitra(balance=31250)
    order = await start_session(client, customer, mitra)

    clock.advance(3600)
    response = await client.post(f"/v1/mitra/orders/{order['id']}/finish", headers=mitra["headers"])
    assert response.json()["settlement"]["new_balance"] == 0
    assert response.json()["order"]["status"] == "COMPLETED"


@pytest.mark.asyncio
async def test_finish_immediately_bills_nothing(client, customer, make_mitra):
    mitra = await make_mitra(balance=15000)
    order = await start_session(client, customer, mitra)

    response = await client.post(f"/v1/mitra/orders/{order['id']}/finish", headers=mitra["headers"])
    assert response.status_code == 200
    assert response.json()["settlement"]["billable_amount"] == 0
    assert response.json()["settlement"]["new_balance"] == 15000
    assert response.json()["order"]["status"] == "COMPLETED"


@pytest.mark.asyncio
async def test_billing_ignores_client_counter(client, customer, make_mitra, clock, admin):
    mitra = await make_mitra()
    order = await start_session(client, customer, mitra)

    clock.advance(1800)
    response = await client.post(
        f"/v1/mitra/orders/{order['id']}/finish",
        json={"reported_elapsed_seconds": 1795},
        headers=mitra["headers"]
    )
    assert response.status_code == 200
    assert response.json()["order"]["elapsed_seconds"] == 1800
    assert response.json()["settlement"]["billable_amount"] == 62500

    response = await client.get(
        "/v1/admin/audit-logs", params={"action": "SESSION_SETTLED"}, headers=admin["headers"]
    )
    meta = response.json()["logs"][0]["meta_data"]
    assert meta["reported_elapsed_seconds"] == 1795
    assert meta["counter_drift_seconds"] == 5


@pytest.mark.asyncio
async def test_finish_twice_is_a_state_conflict(client, customer, make_mitra, clock):
    mitra = await make_mitra()
    order = await start_session(client, customer, mitra)
    clock.advance(60)
    await client.post(f"/v1/mitra/orders/{order['id']}/finish", headers=mitra["headers"])

    clock.advance(60)
    response = await client.post(f"/v1/mitra/orders/{order['id']}/finish", headers=mitra["headers"])
    assert response.status_code == 409

    account = await get_account(client, mitra)
    # 60s -> 2083 billed, 521 commission, charged once
    assert account["balance"] == 50000 - 521


@pytest.mark.asyncio
async def test_finish_with_stale_order_is_charged_once(client, customer, make_mitra, clock, db_session):
    mitra = await make_mitra(balance=100000)
    order = await start_session(client, customer, mitra)
    # A second request loads the running order before the first finish lands
    stale = await db_session.get(Order, order["id"])
    assert stale.status == OrderStatus.IN_PROGRESS

    clock.advance(3600)
    response = await client.post(f"/v1/mitra/orders/{order['id']}/finish", headers=mitra["headers"])
    assert response.status_code == 200
    assert response.json()["settlement"]["new_balance"] == 68750

    with pytest.raises(InvalidStateTransitionError):
        await OrderService.finish_work(
            db_session, order["id"], {"user_id": mitra["id"], "sub": "mitra"}, clock.now()
        )

    account = await get_account(client, mitra)
    assert account["balance"] == 68750
    assert account["version"] == 2

    response = await client.get("/v1/wallet/transactions", headers=mitra["headers"])
    commissions = [t for t in response.json() if t["type"] == "COMMISSION"]
    assert len(commissions) == 1


@pytest.mark.asyncio
async def test_finish_before_start_is_a_state_conflict(client, customer, make_mitra):
    mitra = await make_mitra()
    order = await place_order(client, customer, mitra["id"])
    await client.post(f"/v1/mitra/orders/{order['id']}/accept", headers=mitra["headers"])

    response = await client.post(f"/v1/mitra/orders/{order['id']}/finish", headers=mitra["headers"])
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_failed_commit_keeps_session_running(client, customer, make_mitra, clock, mocker):
    mitra = await make_mitra(balance=50000)
    order = await start_session(client, customer, mitra)
    clock.advance(3600)

    mocker.patch.object(
        AsyncSession, "commit",
        side_effect=OperationalError("COMMIT", {}, Exception("disk I/O error"))
    )
    response = await client.post(f"/v1/mitra/orders/{order['id']}/finish", headers=mitra["headers"])
    mocker.stopall()

    assert response.status_code == 503
    assert response.json()["error_code"] == "ERR_PERSISTENCE"
    assert response.json()["details"]["retryable"] is True

    account = await get_account(client, mitra)
    assert account["balance"] == 50000
    assert account["version"] == 1

    response = await client.get("/v1/mitra/session", headers=mitra["headers"])
    assert response.status_code == 200
    assert response.json()["order_id"] == order["id"]

    response = await client.get("/v1/wallet/transactions", headers=mitra["headers"])
    assert response.json() == []

    # Retrying once the database is back settles normally
    response = await client.post(f"/v1/mitra/orders/{order['id']}/finish", headers=mitra["headers"])
    assert response.status_code == 200
    assert response.json()["settlement"]["new_balance"] == 18750


@pytest.mark.asyncio
async def test_blocked_mitra_cannot_start_accepted_order(client, customer, make_mitra, clock):
    mitra = await make_mitra(balance=20000)
    first = await start_session(client, customer, mitra)

    queued = await place_order(client, customer, mitra["id"])
    await client.post(f"/v1/mitra/orders/{queued['id']}/accept", headers=mitra["headers"])

    clock.advance(3600)
    await client.post(f"/v1/mitra/orders/{first['id']}/finish", headers=mitra["headers"])

    response = await client.post(f"/v1/mitra/orders/{queued['id']}/start", headers=mitra["headers"])
    assert response.status_code == 403


# --- Statistics ---

@pytest.mark.asyncio
async def test_statistics_sum_settled_orders(client, customer, make_mitra, clock):
    mitra = await make_mitra(balance=100000)

    first = await start_session(client, customer, mitra)
    clock.advance(3600)
    await client.post(f"/v1/mitra/orders/{first['id']}/finish", headers=mitra["headers"])

    second = await start_session(client, customer, mitra)
    clock.advance(1800)
    await client.post(f"/v1/mitra/orders/{second['id']}/finish", headers=mitra["headers"])

    await place_order(client, customer, mitra["id"])

    response = await client.get("/v1/mitra/statistics", headers=mitra["headers"])
    assert response.json() == {
        "completed_orders": 2,
        "open_orders": 1,
        "total_billed": 187500,
        "total_commission": 46875,
        "total_earnings": 140625,
        "total_seconds_worked": 5400
    }
