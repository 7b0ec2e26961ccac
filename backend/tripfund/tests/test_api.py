"""
Tests for the HTTP layer: authentication, routing and error mapping.
"""
from decimal import Decimal

from tripfund.core.config import settings
from tripfund.services.notification_service import NotificationEvent


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}
    assert response.headers["X-Request-ID"]


def test_request_id_is_echoed(client):
    response = client.get("/health", headers={"X-Request-ID": "abc123"})
    assert response.headers["X-Request-ID"] == "abc123"


def test_missing_token_is_unauthorized(client):
    assert client.get("/api/users/me").status_code == 401
    bad = client.get("/api/users/me", headers={"Authorization": "Bearer not-a-token"})
    assert bad.status_code == 401


def test_current_user(client, factory, auth_headers):
    alice = factory.user("alice")

    response = client.get("/api/users/me", headers=auth_headers(alice))

    assert response.status_code == 200
    assert response.json()["username"] == "alice"


def test_trip_flow_over_http(client, factory, auth_headers, notifier):
    alice = factory.user("alice")
    bob = factory.user("bob")
    alice_headers = auth_headers(alice)
    bob_headers = auth_headers(bob)

    response = client.post("/api/trips", json={"name": "Chengdu"}, headers=alice_headers)
    assert response.status_code == 201
    trip_id = response.json()["id"]

    response = client.post(
        f"/api/trips/{trip_id}/members/virtual", json={"display_name": "Li"}, headers=alice_headers
    )
    assert response.status_code == 201
    li_id = response.json()["id"]

    members = client.get(f"/api/trips/{trip_id}/members", headers=alice_headers).json()
    admin_id = members[0]["id"]
    assert members[0]["role"] == "admin"

    response = client.post(f"/api/expenses/{trip_id}", json={
        "amount": "400.00",
        "payer_member_id": admin_id,
        "is_paid_from_fund": False,
        "participants": [{"member_id": admin_id}, {"member_id": li_id}],
    }, headers=alice_headers)
    assert response.status_code == 201

    balances = client.get(f"/api/trips/{trip_id}/balances", headers=alice_headers).json()
    assert {b["member_id"]: Decimal(b["balance"]) for b in balances} == {
        admin_id: Decimal("200.00"), li_id: Decimal("-200.00")
    }

    response = client.post(f"/api/trips/{trip_id}/invitations", json={
        "invited_user_id": bob.id, "invite_type": "REPLACE", "target_member_id": li_id,
    }, headers=alice_headers)
    assert response.status_code == 201
    invitation_id = response.json()["id"]

    received = client.get("/api/invitations", headers=bob_headers).json()
    assert [i["id"] for i in received["invitations"]] == [invitation_id]

    response = client.post(f"/api/invitations/{invitation_id}/accept", headers=bob_headers)
    assert response.status_code == 200
    assert response.json()["member_id"] == li_id
    assert NotificationEvent.MEMBER_JOINED in notifier.events()

    response = client.post(f"/api/invitations/{invitation_id}/accept", headers=bob_headers)
    assert response.status_code == 409

    plan = client.get(f"/api/settlement/{trip_id}/plan", headers=bob_headers).json()
    assert plan["total_transactions"] == 1
    transfer = plan["settlements"][0]
    assert (transfer["from_member_id"], transfer["to_member_id"]) == (li_id, admin_id)
    assert transfer["from_name"] == "bob"
    assert Decimal(transfer["amount"]) == Decimal("200.00")

    records = client.post(f"/api/settlement/{trip_id}/record", headers=alice_headers).json()
    response = client.post(f"/api/settlement/records/{records[0]['id']}/paid", headers=bob_headers)
    assert response.status_code == 200
    assert response.json()["is_settled"] is True


def test_domain_errors_map_to_status_codes(client, factory, auth_headers):
    alice = factory.user("alice")
    bob = factory.user("bob")
    trip_id = client.post("/api/trips", json={"name": "Xi'an"}, headers=auth_headers(alice)).json()["id"]

    # Not a member
    assert client.get(f"/api/trips/{trip_id}", headers=auth_headers(bob)).status_code == 403
    # Unknown trip
    assert client.get("/api/trips/999", headers=auth_headers(alice)).status_code == 404

    members = client.get(f"/api/trips/{trip_id}/members", headers=auth_headers(alice)).json()
    response = client.put(
        f"/api/trips/{trip_id}/members/{members[0]['id']}/role",
        json={"role": "member"},
        headers=auth_headers(alice),
    )
    assert response.status_code == 409
    assert response.json() == {"detail": "Cannot demote the last admin of a trip"}

    response = client.post(f"/api/trips/{trip_id}/invitations", json={
        "invited_user_id": bob.id, "invite_type": "REPLACE",
    }, headers=auth_headers(alice))
    assert response.status_code == 400


def test_batch_contributions_over_http(client, factory, auth_headers):
    alice = factory.user("alice")
    headers = auth_headers(alice)
    trip_id = client.post("/api/trips", json={"name": "Lhasa"}, headers=headers).json()["id"]
    li_id = client.post(
        f"/api/trips/{trip_id}/members/virtual", json={"display_name": "Li"}, headers=headers
    ).json()["id"]

    response = client.put(f"/api/trips/{trip_id}/contributions", json={
        "contributions": [{"member_id": li_id, "contribution": "120.5"}],
    }, headers=headers)
    assert response.status_code == 200
    assert Decimal(response.json()[0]["contribution"]) == Decimal("120.50")

    stats = client.get(f"/api/trips/{trip_id}/statistics", headers=headers).json()
    assert Decimal(stats["summary"]["fund_balance"]) == Decimal("120.50")


def test_sweep_requires_the_maintenance_key(client, factory, auth_headers, monkeypatch):
    alice = factory.user("alice")

    # No key configured: the endpoint is closed even to signed-in users
    monkeypatch.setattr(settings, "MAINTENANCE_API_KEY", "")
    assert client.post("/api/invitations/sweep", headers=auth_headers(alice)).status_code == 403

    monkeypatch.setattr(settings, "MAINTENANCE_API_KEY", "cron-secret")
    assert client.post("/api/invitations/sweep", headers=auth_headers(alice)).status_code == 403
    wrong = client.post("/api/invitations/sweep", headers={"X-Maintenance-Key": "guess"})
    assert wrong.status_code == 403

    response = client.post("/api/invitations/sweep", headers={"X-Maintenance-Key": "cron-secret"})
    assert response.status_code == 200
    assert response.json() == {"count": 0}


def test_update_expense_over_http(client, factory, auth_headers):
    alice = factory.user("alice")
    headers = auth_headers(alice)
    trip_id = client.post("/api/trips", json={"name": "Xi'an"}, headers=headers).json()["id"]
    li_id = client.post(
        f"/api/trips/{trip_id}/members/virtual", json={"display_name": "Li"}, headers=headers
    ).json()["id"]
    admin_id = client.get(f"/api/trips/{trip_id}/members", headers=headers).json()[0]["id"]
    expense_id = client.post(f"/api/expenses/{trip_id}", json={
        "amount": "60.00", "payer_member_id": admin_id,
    }, headers=headers).json()["id"]

    response = client.put(f"/api/expenses/{expense_id}", json={
        "payer_member_id": li_id,
        "participants": [{"member_id": admin_id}, {"member_id": li_id}],
    }, headers=headers)

    assert response.status_code == 200
    body = response.json()
    assert body["payer_member_id"] == li_id
    assert body["is_paid_from_fund"] is False
    assert sorted(Decimal(p["share_amount"]) for p in body["participants"]) == [Decimal("30.00")] * 2
    assert client.put(f"/api/expenses/{expense_id}", json={"amount": "0"}, headers=headers).status_code == 422
