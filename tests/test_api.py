import base64
import json

import pytest
import stripe
from fastapi.testclient import TestClient
from jose import jwt

from plantnet.auth import TokenVerifier
from plantnet.config import project_id_from_service_key
from plantnet.errors import Unauthorized
from plantnet.models import Order, Payment
from tests.conftest import SELLER

PLANT = {
    "name": "Snake Plant",
    "category": "Indoor",
    "price": 15.5,
    "quantity": 4,
    "image": "https://img.example.com/snake.jpg",
    "description": "Hard to kill",
    "seller": SELLER,
}


@pytest.fixture
def raw_client(fastapi_app):
    # No auth override: requests go through the real token verifier
    with TestClient(fastapi_app) as c:
        yield c


def bearer(email="admin@example.com", secret="test-secret"):
    token = jwt.encode({"email": email, "sub": "uid-1"}, secret, algorithm="HS256")
    return {"Authorization": f"Bearer {token}"}


def test_root(client):
    response = client.get("/")

    assert response.status_code == 200
    assert response.json() == {"message": "PlantNet Server Running.."}


def test_plant_crud(client):
    created = client.post("/plants", json=PLANT)
    assert created.status_code == 201
    plant_id = created.json()["id"]

    assert client.get(f"/plants/{plant_id}").json()["price"] == 15.5
    assert [p["id"] for p in client.get("/plants").json()] == [plant_id]
    assert [p["id"] for p in client.get(f"/my-inventory/{SELLER['email']}").json()] == [plant_id]

    updated = client.patch(f"/plants/{plant_id}", json={"quantity": 9, "price": 12})
    assert updated.status_code == 200
    assert updated.json()["quantity"] == 9
    assert updated.json()["price"] == 12.0
    assert updated.json()["name"] == "Snake Plant"

    assert client.delete(f"/plants/{plant_id}").json() == {"deletedCount": 1}
    assert client.get(f"/plants/{plant_id}").status_code == 404


def test_plant_rejects_negative_quantity(client):
    response = client.post("/plants", json={**PLANT, "quantity": -1})

    assert response.status_code == 422


def test_user_upsert_keeps_role(client):
    created = client.post("/users/buyer@example.com", json={"name": "Buyer"})
    assert created.status_code == 200
    assert created.json()["role"] == "customer"

    client.patch("/users/update/buyer@example.com", json={"role": "seller"})
    again = client.post("/users/buyer@example.com", json={"address": "12 Fern Street"})

    assert again.json()["role"] == "seller"
    assert again.json()["address"] == "12 Fern Street"
    assert again.json()["name"] == "Buyer"
    assert client.get("/users/role/buyer@example.com").json() == {"role": "seller"}
    assert len(client.get("/users").json()) == 1


def test_update_user_clears_request_status(client):
    client.post("/users/buyer@example.com", json={"status": "Requested"})

    response = client.patch("/users/update/buyer@example.com", json={"role": "seller"})

    assert response.json()["status"] is None
    assert response.json()["role"] == "seller"


def test_unknown_user_is_not_found(client):
    assert client.get("/users/nobody@example.com").status_code == 404
    assert client.patch("/users/update/nobody@example.com", json={"role": "admin"}).status_code == 404


def test_admin_stats_counts_delivered_revenue(client, session_factory, make_plant):
    plant_id = make_plant()
    client.post("/users/buyer@example.com", json={})
    db = session_factory()
    db.add_all([
        Order(plant_id=plant_id, transaction_id="pi_1", customer="buyer@example.com",
              seller=SELLER, seller_email=SELLER["email"], quantity=2, price=10, status="Delivered"),
        Order(plant_id=plant_id, transaction_id="pi_2", customer="buyer@example.com",
              seller=SELLER, seller_email=SELLER["email"], quantity=1, price=7, status="Pending"),
    ])
    db.commit()
    db.close()

    response = client.get("/admin-stat")

    assert response.status_code == 200
    assert response.json() == {"totalUsers": 1, "totalPlants": 1, "totalOrders": 2, "revenue": 20.0}


def test_admin_stats_empty(client):
    assert client.get("/admin-stat").json() == {
        "totalUsers": 0, "totalPlants": 0, "totalOrders": 0, "revenue": 0.0,
    }


def test_order_listings(client, session_factory, make_plant):
    plant_id = make_plant()
    db = session_factory()
    db.add(Order(plant_id=plant_id, transaction_id="pi_1", customer="buyer@example.com",
                 seller=SELLER, seller_email=SELLER["email"], quantity=1, price=10))
    db.commit()
    db.close()

    assert len(client.get("/my-orders/buyer@example.com").json()) == 1
    assert len(client.get("/my-orders/other@example.com").json()) == 0
    assert len(client.get(f"/manage-orders/{SELLER['email']}").json()) == 1
    assert len(client.get("/admin-orders").json()) == 1


def test_order_status_update_unknown_order(client):
    assert client.patch("/orders/status/missing", json={"status": "Delivered"}).status_code == 404


def test_payment_reads(client, session_factory):
    db = session_factory()
    payment = Payment(session_id="sess_1", payment_intent_id="pi_1", customer="buyer@example.com",
                      amount=20, currency="usd", status="paid", items=[])
    db.add(payment)
    db.commit()
    payment_id = payment.id
    db.close()

    assert [p["payment_intent_id"] for p in client.get("/payments").json()] == ["pi_1"]
    assert len(client.get("/my-payments/buyer@example.com").json()) == 1
    assert client.get(f"/payment/{payment_id}").json()["amount"] == 20.0
    assert client.get("/payment/pi_1").json()["id"] == payment_id
    assert client.get("/payment/pi_missing").status_code == 404


def test_protected_route_requires_token(raw_client):
    response = raw_client.get("/users")

    assert response.status_code == 401
    assert response.json()["detail"] == "Unauthorized Access!"


def test_protected_route_rejects_bad_tokens(raw_client):
    assert raw_client.get("/users", headers=bearer(secret="wrong")).status_code == 401
    assert raw_client.get("/users", headers={"Authorization": "Basic abc"}).status_code == 401


def test_protected_route_accepts_valid_token(raw_client):
    response = raw_client.get("/admin-stat", headers=bearer())

    assert response.status_code == 200


def test_token_without_email_is_rejected(raw_client):
    token = jwt.encode({"sub": "uid-1"}, "test-secret", algorithm="HS256")

    response = raw_client.get("/users", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401


def test_verifier_checks_audience_without_issuer():
    verifier = TokenVerifier("test-secret", audience="plantnet-prod")
    token = jwt.encode({"email": "admin@example.com", "aud": "plantnet-prod"}, "test-secret", algorithm="HS256")
    foreign = jwt.encode({"email": "admin@example.com", "aud": "other"}, "test-secret", algorithm="HS256")

    assert verifier.verify(token) == "admin@example.com"
    with pytest.raises(Unauthorized):
        verifier.verify(foreign)


def test_service_key_project_id():
    encoded = base64.b64encode(json.dumps({"project_id": "plantnet-prod"}).encode()).decode()

    assert project_id_from_service_key(encoded) == "plantnet-prod"
    assert project_id_from_service_key(None) is None


def test_stripe_webhook_reconciles_session(client, session_factory, make_plant, mocker):
    plant_id = make_plant()
    mocker.patch("stripe.checkout.Session.create", return_value={"id": "sess_1", "url": "https://pay"})
    client.post("/create-checkout-session", json={
        "items": [{"plantId": plant_id, "name": "Monstera", "price": 10, "quantity": 1, "seller": SELLER}],
        "customer": {"email": "buyer@example.com"},
    })
    mocker.patch("stripe.Webhook.construct_event", return_value={
        "type": "checkout.session.completed",
        "data": {"object": {"id": "sess_1", "payment_status": "paid"}},
    })
    mocker.patch("stripe.checkout.Session.retrieve", return_value={
        "id": "sess_1", "payment_status": "paid", "payment_intent": "pi_1",
        "amount_total": 1000, "currency": "usd", "customer_email": "buyer@example.com",
    })

    response = client.post("/webhook", content="raw_payload", headers={"stripe-signature": "fake_sig"})

    assert response.status_code == 200
    assert response.json() == {"ok": True}
    db = session_factory()
    assert db.query(Payment).one().payment_intent_id == "pi_1"
    db.close()

    # The client redirect arriving after the webhook is a no-op
    redirect = client.post("/payment-success", json={"sessionId": "sess_1"})
    assert redirect.json()["alreadyProcessed"] is True


def test_stripe_webhook_ignores_unknown_session(client, mocker):
    mocker.patch("stripe.Webhook.construct_event", return_value={
        "type": "checkout.session.completed",
        "data": {"object": {"id": "sess_foreign", "payment_status": "paid"}},
    })
    mocker.patch("stripe.checkout.Session.retrieve", return_value={
        "id": "sess_foreign", "payment_status": "paid", "payment_intent": "pi_foreign", "amount_total": 500,
    })

    response = client.post("/webhook", headers={"stripe-signature": "test"})

    assert response.status_code == 200


def test_stripe_webhook_invalid_signature(client, mocker):
    mocker.patch(
        "stripe.Webhook.construct_event",
        side_effect=stripe.SignatureVerificationError("Invalid", "sig"),
    )

    response = client.post("/webhook", headers={"stripe-signature": "invalid_sig"})

    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid signature"
