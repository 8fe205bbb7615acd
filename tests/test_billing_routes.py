from __future__ import annotations

from datetime import date, timedelta

import pytest
from sqlalchemy import select

from helpers.accounts import make_user
from models.membership import Membership
from models.payment import Payment
from models.user import User
from utils import stripe_gateway
from utils.errors import PaymentProviderError


class FakeStripe:
    """Ersetzt die Stripe-Aufrufe in utils.stripe_gateway."""

    def __init__(self):
        self.customers = []
        self.detached = []
        self.intents = {}
        self.event = None

    def create_customer(self, email, name, user_id):
        self.customers.append(email)
        return f"cus_{user_id}"

    def create_setup_intent(self, customer_id):
        return f"seti_secret_{customer_id}"

    def retrieve_payment_method(self, pm_id):
        return {"id": pm_id, "last4": "4242", "brand": "visa", "exp_month": 12, "exp_year": 2030}

    def detach_payment_method(self, pm_id):
        self.detached.append(pm_id)

    def create_payment_intent(self, amount_cents, customer_id, pm_id, description=None, metadata=None):
        intent = {"id": f"pi_{len(self.intents) + 1}", "client_secret": "pi_secret", "status": "succeeded",
                  "amount": amount_cents, "payment_method": pm_id}
        self.intents[intent["id"]] = intent
        return intent

    def retrieve_payment_intent(self, intent_id):
        if intent_id not in self.intents:
            raise PaymentProviderError("No such payment_intent")
        return self.intents[intent_id]

    def construct_webhook_event(self, payload, signature):
        if signature != "valid":
            raise PaymentProviderError("Invalid signature")
        return self.event


@pytest.fixture
def fake_stripe(monkeypatch):
    fake = FakeStripe()
    for name in (
        "create_customer", "create_setup_intent", "retrieve_payment_method", "detach_payment_method",
        "create_payment_intent", "retrieve_payment_intent", "construct_webhook_event",
    ):
        monkeypatch.setattr(stripe_gateway, name, getattr(fake, name))
    return fake


def test_customer_is_created_once(client, session_local, member, fake_stripe):
    first = client.post("/api/stripe/customer")
    second = client.post("/api/stripe/customer")

    assert first.json() == {"customerId": f"cus_{member}"}
    assert second.json() == first.json()
    assert len(fake_stripe.customers) == 1
    with session_local() as db:
        assert db.get(User, member).stripe_customer_id == f"cus_{member}"


def test_setup_intent(client, member, fake_stripe):
    response = client.post("/api/stripe/setup-intent")
    assert response.json() == {"clientSecret": f"seti_secret_cus_{member}"}


def test_payment_method_lifecycle(client, member, fake_stripe):
    first = client.post("/api/payment-methods", json={"paymentMethodId": "pm_one"})
    second = client.post("/api/payment-methods", json={"paymentMethodId": "pm_two"})

    assert first.status_code == 201
    assert first.json()["isDefault"] is True
    assert first.json()["cardLast4"] == "4242"
    assert second.json()["isDefault"] is False

    duplicate = client.post("/api/payment-methods", json={"paymentMethodId": "pm_one"})
    assert duplicate.status_code == 400

    promoted = client.put(f"/api/payment-methods/{second.json()['id']}/default")
    assert promoted.json()["isDefault"] is True

    methods = client.get("/api/payment-methods").json()
    assert [m["stripePaymentMethodId"] for m in methods if m["isDefault"]] == ["pm_two"]

    assert client.delete(f"/api/payment-methods/{second.json()['id']}").status_code == 200
    assert fake_stripe.detached == ["pm_two"]
    remaining = client.get("/api/payment-methods").json()
    assert len(remaining) == 1 and remaining[0]["isDefault"] is True

    assert client.delete("/api/payment-methods/999").status_code == 404


def test_payment_converts_amount_to_cents_and_activates_membership(client, session_local, member, fake_stripe):
    with session_local() as db:
        db.add(Membership(
            user_id=member, membership_id="WM-0009", plan_type="basic", status="inactive",
            start_date=date.today() - timedelta(days=60), end_date=date.today() - timedelta(days=30),
        ))
        db.commit()

    intent = client.post("/api/create-payment-intent", json={
        "amount": 49.0, "description": "Basic membership", "paymentMethodId": "pm_one", "membershipId": "WM-0009",
    }).json()
    assert intent["status"] == "succeeded"
    assert fake_stripe.intents[intent["paymentIntentId"]]["amount"] == 4900

    confirm = client.post("/api/confirm-payment", json={
        "paymentIntentId": intent["paymentIntentId"], "membershipId": "WM-0009", "description": "Basic membership",
    })
    assert confirm.status_code == 201
    body = confirm.json()
    assert body["payment"]["amount"] == 4900
    assert body["payment"]["status"] == "successful"
    assert body["membership"]["status"] == "active"
    assert body["membership"]["startDate"] == date.today().isoformat()

    # zweites Bestätigen bucht nichts doppelt
    client.post("/api/confirm-payment", json={"paymentIntentId": intent["paymentIntentId"]})
    with session_local() as db:
        assert db.query(Payment).count() == 1

    assert len(client.get("/api/payments").json()) == 1


def test_confirm_rejects_foreign_membership(client, session_local, member, fake_stripe):
    other = make_user(session_local, "fremd")
    with session_local() as db:
        db.add(Membership(
            user_id=other, membership_id="WM-0077", plan_type="basic", status="inactive",
            start_date=date.today(), end_date=date.today() + timedelta(days=30),
        ))
        db.commit()
    fake_stripe.intents["pi_paid"] = {"id": "pi_paid", "status": "succeeded", "amount": 4900}

    response = client.post("/api/confirm-payment", json={"paymentIntentId": "pi_paid", "membershipId": "WM-0077"})
    assert response.status_code == 403

    unknown = client.post("/api/confirm-payment", json={"paymentIntentId": "pi_paid", "membershipId": "WM-0404"})
    assert unknown.status_code == 404

    with session_local() as db:
        assert db.query(Payment).count() == 0
        assert db.scalars(select(Membership).where(Membership.membership_id == "WM-0077")).one().status == "inactive"


def test_confirm_rejects_unsuccessful_intent(client, member, fake_stripe):
    fake_stripe.intents["pi_open"] = {"id": "pi_open", "status": "requires_action", "amount": 100}
    response = client.post("/api/confirm-payment", json={"paymentIntentId": "pi_open"})
    assert response.status_code == 400


def test_provider_error_is_502(client, member, fake_stripe):
    response = client.post("/api/confirm-payment", json={"paymentIntentId": "pi_missing"})
    assert response.status_code == 502
    assert response.json()["detail"] == "No such payment_intent"


def test_webhook_marks_payment_failed_and_refunded(client, session_local, fake_stripe):
    with session_local() as db:
        user = User(username="wh", email="wh@example.com", password_hash="x", first_name="W", last_name="H")
        db.add(user)
        db.flush()
        db.add(Payment(
            user_id=user.id, amount=1500, description="Day pass", status="successful",
            method="credit_card", stripe_payment_intent_id="pi_hook",
        ))
        db.commit()

    bad = client.post("/api/stripe/webhook", content=b"{}", headers={"stripe-signature": "nope"})
    assert bad.status_code == 400

    fake_stripe.event = {"type": "payment_intent.payment_failed", "data": {"object": {"id": "pi_hook"}}}
    assert client.post("/api/stripe/webhook", content=b"{}", headers={"stripe-signature": "valid"}).status_code == 200
    with session_local() as db:
        assert db.query(Payment).one().status == "failed"

    fake_stripe.event = {"type": "charge.refunded", "data": {"object": {"id": "ch_1", "payment_intent": "pi_hook"}}}
    client.post("/api/stripe/webhook", content=b"{}", headers={"stripe-signature": "valid"})
    with session_local() as db:
        assert db.query(Payment).one().status == "refunded"

    fake_stripe.event = {"type": "customer.created", "data": {"object": {"id": "cus_x"}}}
    ignored = client.post("/api/stripe/webhook", content=b"{}", headers={"stripe-signature": "valid"})
    assert ignored.json() == {"received": True}
