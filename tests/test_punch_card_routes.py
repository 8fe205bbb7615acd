from __future__ import annotations

from models.punch_card import PunchCard, PunchCardTemplate
from helpers.accounts import login, make_user


def test_options_fall_back_to_builtin_packages(client):
    response = client.get("/api/punch-cards/options")

    assert response.status_code == 200
    options = response.json()
    assert [o["totalPunches"] for o in options] == [5, 10, 20]
    assert [o["totalPrice"] for o in options] == [12000, 22000, 40000]


def test_options_use_active_templates_in_order(client, session_local):
    with session_local() as db:
        db.add_all([
            PunchCardTemplate(name="Big", total_punches=20, price_per_punch=1900, total_price=38000, sort_order=2),
            PunchCardTemplate(name="Small", total_punches=3, price_per_punch=2500, total_price=7500, sort_order=1),
            PunchCardTemplate(name="Old", total_punches=8, price_per_punch=2000, total_price=16000,
                              sort_order=0, is_active=False),
        ])
        db.commit()

    names = [o["name"] for o in client.get("/api/punch-cards/options").json()]
    assert names == ["Small", "Big"]


def test_buy_with_explicit_fields(client, member):
    response = client.post(
        "/api/punch-cards",
        json={"name": "10-Day Pass Package", "totalPunches": 10, "pricePerPunch": 2200},
    )

    assert response.status_code == 201
    card = response.json()
    assert card["remainingPunches"] == 10
    assert card["totalPrice"] == 22000
    assert card["status"] == "active"
    assert card["userId"] == member


def test_buy_from_template(client, session_local, member):
    with session_local() as db:
        template = PunchCardTemplate(name="Trial", total_punches=2, price_per_punch=2000, total_price=3500)
        db.add(template)
        db.commit()
        template_id = template.id

    response = client.post("/api/punch-cards", json={"templateId": template_id})

    assert response.status_code == 201
    assert response.json()["totalPrice"] == 3500


def test_buy_requires_fields(client, member):
    assert client.post("/api/punch-cards", json={"name": "Pack"}).status_code == 400
    assert client.post("/api/punch-cards", json={"name": "Pack", "totalPunches": 0, "pricePerPunch": 1}).status_code == 400


def test_list_own_cards(client, member):
    client.post("/api/punch-cards", json={"name": "A", "totalPunches": 2, "pricePerPunch": 100})
    client.post("/api/punch-cards", json={"name": "B", "totalPunches": 3, "pricePerPunch": 100})

    cards = client.get("/api/punch-cards").json()
    assert [c["name"] for c in cards] == ["A", "B"]


def test_use_until_exhausted(client, member):
    card_id = client.post(
        "/api/punch-cards", json={"name": "Duo", "totalPunches": 2, "pricePerPunch": 100}
    ).json()["id"]

    first = client.post(f"/api/punch-cards/{card_id}/use")
    second = client.post(f"/api/punch-cards/{card_id}/use")
    third = client.post(f"/api/punch-cards/{card_id}/use")

    assert first.status_code == 200 and first.json()["remainingPunches"] == 1
    assert second.json()["remainingPunches"] == 0
    assert second.json()["status"] == "exhausted"
    assert third.status_code == 400
    assert third.json()["detail"] == "No remaining punches on this card"


def test_use_unknown_card(client, member):
    assert client.post("/api/punch-cards/4242/use").status_code == 404


def test_use_foreign_card_is_forbidden(client, session_local):
    owner_id = make_user(session_local, "owner")
    with session_local() as db:
        card = PunchCard(
            user_id=owner_id, name="Owner pack", total_punches=5, remaining_punches=5,
            price_per_punch=100, total_price=500,
        )
        db.add(card)
        db.commit()
        card_id = card.id

    make_user(session_local, "intruder")
    login(client, "intruder")

    response = client.post(f"/api/punch-cards/{card_id}/use")

    assert response.status_code == 403
    with session_local() as db:
        assert db.get(PunchCard, card_id).remaining_punches == 5
