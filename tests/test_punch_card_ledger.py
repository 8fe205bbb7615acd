from __future__ import annotations

import threading

import pytest
from sqlalchemy import create_engine, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker

from database import Base
from models.punch_card import PunchCard, PunchCardTemplate
from models.user import User
from utils.errors import NoRemainingPunches, PunchCardNotFound
from utils.punch_card_ledger import (
    get_punch_cards_for_user,
    purchase_from_template,
    purchase_punch_card,
    use_punch_card_entry,
)


def _user(db, name: str = "anna") -> User:
    user = User(
        username=name,
        email=f"{name}@example.com",
        password_hash="hash",
        first_name=name,
        last_name="Test",
    )
    db.add(user)
    db.commit()
    return user


def test_purchase_creates_full_active_card(db):
    user = _user(db)
    card = purchase_punch_card(db, user, name="5-Day Pass Package", total_punches=5, price_per_punch=2400)

    assert card.remaining_punches == 5
    assert card.total_punches == 5
    assert card.total_price == 12000
    assert card.status == "active"


def test_purchase_from_template_copies_prices(db):
    user = _user(db)
    template = PunchCardTemplate(
        name="10-Day Pass Package", total_punches=10, price_per_punch=2200, total_price=21000,
    )
    db.add(template)
    db.commit()

    card = purchase_from_template(db, user, template)
    assert card.name == "10-Day Pass Package"
    assert card.total_price == 21000
    assert card.remaining_punches == 10


def test_use_decrements_by_exactly_one(db):
    user = _user(db)
    card = purchase_punch_card(db, user, name="Pack", total_punches=3, price_per_punch=100)

    updated = use_punch_card_entry(db, card.id)
    assert updated.remaining_punches == 2
    assert updated.status == "active"


def test_last_visit_exhausts_card(db):
    user = _user(db)
    card = purchase_punch_card(db, user, name="Single", total_punches=1, price_per_punch=100)

    updated = use_punch_card_entry(db, card.id)
    assert updated.remaining_punches == 0
    assert updated.status == "exhausted"


def test_exhausted_card_is_rejected_and_unchanged(db):
    user = _user(db)
    card = purchase_punch_card(db, user, name="Single", total_punches=1, price_per_punch=100)
    use_punch_card_entry(db, card.id)

    with pytest.raises(NoRemainingPunches):
        use_punch_card_entry(db, card.id)

    db.expire_all()
    stored = db.get(PunchCard, card.id)
    assert stored.remaining_punches == 0
    assert stored.status == "exhausted"


def test_unknown_card_raises_not_found(db):
    with pytest.raises(PunchCardNotFound):
        use_punch_card_entry(db, 999)


def test_non_active_status_is_preserved(db):
    user = _user(db)
    card = purchase_punch_card(db, user, name="Pack", total_punches=3, price_per_punch=100)
    card.status = "expired"
    db.commit()

    updated = use_punch_card_entry(db, card.id)
    assert updated.remaining_punches == 2
    assert updated.status == "expired"


def test_remaining_range_is_enforced_by_database(db):
    user = _user(db)
    db.add(PunchCard(
        user_id=user.id, name="Broken", total_punches=2, remaining_punches=3,
        price_per_punch=100, total_price=200,
    ))
    with pytest.raises(IntegrityError):
        db.commit()
    db.rollback()


def test_cards_are_listed_oldest_first(db):
    user = _user(db)
    first = purchase_punch_card(db, user, name="First", total_punches=2, price_per_punch=100)
    second = purchase_punch_card(db, user, name="Second", total_punches=2, price_per_punch=100)

    cards = get_punch_cards_for_user(db, user.id)
    assert [c.id for c in cards] == [first.id, second.id]


# ---------------------------------------------------------------------------
# Nebenläufigkeit (dateibasierte SQLite, echte parallele Verbindungen)
# ---------------------------------------------------------------------------
@pytest.fixture
def file_session_local(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'ledger.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


def test_concurrent_consumes_never_overdraw(file_session_local):
    visits = 8
    attempts = 14

    with file_session_local() as setup:
        user = _user(setup)
        card_id = purchase_punch_card(setup, user, name="Pack", total_punches=visits, price_per_punch=100).id

    successes = []
    rejections = []
    errors = []
    barrier = threading.Barrier(attempts)

    def consume():
        session = file_session_local()
        try:
            barrier.wait()
            use_punch_card_entry(session, card_id)
            successes.append(1)
        except NoRemainingPunches:
            rejections.append(1)
        except Exception as exc:  # pragma: no cover - fails the test below
            errors.append(exc)
        finally:
            session.close()

    threads = [threading.Thread(target=consume) for _ in range(attempts)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    assert len(successes) == visits
    assert len(rejections) == attempts - visits

    with file_session_local() as check:
        card = check.get(PunchCard, card_id)
        assert card.remaining_punches == 0
        assert card.status == "exhausted"


def test_decrement_decided_on_stale_read_is_rejected(file_session_local):
    with file_session_local() as setup:
        user = _user(setup)
        card_id = purchase_punch_card(setup, user, name="Single", total_punches=1, price_per_punch=100).id

    stale = file_session_local()
    fresh = file_session_local()
    try:
        # stale sieht noch einen Besuch
        seen = stale.scalars(select(PunchCard).where(PunchCard.id == card_id)).one()
        assert seen.remaining_punches == 1

        use_punch_card_entry(fresh, card_id)

        # Identity-Map von `stale` zeigt weiterhin 1, die DB hat 0
        assert stale.get(PunchCard, card_id).remaining_punches == 1
        with pytest.raises(NoRemainingPunches):
            use_punch_card_entry(stale, card_id)
    finally:
        stale.close()
        fresh.close()

    with file_session_local() as check:
        card = check.get(PunchCard, card_id)
        assert card.remaining_punches == 0
