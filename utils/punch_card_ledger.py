# =============================================================================
# 🎟️ utils/punch_card_ledger.py
# -----------------------------------------------------------------------------
# Einzige Stelle, an der der Restbestand einer Punch Card verändert wird.
# - Kauf legt eine Karte mit vollem Bestand an
# - "Eintritt verbuchen" zieht genau einen Besuch ab (atomar)
# =============================================================================

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import case, select, update
from sqlalchemy.orm import Session

from models.punch_card import PunchCard, PunchCardTemplate
from models.user import User
from utils.errors import NoRemainingPunches, PunchCardNotFound

logger = logging.getLogger(__name__)

_cards = PunchCard.__table__


def get_punch_cards_for_user(db: Session, user_id: int, lock: bool = False) -> list[PunchCard]:
    """Alle Karten eines Benutzers, älteste zuerst."""
    stmt = (
        select(PunchCard)
        .where(PunchCard.user_id == user_id)
        .order_by(PunchCard.purchased_at.asc(), PunchCard.id.asc())
    )
    if lock:
        stmt = stmt.with_for_update()
    return list(db.scalars(stmt).all())


def purchase_punch_card(
    db: Session,
    user: User,
    name: str,
    total_punches: int,
    price_per_punch: int,
    total_price: Optional[int] = None,
) -> PunchCard:
    """Legt eine neue, volle Karte an (Status `active`)."""
    card = PunchCard(
        user_id=user.id,
        name=name,
        total_punches=total_punches,
        remaining_punches=total_punches,
        price_per_punch=price_per_punch,
        total_price=total_price if total_price is not None else total_punches * price_per_punch,
        status="active",
    )
    db.add(card)
    db.commit()
    db.refresh(card)
    logger.info("Punch card %s (%s) purchased by user %s", card.id, card.name, user.id)
    return card


def purchase_from_template(db: Session, user: User, template: PunchCardTemplate) -> PunchCard:
    return purchase_punch_card(
        db,
        user,
        name=template.name,
        total_punches=template.total_punches,
        price_per_punch=template.price_per_punch,
        total_price=template.total_price,
    )


def use_punch_card_entry(db: Session, card_id: int, commit: bool = True) -> PunchCard:
    """
    Verbucht genau einen Besuch auf der Karte `card_id`.

    Das Abziehen ist ein bedingtes UPDATE (`remaining_punches > 0`), damit
    parallele Check-ins den Bestand nie unter 0 drücken. Erreicht der
    Bestand 0, wird der Status im selben Statement auf `exhausted` gesetzt;
    jeder andere Status bleibt unverändert.

    Mit `commit=False` bleibt die Transaktion offen (Check-in-Resolver).
    """
    card = db.get(PunchCard, card_id)
    if card is None:
        raise PunchCardNotFound()

    # status zuerst: MySQL wertet SET-Ausdrücke von links nach rechts aus
    stmt = (
        update(_cards)
        .where(_cards.c.id == card_id, _cards.c.remaining_punches > 0)
        .ordered_values(
            (
                _cards.c.status,
                case((_cards.c.remaining_punches == 1, "exhausted"), else_=_cards.c.status),
            ),
            (_cards.c.remaining_punches, _cards.c.remaining_punches - 1),
        )
    )
    result = db.execute(stmt)

    if result.rowcount == 0:
        if commit:
            db.rollback()
        logger.info("Punch card %s has no remaining punches", card_id)
        raise NoRemainingPunches()

    if commit:
        db.commit()
    else:
        db.flush()
    db.refresh(card)

    logger.info(
        "Punch card %s used, %s/%s visits left (status=%s)",
        card.id, card.remaining_punches, card.total_punches, card.status,
    )
    return card
