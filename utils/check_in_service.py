# =============================================================================
# 📍 utils/check_in_service.py
# -----------------------------------------------------------------------------
# Check-in-Resolver: entscheidet, womit ein Besuch bezahlt wird, und legt den
# Check-in an.
#
# Reihenfolge:
#   1. Aktiver Tagespass (Punch Card mit Restbestand), ältester Kauf zuerst
#   2. Aktive Mitgliedschaft
#   3. Sonst -> NoActiveEntitlement, es wird nichts geschrieben
# =============================================================================

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Union

from sqlalchemy import select
from sqlalchemy.orm import Session

from models.check_in import CheckIn, DEFAULT_LOCATION
from models.membership import Membership
from models.punch_card import PunchCard
from models.user import User
from utils.dates import as_utc
from utils.errors import NoActiveEntitlement
from utils.punch_card_ledger import get_punch_cards_for_user, use_punch_card_entry

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# 🧩 Finanzierungsquelle (Tagged Variant)
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class MembershipFunding:
    membership: Membership


@dataclass(frozen=True)
class PunchCardFunding:
    card: PunchCard


FundingSource = Union[MembershipFunding, PunchCardFunding]


@dataclass(frozen=True)
class CheckInOutcome:
    check_in: CheckIn
    source: FundingSource
    remaining_visits: Optional[int] = None
    package_name: Optional[str] = None

    @property
    def day_pass_used(self) -> bool:
        return isinstance(self.source, PunchCardFunding)

    @property
    def message(self) -> str:
        if self.day_pass_used:
            return f"Check-in successful! Day pass used. {self.remaining_visits} visits remaining."
        return "Check-in successful!"


def get_membership_for_user(db: Session, user_id: int) -> Optional[Membership]:
    """Neueste Mitgliedschaft des Benutzers (eine pro Benutzer per Konvention)."""
    return db.scalars(
        select(Membership)
        .where(Membership.user_id == user_id)
        .order_by(Membership.created_at.desc(), Membership.id.desc())
        .limit(1)
    ).first()


def active_day_passes(cards: Iterable[PunchCard]) -> list[PunchCard]:
    """Nutzbare Karten, nach Kaufzeitpunkt sortiert (FIFO, id als Tie-Break)."""
    usable = [card for card in cards if card.status == "active" and card.remaining_punches > 0]
    return sorted(usable, key=lambda card: (as_utc(card.purchased_at), card.id))


def resolve_funding_source(
    membership: Optional[Membership],
    cards: Iterable[PunchCard],
) -> FundingSource:
    day_passes = active_day_passes(cards)
    has_active_membership = membership is not None and membership.status == "active"

    if not has_active_membership and not day_passes:
        raise NoActiveEntitlement()
    if day_passes:
        return PunchCardFunding(card=day_passes[0])
    return MembershipFunding(membership=membership)


def perform_check_in(
    db: Session,
    user: User,
    location: Optional[str] = None,
    method: str = "qr",
) -> CheckInOutcome:
    """
    Lädt Mitgliedschaft und Karten, wählt die Quelle und verbucht den Besuch.
    Alles läuft in einer Transaktion; die Karten sind dabei gesperrt.
    """
    try:
        membership = get_membership_for_user(db, user.id)
        cards = get_punch_cards_for_user(db, user.id, lock=True)
        source = resolve_funding_source(membership, cards)

        remaining_visits: Optional[int] = None
        package_name: Optional[str] = None

        if isinstance(source, PunchCardFunding):
            card = use_punch_card_entry(db, source.card.id, commit=False)
            membership_ref = membership.membership_id if membership else f"day-pass-{card.id}"
            remaining_visits = card.remaining_punches
            package_name = card.name
        else:
            membership_ref = source.membership.membership_id

        check_in = CheckIn(
            user_id=user.id,
            membership_id=membership_ref,
            location=location or DEFAULT_LOCATION,
            method=method,
        )
        db.add(check_in)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(check_in)
    logger.info(
        "User %s checked in at %s via %s (%s)",
        user.id, check_in.location, method,
        "day pass" if remaining_visits is not None else "membership",
    )
    return CheckInOutcome(
        check_in=check_in,
        source=source,
        remaining_visits=remaining_visits,
        package_name=package_name,
    )
