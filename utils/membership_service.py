"""
Mitgliedschaften anlegen, ändern und nach Zahlung aktivieren.
"""

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Any, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from models.membership import Membership
from utils.errors import MembershipNotFound

logger = logging.getLogger(__name__)

MEMBERSHIP_CODE_PREFIX = "WM"
DEFAULT_TERM_DAYS = {"basic": 30, "premium": 30, "vip": 30, "daily": 1}

UPDATABLE_FIELDS = ("plan_type", "status", "start_date", "end_date", "auto_renew")


def next_membership_code(db: Session) -> str:
    """Nächster freier Code. Manuell vergebene Codes werden übersprungen."""
    number = (db.scalar(select(func.max(Membership.id))) or 0) + 1
    code = f"{MEMBERSHIP_CODE_PREFIX}-{number:04d}"
    while get_membership_by_code(db, code) is not None:
        number += 1
        code = f"{MEMBERSHIP_CODE_PREFIX}-{number:04d}"
    return code


def get_membership_by_code(db: Session, membership_id: str) -> Optional[Membership]:
    return db.scalars(select(Membership).where(Membership.membership_id == membership_id)).first()


def create_membership(
    db: Session,
    user_id: int,
    plan_type: str,
    status: str = "active",
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    auto_renew: bool = True,
    membership_id: Optional[str] = None,
) -> Membership:
    start = start_date or date.today()
    end = end_date or start + timedelta(days=DEFAULT_TERM_DAYS.get(plan_type, 30))
    membership = Membership(
        user_id=user_id,
        membership_id=membership_id or next_membership_code(db),
        plan_type=plan_type,
        status=status,
        start_date=start,
        end_date=end,
        auto_renew=auto_renew,
    )
    db.add(membership)
    db.commit()
    db.refresh(membership)
    logger.info("Membership %s created for user %s (%s)", membership.membership_id, user_id, plan_type)
    return membership


def update_membership(db: Session, membership_id: str, changes: dict[str, Any]) -> Membership:
    membership = get_membership_by_code(db, membership_id)
    if membership is None:
        raise MembershipNotFound()
    for field in UPDATABLE_FIELDS:
        if field in changes and changes[field] is not None:
            setattr(membership, field, changes[field])
    db.commit()
    db.refresh(membership)
    return membership


def activate_after_payment(db: Session, membership_id: str, user_id: int) -> Optional[Membership]:
    """
    Erfolgreiche Zahlung -> Mitgliedschaft aktiv.
    Abgelaufene Laufzeiten beginnen ab heute neu.
    """
    membership = get_membership_by_code(db, membership_id)
    if membership is None:
        logger.warning("Membership %s nicht gefunden, keine Aktivierung", membership_id)
        return None
    if membership.user_id != user_id:
        logger.warning("Membership %s gehört nicht zu User %s, keine Aktivierung", membership_id, user_id)
        return None

    today = date.today()
    if membership.end_date < today:
        term = DEFAULT_TERM_DAYS.get(membership.plan_type, 30)
        membership.start_date = today
        membership.end_date = today + timedelta(days=term)
    membership.status = "active"
    db.commit()
    db.refresh(membership)
    logger.info("Membership %s activated after payment", membership.membership_id)
    return membership
