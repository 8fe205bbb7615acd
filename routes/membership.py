# =============================================================================
# 🎫 routes/membership.py
# -----------------------------------------------------------------------------
# Mitgliederbereich: eigene Mitgliedschaft, Tarife, Zahlungen, Hinweise
# =============================================================================

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from database import get_db
from models.membership import MembershipPlan
from models.notification import Notification
from models.payment import Payment
from models.user import User
from routes.auth import get_current_user
from routes.serializers import (
    serialize_membership,
    serialize_notification,
    serialize_payment,
    serialize_plan,
)
from utils.check_in_service import get_membership_for_user
from utils.dates import utcnow

router = APIRouter(prefix="/api", tags=["Membership"])


@router.get("/membership")
def my_membership(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    membership = get_membership_for_user(db, user.id)
    if not membership:
        raise HTTPException(status_code=404, detail="No membership found")
    return serialize_membership(membership)


@router.get("/membership-plans")
def list_plans(db: Session = Depends(get_db)):
    """Öffentliche Preisliste, günstigster Tarif zuerst."""
    plans = db.scalars(select(MembershipPlan).order_by(MembershipPlan.monthly_price.asc())).all()
    return [serialize_plan(p) for p in plans]


@router.get("/payments")
def my_payments(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    payments = db.scalars(
        select(Payment)
        .where(Payment.user_id == user.id)
        .order_by(Payment.transaction_date.desc(), Payment.id.desc())
    ).all()
    return [serialize_payment(p) for p in payments]


@router.get("/notifications/active")
def active_notifications(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    now = utcnow()
    notifications = db.scalars(
        select(Notification)
        .where(
            Notification.is_active.is_(True),
            Notification.start_date <= now,
            or_(Notification.end_date.is_(None), Notification.end_date >= now),
        )
        .order_by(Notification.created_at.desc())
    ).all()
    return [serialize_notification(n) for n in notifications]
