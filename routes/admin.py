# =============================================================================
# 🛠️ routes/admin.py
# -----------------------------------------------------------------------------
# Admin-Dashboard: Mitglieder, Check-ins (inkl. manueller Check-in am
# Empfang), Mitgliedschaften, Zahlungen, Preise, Vorlagen, Hinweise, Statistik
# =============================================================================

import logging
from datetime import date, datetime
from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import Field
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from database import get_db
from models.check_in import CheckIn
from models.membership import Membership, MembershipPlan
from models.notification import Notification
from models.payment import Payment
from models.punch_card import PunchCard, PunchCardTemplate
from models.user import User
from routes.auth import require_roles
from routes.check_in import run_check_in, todays_check_ins
from routes.serializers import (
    CamelModel,
    serialize_check_in,
    serialize_membership,
    serialize_notification,
    serialize_payment,
    serialize_plan,
    serialize_template,
    serialize_user,
)
from utils.dates import as_utc, start_of_month, start_of_today, utcnow
from utils.errors import InvalidQRCode, MembershipNotFound
from utils.membership_service import create_membership, get_membership_by_code, update_membership
from utils.qr_payload import parse_checkin_qr

router = APIRouter(prefix="/api/admin", tags=["Admin"])
logger = logging.getLogger(__name__)

admin_only = require_roles("admin")
front_desk = require_roles("admin", "staff")

PlanType = Literal["basic", "premium", "vip", "daily"]
MembershipStatus = Literal["active", "inactive", "expired", "frozen"]
PaymentStatus = Literal["pending", "successful", "failed", "refunded"]
PaymentMethodType = Literal["credit_card", "debit_card", "cash", "check"]
NotificationType = Literal["announcement", "maintenance", "promotion", "alert"]


# ---------------------------------------------------------------------------
# 🧩 Request-Modelle
# ---------------------------------------------------------------------------
class ManualCheckIn(CamelModel):
    membership_id: Optional[str] = None
    user_id: Optional[int] = None
    qr_data: Optional[str] = None
    location: Optional[str] = Field(None, max_length=120)


class MembershipCreate(CamelModel):
    user_id: int
    plan_type: PlanType
    status: MembershipStatus = "active"
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    auto_renew: bool = True
    membership_id: Optional[str] = Field(None, max_length=40)


class MembershipUpdate(CamelModel):
    plan_type: Optional[PlanType] = None
    status: Optional[MembershipStatus] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    auto_renew: Optional[bool] = None


class OfflinePayment(CamelModel):
    user_id: int
    membership_id: Optional[str] = None
    amount: int = Field(..., gt=0)
    description: str = Field(..., min_length=1, max_length=255)
    method: PaymentMethodType = "cash"
    status: PaymentStatus = "successful"


class PlanPayload(CamelModel):
    plan_type: PlanType
    name: str = Field(..., min_length=1, max_length=100)
    monthly_price: int = Field(..., ge=0)
    description: str = ""
    features: list[str] = Field(default_factory=list)


class TemplatePayload(CamelModel):
    name: str = Field(..., min_length=1, max_length=120)
    total_punches: int = Field(..., gt=0, le=1000)
    price_per_punch: int = Field(..., ge=0)
    total_price: Optional[int] = Field(None, ge=0)
    description: Optional[str] = None
    is_active: bool = True
    sort_order: int = 0


class NotificationPayload(CamelModel):
    title: str = Field(..., min_length=1, max_length=200)
    message: str = Field(..., min_length=1)
    type: NotificationType = "announcement"
    is_active: bool = True
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None


# ---------------------------------------------------------------------------
# 👥 Mitglieder & Check-ins
# ---------------------------------------------------------------------------
@router.get("/members")
def list_members(admin: User = Depends(admin_only), db: Session = Depends(get_db)):
    users = db.scalars(select(User).order_by(User.created_at.desc(), User.id.desc())).all()
    members = []
    for user in users:
        latest = max(user.memberships, key=lambda m: (as_utc(m.created_at), m.id), default=None)
        members.append({**serialize_user(user), "membership": serialize_membership(latest)})
    return members


@router.get("/check-ins")
def list_check_ins(
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    admin: User = Depends(admin_only),
    db: Session = Depends(get_db),
):
    total = db.scalar(select(func.count(CheckIn.id))) or 0
    rows = db.execute(
        select(CheckIn, User)
        .join(User, User.id == CheckIn.user_id)
        .order_by(CheckIn.timestamp.desc(), CheckIn.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    ).all()
    data = [
        {**serialize_check_in(check_in), "userName": user.full_name, "username": user.username}
        for check_in, user in rows
    ]
    return {"data": data, "total": total, "page": page, "limit": limit}


@router.get("/check-ins/today")
def check_ins_today(staff: User = Depends(front_desk), db: Session = Depends(get_db)):
    return todays_check_ins(db)


@router.post("/manual-checkin", status_code=201)
def manual_check_in(
    payload: ManualCheckIn,
    staff: User = Depends(front_desk),
    db: Session = Depends(get_db),
):
    """
    Check-in am Empfang per QR-Scan, Mitgliedscode oder User-ID.
    Danach gilt dieselbe Reihenfolge wie beim Selbst-Check-in.
    """
    member: Optional[User] = None

    if payload.qr_data:
        try:
            data = parse_checkin_qr(payload.qr_data)
        except InvalidQRCode as exc:
            raise HTTPException(status_code=400, detail=exc.message)
        member = db.get(User, data["userId"])
    elif payload.membership_id:
        membership = get_membership_by_code(db, payload.membership_id)
        if not membership:
            raise HTTPException(status_code=404, detail=MembershipNotFound.message)
        member = db.get(User, membership.user_id)
    elif payload.user_id is not None:
        member = db.get(User, payload.user_id)
    else:
        raise HTTPException(status_code=400, detail="membershipId, userId or qrData is required")

    if not member:
        raise HTTPException(status_code=404, detail="Member not found")

    result = run_check_in(db, member, payload.location, method="manual")
    logger.info("Manueller Check-in für User %s durch %s", member.id, staff.username)
    return result


# ---------------------------------------------------------------------------
# 🎫 Mitgliedschaften & Zahlungen
# ---------------------------------------------------------------------------
@router.post("/memberships", status_code=201)
def admin_create_membership(
    payload: MembershipCreate,
    admin: User = Depends(admin_only),
    db: Session = Depends(get_db),
):
    if not db.get(User, payload.user_id):
        raise HTTPException(status_code=404, detail="Member not found")
    if payload.membership_id and get_membership_by_code(db, payload.membership_id):
        raise HTTPException(status_code=400, detail="Membership ID already exists")

    membership = create_membership(
        db,
        payload.user_id,
        payload.plan_type,
        status=payload.status,
        start_date=payload.start_date,
        end_date=payload.end_date,
        auto_renew=payload.auto_renew,
        membership_id=payload.membership_id,
    )
    return serialize_membership(membership)


@router.patch("/memberships/{membership_id}")
def admin_update_membership(
    membership_id: str,
    payload: MembershipUpdate,
    admin: User = Depends(admin_only),
    db: Session = Depends(get_db),
):
    try:
        membership = update_membership(db, membership_id, payload.model_dump(exclude_unset=True))
    except MembershipNotFound as exc:
        raise HTTPException(status_code=404, detail=exc.message)
    logger.info("Membership %s geändert durch %s", membership_id, admin.username)
    return serialize_membership(membership)


@router.post("/payments", status_code=201)
def admin_record_payment(
    payload: OfflinePayment,
    admin: User = Depends(admin_only),
    db: Session = Depends(get_db),
):
    if not db.get(User, payload.user_id):
        raise HTTPException(status_code=404, detail="Member not found")

    payment = Payment(
        user_id=payload.user_id,
        membership_id=payload.membership_id or "day-pass",
        amount=payload.amount,
        description=payload.description,
        status=payload.status,
        method=payload.method,
    )
    db.add(payment)
    db.commit()
    db.refresh(payment)
    return serialize_payment(payment)


# ---------------------------------------------------------------------------
# 💶 Tarife
# ---------------------------------------------------------------------------
@router.get("/membership-plans")
def admin_list_plans(admin: User = Depends(admin_only), db: Session = Depends(get_db)):
    plans = db.scalars(select(MembershipPlan).order_by(MembershipPlan.monthly_price.asc())).all()
    return [serialize_plan(p) for p in plans]


@router.post("/membership-plans", status_code=201)
def admin_upsert_plan(
    payload: PlanPayload,
    admin: User = Depends(admin_only),
    db: Session = Depends(get_db),
):
    """Ein Tarif pro `planType`: vorhandener Eintrag wird überschrieben."""
    plan = db.scalars(select(MembershipPlan).where(MembershipPlan.plan_type == payload.plan_type)).first()
    if plan is None:
        plan = MembershipPlan(plan_type=payload.plan_type)
        db.add(plan)
    plan.name = payload.name
    plan.monthly_price = payload.monthly_price
    plan.description = payload.description
    plan.features = list(payload.features)
    db.commit()
    db.refresh(plan)
    return serialize_plan(plan)


@router.put("/membership-plans/{plan_id}")
def admin_update_plan(
    plan_id: int,
    payload: PlanPayload,
    admin: User = Depends(admin_only),
    db: Session = Depends(get_db),
):
    plan = db.get(MembershipPlan, plan_id)
    if not plan:
        raise HTTPException(status_code=404, detail="Plan not found")
    clash = db.scalars(
        select(MembershipPlan).where(MembershipPlan.plan_type == payload.plan_type, MembershipPlan.id != plan_id)
    ).first()
    if clash:
        raise HTTPException(status_code=400, detail="A plan for this plan type already exists")

    plan.plan_type = payload.plan_type
    plan.name = payload.name
    plan.monthly_price = payload.monthly_price
    plan.description = payload.description
    plan.features = list(payload.features)
    db.commit()
    db.refresh(plan)
    return serialize_plan(plan)


@router.delete("/membership-plans/{plan_id}")
def admin_delete_plan(plan_id: int, admin: User = Depends(admin_only), db: Session = Depends(get_db)):
    plan = db.get(MembershipPlan, plan_id)
    if not plan:
        raise HTTPException(status_code=404, detail="Plan not found")
    db.delete(plan)
    db.commit()
    return {"message": "Plan deleted"}


# ---------------------------------------------------------------------------
# 🎟️ Punch-Card-Vorlagen
# ---------------------------------------------------------------------------
def _apply_template(template: PunchCardTemplate, payload: TemplatePayload) -> None:
    template.name = payload.name
    template.total_punches = payload.total_punches
    template.price_per_punch = payload.price_per_punch
    template.total_price = (
        payload.total_price
        if payload.total_price is not None
        else payload.total_punches * payload.price_per_punch
    )
    template.description = payload.description
    template.is_active = payload.is_active
    template.sort_order = payload.sort_order


@router.get("/punch-card-templates")
def admin_list_templates(admin: User = Depends(admin_only), db: Session = Depends(get_db)):
    templates = db.scalars(
        select(PunchCardTemplate).order_by(PunchCardTemplate.sort_order.asc(), PunchCardTemplate.id.asc())
    ).all()
    return [serialize_template(t) for t in templates]


@router.post("/punch-card-templates", status_code=201)
def admin_create_template(
    payload: TemplatePayload,
    admin: User = Depends(admin_only),
    db: Session = Depends(get_db),
):
    template = PunchCardTemplate()
    _apply_template(template, payload)
    db.add(template)
    db.commit()
    db.refresh(template)
    return serialize_template(template)


@router.put("/punch-card-templates/{template_id}")
def admin_update_template(
    template_id: int,
    payload: TemplatePayload,
    admin: User = Depends(admin_only),
    db: Session = Depends(get_db),
):
    template = db.get(PunchCardTemplate, template_id)
    if not template:
        raise HTTPException(status_code=404, detail="Template not found")
    _apply_template(template, payload)
    db.commit()
    db.refresh(template)
    return serialize_template(template)


@router.delete("/punch-card-templates/{template_id}")
def admin_delete_template(template_id: int, admin: User = Depends(admin_only), db: Session = Depends(get_db)):
    template = db.get(PunchCardTemplate, template_id)
    if not template:
        raise HTTPException(status_code=404, detail="Template not found")
    db.delete(template)
    db.commit()
    return {"message": "Template deleted"}


# ---------------------------------------------------------------------------
# 📢 Hinweise
# ---------------------------------------------------------------------------
def _apply_notification(notification: Notification, payload: NotificationPayload) -> None:
    notification.title = payload.title
    notification.message = payload.message
    notification.type = payload.type
    notification.is_active = payload.is_active
    notification.start_date = as_utc(payload.start_date) or utcnow()
    notification.end_date = as_utc(payload.end_date)


@router.get("/notifications")
def admin_list_notifications(admin: User = Depends(admin_only), db: Session = Depends(get_db)):
    notifications = db.scalars(
        select(Notification).order_by(Notification.created_at.desc(), Notification.id.desc())
    ).all()
    return [serialize_notification(n) for n in notifications]


@router.post("/notifications", status_code=201)
def admin_create_notification(
    payload: NotificationPayload,
    admin: User = Depends(admin_only),
    db: Session = Depends(get_db),
):
    notification = Notification()
    _apply_notification(notification, payload)
    db.add(notification)
    db.commit()
    db.refresh(notification)
    return serialize_notification(notification)


@router.put("/notifications/{notification_id}")
def admin_update_notification(
    notification_id: int,
    payload: NotificationPayload,
    admin: User = Depends(admin_only),
    db: Session = Depends(get_db),
):
    notification = db.get(Notification, notification_id)
    if not notification:
        raise HTTPException(status_code=404, detail="Notification not found")
    _apply_notification(notification, payload)
    db.commit()
    db.refresh(notification)
    return serialize_notification(notification)


@router.delete("/notifications/{notification_id}")
def admin_delete_notification(
    notification_id: int,
    admin: User = Depends(admin_only),
    db: Session = Depends(get_db),
):
    notification = db.get(Notification, notification_id)
    if not notification:
        raise HTTPException(status_code=404, detail="Notification not found")
    db.delete(notification)
    db.commit()
    return {"message": "Notification deleted"}


# ---------------------------------------------------------------------------
# 📊 Statistik
# ---------------------------------------------------------------------------
@router.get("/analytics")
def analytics(admin: User = Depends(admin_only), db: Session = Depends(get_db)):
    total_members = db.scalar(select(func.count(User.id)).where(User.role == "member")) or 0
    active_memberships = db.scalar(
        select(func.count(Membership.id)).where(Membership.status == "active")
    ) or 0
    today_check_ins = db.scalar(
        select(func.count(CheckIn.id)).where(CheckIn.timestamp >= start_of_today())
    ) or 0
    monthly_revenue = db.scalar(
        select(func.coalesce(func.sum(Payment.amount), 0)).where(
            Payment.status == "successful",
            Payment.transaction_date >= start_of_month(),
        )
    ) or 0
    active_punch_cards = db.scalar(
        select(func.count(PunchCard.id)).where(PunchCard.status == "active", PunchCard.remaining_punches > 0)
    ) or 0
    distribution = db.execute(
        select(Membership.plan_type, func.count(Membership.id))
        .where(Membership.status == "active")
        .group_by(Membership.plan_type)
    ).all()

    return {
        "totalMembers": total_members,
        "activeMemberships": active_memberships,
        "todayCheckIns": today_check_ins,
        "monthlyRevenue": int(monthly_revenue),
        "activePunchCards": active_punch_cards,
        "planDistribution": {plan_type: count for plan_type, count in distribution},
    }
