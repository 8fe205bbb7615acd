# =============================================================================
# 💳 routes/billing.py
# -----------------------------------------------------------------------------
# Stripe-Integration für Thermal Club
# Funktionen:
#   - Stripe-Kunde + SetupIntent (Karte hinzufügen)
#   - Gespeicherte Zahlungsmethoden verwalten
#   - PaymentIntent erstellen und Zahlung bestätigen
#   - Webhook für fehlgeschlagene / erstattete Zahlungen
# =============================================================================

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import Field
from sqlalchemy import select
from sqlalchemy.orm import Session

from database import get_db
from models.payment import Payment, PaymentMethod
from models.user import User
from routes.auth import get_current_user
from routes.serializers import (
    CamelModel,
    serialize_membership,
    serialize_payment,
    serialize_payment_method,
)
from utils import stripe_gateway
from utils.errors import PaymentProviderError
from utils.membership_service import activate_after_payment, get_membership_by_code

router = APIRouter(prefix="/api", tags=["Billing"])
logger = logging.getLogger(__name__)


class PaymentMethodCreate(CamelModel):
    payment_method_id: str = Field(..., min_length=3)


class PaymentIntentCreate(CamelModel):
    # Betrag in Währungseinheiten (z. B. 49.00), gespeichert wird in Cent
    amount: float = Field(..., gt=0)
    description: str = Field("Thermal Club payment", max_length=255)
    payment_method_id: str = Field(..., min_length=3)
    membership_id: Optional[str] = None


class PaymentConfirm(CamelModel):
    payment_intent_id: str = Field(..., min_length=3)
    membership_id: Optional[str] = None
    description: str = Field("Thermal Club payment", max_length=255)


def _provider_error(exc: PaymentProviderError) -> HTTPException:
    return HTTPException(status_code=502, detail=exc.message)


def _ensure_customer(db: Session, user: User) -> str:
    if user.stripe_customer_id:
        return user.stripe_customer_id
    customer_id = stripe_gateway.create_customer(user.email, user.full_name, user.id)
    user.stripe_customer_id = customer_id
    db.commit()
    return customer_id


def _own_payment_method(db: Session, user: User, pm_id: int) -> PaymentMethod:
    pm = db.get(PaymentMethod, pm_id)
    if not pm or pm.user_id != user.id:
        raise HTTPException(status_code=404, detail="Payment method not found")
    return pm


# =============================================================================
# 👤 Kunde & SetupIntent
# =============================================================================
@router.post("/stripe/customer")
def stripe_customer(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    try:
        customer_id = _ensure_customer(db, user)
    except PaymentProviderError as exc:
        raise _provider_error(exc)
    return {"customerId": customer_id}


@router.post("/stripe/setup-intent")
def stripe_setup_intent(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    try:
        customer_id = _ensure_customer(db, user)
        client_secret = stripe_gateway.create_setup_intent(customer_id)
    except PaymentProviderError as exc:
        raise _provider_error(exc)
    return {"clientSecret": client_secret}


# =============================================================================
# 💳 Zahlungsmethoden
# =============================================================================
@router.get("/payment-methods")
def list_payment_methods(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    methods = db.scalars(
        select(PaymentMethod)
        .where(PaymentMethod.user_id == user.id)
        .order_by(PaymentMethod.is_default.desc(), PaymentMethod.created_at.desc())
    ).all()
    return [serialize_payment_method(pm) for pm in methods]


@router.post("/payment-methods", status_code=201)
def add_payment_method(
    payload: PaymentMethodCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Speichert eine per SetupIntent bestätigte Karte. Die erste Karte wird Standard."""
    duplicate = db.scalars(
        select(PaymentMethod).where(PaymentMethod.stripe_payment_method_id == payload.payment_method_id)
    ).first()
    if duplicate:
        raise HTTPException(status_code=400, detail="Payment method already saved")

    try:
        card = stripe_gateway.retrieve_payment_method(payload.payment_method_id)
    except PaymentProviderError as exc:
        raise _provider_error(exc)

    has_methods = db.scalars(select(PaymentMethod.id).where(PaymentMethod.user_id == user.id)).first()
    pm = PaymentMethod(
        user_id=user.id,
        stripe_payment_method_id=card["id"],
        card_last4=card["last4"] or "",
        card_brand=card["brand"] or "card",
        card_exp_month=card["exp_month"] or 0,
        card_exp_year=card["exp_year"] or 0,
        is_default=has_methods is None,
    )
    db.add(pm)
    db.commit()
    db.refresh(pm)
    logger.info("Zahlungsmethode %s für User %s gespeichert", pm.id, user.id)
    return serialize_payment_method(pm)


@router.put("/payment-methods/{pm_id}/default")
def set_default_payment_method(
    pm_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    target = _own_payment_method(db, user, pm_id)
    for pm in db.scalars(select(PaymentMethod).where(PaymentMethod.user_id == user.id)):
        pm.is_default = pm.id == target.id
    db.commit()
    db.refresh(target)
    return serialize_payment_method(target)


@router.delete("/payment-methods/{pm_id}")
def delete_payment_method(
    pm_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    pm = _own_payment_method(db, user, pm_id)
    try:
        stripe_gateway.detach_payment_method(pm.stripe_payment_method_id)
    except PaymentProviderError as exc:
        raise _provider_error(exc)

    was_default = pm.is_default
    db.delete(pm)
    db.flush()

    # Standardkarte entfernt -> neueste verbleibende übernimmt
    if was_default:
        successor = db.scalars(
            select(PaymentMethod)
            .where(PaymentMethod.user_id == user.id)
            .order_by(PaymentMethod.created_at.desc(), PaymentMethod.id.desc())
        ).first()
        if successor:
            successor.is_default = True
    db.commit()
    return {"message": "Payment method removed"}


# =============================================================================
# 💶 Zahlung
# =============================================================================
@router.post("/create-payment-intent")
def create_payment_intent(
    payload: PaymentIntentCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    amount_cents = int(round(payload.amount * 100))
    metadata = {"userId": str(user.id)}
    if payload.membership_id:
        metadata["membershipId"] = payload.membership_id

    try:
        customer_id = _ensure_customer(db, user)
        intent = stripe_gateway.create_payment_intent(
            amount_cents,
            customer_id,
            payload.payment_method_id,
            description=payload.description,
            metadata=metadata,
        )
    except PaymentProviderError as exc:
        raise _provider_error(exc)

    return {
        "clientSecret": intent["client_secret"],
        "paymentIntentId": intent["id"],
        "status": intent["status"],
    }


@router.post("/confirm-payment", status_code=201)
def confirm_payment(
    payload: PaymentConfirm,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Bucht eine erfolgreiche Zahlung. Mehrfaches Bestätigen desselben
    PaymentIntents legt keine zweite Zahlung an.
    """
    try:
        intent = stripe_gateway.retrieve_payment_intent(payload.payment_intent_id)
    except PaymentProviderError as exc:
        raise _provider_error(exc)

    if intent["status"] != "succeeded":
        raise HTTPException(status_code=400, detail="Payment has not succeeded")

    if payload.membership_id:
        target = get_membership_by_code(db, payload.membership_id)
        if target is None:
            raise HTTPException(status_code=404, detail="Membership not found")
        if target.user_id != user.id:
            raise HTTPException(status_code=403, detail="Access denied")

    payment = db.scalars(
        select(Payment).where(Payment.stripe_payment_intent_id == intent["id"])
    ).first()
    if payment is None:
        payment = Payment(
            user_id=user.id,
            membership_id=payload.membership_id or "day-pass",
            amount=intent["amount"],
            description=payload.description,
            status="successful",
            method="credit_card",
            stripe_payment_intent_id=intent["id"],
            stripe_payment_method_id=intent.get("payment_method"),
        )
        db.add(payment)
        db.commit()
        db.refresh(payment)
        logger.info("Zahlung %s (%s Cent) für User %s gebucht", payment.id, payment.amount, user.id)
    elif payment.user_id != user.id:
        raise HTTPException(status_code=403, detail="Access denied")

    membership = None
    if payload.membership_id:
        membership = activate_after_payment(db, payload.membership_id, user.id)

    return {
        "payment": serialize_payment(payment),
        "membership": serialize_membership(membership),
    }


# =============================================================================
# 🪝 Webhook
# =============================================================================
WEBHOOK_STATUS = {
    "payment_intent.payment_failed": "failed",
    "charge.refunded": "refunded",
}


@router.post("/stripe/webhook")
async def stripe_webhook(request: Request, db: Session = Depends(get_db)):
    payload = await request.body()
    signature = request.headers.get("stripe-signature")

    try:
        event = stripe_gateway.construct_webhook_event(payload, signature)
    except PaymentProviderError as exc:
        raise HTTPException(status_code=400, detail=exc.message)

    event_type = event["type"]
    new_status = WEBHOOK_STATUS.get(event_type)
    if new_status is None:
        logger.info("Stripe-Event %s ignoriert", event_type)
        return {"received": True}

    obj = event["data"]["object"]
    intent_id = obj["id"] if event_type.startswith("payment_intent.") else obj.get("payment_intent")

    payment = None
    if intent_id:
        payment = db.scalars(select(Payment).where(Payment.stripe_payment_intent_id == intent_id)).first()
    if payment:
        payment.status = new_status
        db.commit()
        logger.info("Zahlung %s -> %s (%s)", payment.id, new_status, event_type)
    else:
        logger.info("Keine Zahlung zu PaymentIntent %s gefunden (%s)", intent_id, event_type)
    return {"received": True}
