# =============================================================================
# 🧾 routes/serializers.py
# -----------------------------------------------------------------------------
# ORM-Objekte -> JSON-Dicts (camelCase, Beträge in Cent, Zeiten ISO-8601 UTC)
# =============================================================================

from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from models.check_in import CheckIn
from models.membership import Membership, MembershipPlan
from models.notification import Notification
from models.payment import Payment, PaymentMethod
from models.punch_card import PunchCard, PunchCardTemplate
from models.user import User
from utils.dates import isoformat


class CamelModel(BaseModel):
    """Request-Bodies: Felder snake_case in Python, camelCase im JSON."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def serialize_user(user: User) -> dict:
    # password_hash bleibt immer draußen
    return {
        "id": user.id,
        "username": user.username,
        "email": user.email,
        "firstName": user.first_name,
        "lastName": user.last_name,
        "phone": user.phone,
        "role": user.role,
        "stripeCustomerId": user.stripe_customer_id,
        "createdAt": isoformat(user.created_at),
    }


def serialize_membership(membership: Optional[Membership]) -> Optional[dict]:
    if membership is None:
        return None
    return {
        "id": membership.id,
        "userId": membership.user_id,
        "membershipId": membership.membership_id,
        "planType": membership.plan_type,
        "status": membership.status,
        "startDate": membership.start_date.isoformat(),
        "endDate": membership.end_date.isoformat(),
        "autoRenew": membership.auto_renew,
        "createdAt": isoformat(membership.created_at),
    }


def serialize_plan(plan: MembershipPlan) -> dict:
    return {
        "id": plan.id,
        "planType": plan.plan_type,
        "name": plan.name,
        "monthlyPrice": plan.monthly_price,
        "description": plan.description,
        "features": list(plan.features or []),
    }


def serialize_punch_card(card: PunchCard) -> dict:
    return {
        "id": card.id,
        "userId": card.user_id,
        "name": card.name,
        "totalPunches": card.total_punches,
        "remainingPunches": card.remaining_punches,
        "pricePerPunch": card.price_per_punch,
        "totalPrice": card.total_price,
        "status": card.status,
        "purchasedAt": isoformat(card.purchased_at),
    }


def serialize_template(template: PunchCardTemplate) -> dict:
    return {
        "id": template.id,
        "name": template.name,
        "totalPunches": template.total_punches,
        "pricePerPunch": template.price_per_punch,
        "totalPrice": template.total_price,
        "description": template.description,
        "isActive": template.is_active,
        "sortOrder": template.sort_order,
    }


def serialize_check_in(check_in: CheckIn) -> dict:
    return {
        "id": check_in.id,
        "userId": check_in.user_id,
        "membershipId": check_in.membership_id,
        "timestamp": isoformat(check_in.timestamp),
        "location": check_in.location,
        "method": check_in.method,
    }


def serialize_payment(payment: Payment) -> dict:
    return {
        "id": payment.id,
        "userId": payment.user_id,
        "membershipId": payment.membership_id,
        "amount": payment.amount,
        "description": payment.description,
        "status": payment.status,
        "method": payment.method,
        "stripePaymentIntentId": payment.stripe_payment_intent_id,
        "transactionDate": isoformat(payment.transaction_date),
    }


def serialize_payment_method(pm: PaymentMethod) -> dict:
    return {
        "id": pm.id,
        "stripePaymentMethodId": pm.stripe_payment_method_id,
        "cardLast4": pm.card_last4,
        "cardBrand": pm.card_brand,
        "cardExpMonth": pm.card_exp_month,
        "cardExpYear": pm.card_exp_year,
        "isDefault": pm.is_default,
    }


def serialize_notification(notification: Notification) -> dict:
    return {
        "id": notification.id,
        "title": notification.title,
        "message": notification.message,
        "type": notification.type,
        "isActive": notification.is_active,
        "startDate": isoformat(notification.start_date),
        "endDate": isoformat(notification.end_date),
        "createdAt": isoformat(notification.created_at),
    }
