# =============================================================================
# 💳 utils/stripe_gateway.py
# -----------------------------------------------------------------------------
# Dünne Schicht um das Stripe-SDK:
#   - Kunden anlegen / wiederverwenden
#   - SetupIntent für neue Karten
#   - PaymentMethods abrufen / entfernen
#   - PaymentIntents erstellen und prüfen
#   - Webhook-Signatur verifizieren
# Stripe-Fehler werden als PaymentProviderError weitergereicht.
# =============================================================================

import os
import logging
from typing import Any, Optional

import stripe
from dotenv import load_dotenv

from utils.errors import PaymentProviderError

load_dotenv()

logger = logging.getLogger(__name__)

stripe.api_key = os.getenv("STRIPE_SECRET_KEY")
STRIPE_WEBHOOK_SECRET = os.getenv("STRIPE_WEBHOOK_SECRET", "")
STRIPE_CURRENCY = os.getenv("STRIPE_CURRENCY", "usd")


def _wrap(action: str, exc: stripe.StripeError) -> PaymentProviderError:
    logger.warning("Stripe %s fehlgeschlagen: %s", action, exc)
    return PaymentProviderError(getattr(exc, "user_message", None) or str(exc) or PaymentProviderError.message)


# ---------------------------------------------------------------------------
# 👤 Kunden
# ---------------------------------------------------------------------------
def create_customer(email: str, name: str, user_id: int) -> str:
    try:
        customer = stripe.Customer.create(
            email=email,
            name=name,
            metadata={"userId": str(user_id)},
        )
    except stripe.StripeError as exc:
        raise _wrap("Customer.create", exc) from exc
    logger.info("Stripe-Kunde %s für User %s angelegt", customer.id, user_id)
    return customer.id


def create_setup_intent(customer_id: str) -> str:
    try:
        intent = stripe.SetupIntent.create(customer=customer_id, payment_method_types=["card"])
    except stripe.StripeError as exc:
        raise _wrap("SetupIntent.create", exc) from exc
    return intent.client_secret


# ---------------------------------------------------------------------------
# 💳 Zahlungsmethoden
# ---------------------------------------------------------------------------
def retrieve_payment_method(payment_method_id: str) -> dict[str, Any]:
    """Liefert die Kartendaten, die lokal gespeichert werden."""
    try:
        pm = stripe.PaymentMethod.retrieve(payment_method_id)
    except stripe.StripeError as exc:
        raise _wrap("PaymentMethod.retrieve", exc) from exc

    card = pm.card
    return {
        "id": pm.id,
        "last4": card.last4 if card else None,
        "brand": card.brand if card else None,
        "exp_month": card.exp_month if card else None,
        "exp_year": card.exp_year if card else None,
    }


def detach_payment_method(payment_method_id: str) -> None:
    try:
        stripe.PaymentMethod.detach(payment_method_id)
    except stripe.StripeError as exc:
        raise _wrap("PaymentMethod.detach", exc) from exc


# ---------------------------------------------------------------------------
# 💶 Zahlungen
# ---------------------------------------------------------------------------
def create_payment_intent(
    amount_cents: int,
    customer_id: str,
    payment_method_id: str,
    description: Optional[str] = None,
    metadata: Optional[dict[str, str]] = None,
) -> dict[str, Any]:
    try:
        intent = stripe.PaymentIntent.create(
            amount=amount_cents,
            currency=STRIPE_CURRENCY,
            customer=customer_id,
            payment_method=payment_method_id,
            payment_method_types=["card"],
            confirm=True,
            description=description,
            metadata=metadata or {},
        )
    except stripe.StripeError as exc:
        raise _wrap("PaymentIntent.create", exc) from exc

    logger.info("PaymentIntent %s erstellt (%s, %s Cent)", intent.id, intent.status, amount_cents)
    return {"id": intent.id, "client_secret": intent.client_secret, "status": intent.status}


def retrieve_payment_intent(payment_intent_id: str) -> dict[str, Any]:
    try:
        intent = stripe.PaymentIntent.retrieve(payment_intent_id)
    except stripe.StripeError as exc:
        raise _wrap("PaymentIntent.retrieve", exc) from exc
    return {
        "id": intent.id,
        "status": intent.status,
        "amount": intent.amount,
        "payment_method": intent.payment_method,
    }


# ---------------------------------------------------------------------------
# 🪝 Webhook
# ---------------------------------------------------------------------------
def construct_webhook_event(payload: bytes, signature: Optional[str]) -> Any:
    """Verifiziert die Stripe-Signatur. Ungültige Events -> PaymentProviderError."""
    if not STRIPE_WEBHOOK_SECRET:
        raise PaymentProviderError("Webhook secret not configured")
    try:
        return stripe.Webhook.construct_event(payload, signature or "", STRIPE_WEBHOOK_SECRET)
    except ValueError as exc:
        raise PaymentProviderError("Invalid payload") from exc
    except stripe.SignatureVerificationError as exc:
        raise PaymentProviderError("Invalid signature") from exc
