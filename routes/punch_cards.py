# =============================================================================
# 🎟️ routes/punch_cards.py
# -----------------------------------------------------------------------------
# Tagespass-Pakete: Liste, Kaufoptionen, Kauf und Eintritt verbuchen.
# =============================================================================

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import Field
from sqlalchemy import select
from sqlalchemy.orm import Session

from database import get_db
from models.punch_card import PunchCard, PunchCardTemplate
from models.user import User
from routes.auth import get_current_user
from routes.serializers import CamelModel, serialize_punch_card, serialize_template
from utils.errors import NoRemainingPunches, PunchCardNotFound
from utils.punch_card_ledger import (
    get_punch_cards_for_user,
    purchase_from_template,
    purchase_punch_card,
    use_punch_card_entry,
)

router = APIRouter(prefix="/api/punch-cards", tags=["Punch Cards"])
logger = logging.getLogger(__name__)

# Angebot, solange der Admin keine Vorlage angelegt hat (Preise in Cent)
DEFAULT_OPTIONS = [
    {"name": "5-Day Pass Package", "totalPunches": 5, "pricePerPunch": 2400, "totalPrice": 12000,
     "description": "5 visits, valid for any day"},
    {"name": "10-Day Pass Package", "totalPunches": 10, "pricePerPunch": 2200, "totalPrice": 22000,
     "description": "10 visits, save 8% per visit"},
    {"name": "20-Day Pass Package", "totalPunches": 20, "pricePerPunch": 2000, "totalPrice": 40000,
     "description": "20 visits, best value per visit"},
]


class PunchCardPurchase(CamelModel):
    """Entweder `templateId` oder die Paketfelder direkt."""
    template_id: Optional[int] = None
    name: Optional[str] = Field(None, min_length=1, max_length=120)
    total_punches: Optional[int] = Field(None, gt=0, le=1000)
    price_per_punch: Optional[int] = Field(None, ge=0)
    total_price: Optional[int] = Field(None, ge=0)


@router.get("")
def my_punch_cards(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return [serialize_punch_card(c) for c in get_punch_cards_for_user(db, user.id)]


@router.get("/options")
def punch_card_options(db: Session = Depends(get_db)):
    templates = db.scalars(
        select(PunchCardTemplate)
        .where(PunchCardTemplate.is_active.is_(True))
        .order_by(PunchCardTemplate.sort_order.asc(), PunchCardTemplate.id.asc())
    ).all()
    if not templates:
        return [dict(option, id=None) for option in DEFAULT_OPTIONS]
    return [serialize_template(t) for t in templates]


@router.post("", status_code=201)
def buy_punch_card(
    payload: PunchCardPurchase,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if payload.template_id is not None:
        template = db.get(PunchCardTemplate, payload.template_id)
        if not template or not template.is_active:
            raise HTTPException(status_code=404, detail="Punch card template not found")
        card = purchase_from_template(db, user, template)
        return serialize_punch_card(card)

    if payload.name is None or payload.total_punches is None or payload.price_per_punch is None:
        raise HTTPException(
            status_code=400,
            detail="Either templateId or name, totalPunches and pricePerPunch are required",
        )

    card = purchase_punch_card(
        db,
        user,
        name=payload.name,
        total_punches=payload.total_punches,
        price_per_punch=payload.price_per_punch,
        total_price=payload.total_price,
    )
    return serialize_punch_card(card)


@router.post("/{card_id}/use")
def use_punch_card(
    card_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    card = db.get(PunchCard, card_id)
    if not card:
        raise HTTPException(status_code=404, detail=PunchCardNotFound.message)
    if card.user_id != user.id:
        raise HTTPException(status_code=403, detail="Access denied")

    try:
        card = use_punch_card_entry(db, card_id)
    except PunchCardNotFound as exc:
        raise HTTPException(status_code=404, detail=exc.message)
    except NoRemainingPunches as exc:
        raise HTTPException(status_code=400, detail=exc.message)
    return serialize_punch_card(card)
