# =============================================================================
# 📍 routes/check_in.py
# -----------------------------------------------------------------------------
# Check-in des Mitglieds, eigene Besuchshistorie und persönlicher QR-Code.
# =============================================================================

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Response
from pydantic import Field
from sqlalchemy import select
from sqlalchemy.orm import Session

from database import get_db
from models.check_in import CheckIn
from models.user import User
from routes.auth import get_current_user, require_roles
from routes.serializers import CamelModel, serialize_check_in
from utils.check_in_service import CheckInOutcome, get_membership_for_user, perform_check_in
from utils.dates import start_of_today
from utils.errors import NoActiveEntitlement, NoRemainingPunches
from utils.qr_generator import generate_qr_png
from utils.qr_payload import build_checkin_payload

router = APIRouter(prefix="/api", tags=["Check-in"])
logger = logging.getLogger(__name__)


class CheckInRequest(CamelModel):
    location: Optional[str] = Field(None, max_length=120)


def check_in_response(outcome: CheckInOutcome) -> dict:
    body = {
        "checkIn": serialize_check_in(outcome.check_in),
        "message": outcome.message,
    }
    if outcome.day_pass_used:
        body["dayPassUsed"] = True
        body["remainingVisits"] = outcome.remaining_visits
        body["packageName"] = outcome.package_name
    else:
        body["membershipUsed"] = True
    return body


def run_check_in(db: Session, user: User, location: Optional[str], method: str) -> dict:
    """Resolver aufrufen und fachliche Fehler in 400 übersetzen."""
    try:
        outcome = perform_check_in(db, user, location=location, method=method)
    except (NoActiveEntitlement, NoRemainingPunches) as exc:
        raise HTTPException(status_code=400, detail=exc.message)
    return check_in_response(outcome)


def todays_check_ins(db: Session) -> list[dict]:
    check_ins = db.scalars(
        select(CheckIn)
        .where(CheckIn.timestamp >= start_of_today())
        .order_by(CheckIn.timestamp.desc(), CheckIn.id.desc())
    ).all()
    return [serialize_check_in(c) for c in check_ins]


# ---------------------------------------------------------------------------
# ✅ Check-in
# ---------------------------------------------------------------------------
@router.post("/check-in", status_code=201)
def check_in(
    payload: Optional[CheckInRequest] = None,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    location = payload.location if payload else None
    return run_check_in(db, user, location, method="qr")


@router.get("/check-ins")
def my_check_ins(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    check_ins = db.scalars(
        select(CheckIn)
        .where(CheckIn.user_id == user.id)
        .order_by(CheckIn.timestamp.desc(), CheckIn.id.desc())
    ).all()
    return [serialize_check_in(c) for c in check_ins]


@router.get("/check-ins/today")
def check_ins_today(
    staff: User = Depends(require_roles("admin", "staff")),
    db: Session = Depends(get_db),
):
    return todays_check_ins(db)


# ---------------------------------------------------------------------------
# 🧠 Persönlicher QR-Code (gilt nur für den heutigen Tag)
# ---------------------------------------------------------------------------
@router.get("/qr-code")
def my_qr_code(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    membership = get_membership_for_user(db, user.id)
    payload = build_checkin_payload(user, membership, today=date.today())
    png = generate_qr_png(payload, frame_text=user.full_name or user.username)
    return Response(
        content=png,
        media_type="image/png",
        headers={"Cache-Control": "no-store"},
    )
