"""
Inhalt des täglichen Check-in-QR-Codes.

Der Code enthält nur Referenzen, keine Berechtigung: beim Scannen am
Empfang läuft trotzdem der normale Check-in (Tagespass vor Mitgliedschaft).
"""

from __future__ import annotations

import json
from datetime import date
from typing import Any, Optional

from models.membership import Membership
from models.user import User
from utils.errors import InvalidQRCode

CHECKIN_QR_TYPE = "member_daily_checkin"


def build_checkin_payload(user: User, membership: Optional[Membership], today: Optional[date] = None) -> str:
    day = today or date.today()
    payload = {
        "type": CHECKIN_QR_TYPE,
        "userId": user.id,
        "membershipId": membership.membership_id if membership else None,
        "date": day.isoformat(),
    }
    return json.dumps(payload, separators=(",", ":"))


def parse_checkin_qr(raw: str, today: Optional[date] = None) -> dict[str, Any]:
    """
    Prüft einen gescannten Code und liefert das Payload-Dict.
    Akzeptiert nur Codes vom Typ `member_daily_checkin` mit heutigem Datum.
    """
    try:
        data = json.loads(raw)
    except (TypeError, ValueError):
        raise InvalidQRCode("Invalid QR code format")

    if not isinstance(data, dict) or data.get("type") != CHECKIN_QR_TYPE:
        raise InvalidQRCode("Invalid QR code type")

    day = today or date.today()
    if data.get("date") != day.isoformat():
        raise InvalidQRCode("QR code expired. Please generate a new one.")

    user_id = data.get("userId")
    if isinstance(user_id, bool) or not isinstance(user_id, int):
        raise InvalidQRCode("Invalid QR code format")
    return data
