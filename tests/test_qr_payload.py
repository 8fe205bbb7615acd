from __future__ import annotations

import json
from datetime import date

import pytest

from utils.errors import InvalidQRCode
from utils.qr_generator import PNG_SIGNATURE, generate_qr_png
from utils.qr_payload import CHECKIN_QR_TYPE, parse_checkin_qr

TODAY = date(2026, 5, 4)


def _raw(**overrides):
    data = {"type": CHECKIN_QR_TYPE, "userId": 12, "membershipId": "WM-0012", "date": TODAY.isoformat()}
    data.update(overrides)
    return json.dumps(data)


def test_valid_code_is_accepted():
    data = parse_checkin_qr(_raw(), today=TODAY)
    assert data["userId"] == 12
    assert data["membershipId"] == "WM-0012"


@pytest.mark.parametrize(
    "raw, message",
    [
        ("not json", "Invalid QR code format"),
        ("[1, 2]", "Invalid QR code type"),
        (_raw(type="vcard"), "Invalid QR code type"),
        (_raw(date="2026-05-03"), "QR code expired. Please generate a new one."),
        (_raw(userId="12"), "Invalid QR code format"),
        (_raw(userId=True), "Invalid QR code format"),
    ],
)
def test_invalid_codes(raw, message):
    with pytest.raises(InvalidQRCode) as exc:
        parse_checkin_qr(raw, today=TODAY)
    assert exc.value.message == message


def test_generator_returns_png_bytes():
    png = generate_qr_png(_raw(), size=200, module_style="rounded", frame_text="Mila Tester")
    assert png.startswith(PNG_SIGNATURE)
