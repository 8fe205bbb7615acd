from __future__ import annotations


class MembershipError(Exception):
    """Basis für fachliche Fehler; `message` geht unverändert an den Client."""

    message = "Request could not be processed"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.message)
        self.message = message or self.message


class PunchCardNotFound(MembershipError):
    message = "Punch card not found"


class NoRemainingPunches(MembershipError):
    message = "No remaining punches on this card"


class NoActiveEntitlement(MembershipError):
    message = (
        "No active membership or day pass found. "
        "Please purchase a membership or day pass to check in."
    )


class MembershipNotFound(MembershipError):
    message = "Membership not found"


class InvalidQRCode(MembershipError):
    message = "Invalid QR code"


class PaymentProviderError(MembershipError):
    message = "Payment provider request failed"
