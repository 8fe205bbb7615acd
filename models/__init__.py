# =============================================================================
# 📦 models/__init__.py
# -----------------------------------------------------------------------------
# Minimal & korrekt für Alembic
# =============================================================================

from .user import User
from .membership import Membership, MembershipPlan
from .punch_card import PunchCard, PunchCardTemplate
from .check_in import CheckIn
from .payment import Payment, PaymentMethod
from .notification import Notification
from .password_reset import PasswordResetToken

__all__ = [
    "User",
    "Membership",
    "MembershipPlan",
    "PunchCard",
    "PunchCardTemplate",
    "CheckIn",
    "Payment",
    "PaymentMethod",
    "Notification",
    "PasswordResetToken",
]
