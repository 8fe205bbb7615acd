# =============================================================================
# 🎫 models/membership.py
# -----------------------------------------------------------------------------
# Mitgliedschaften (eine aktive pro Benutzer, per Konvention) und die
# Preisliste der Tarife (Basic, Premium, VIP, Day Pass).
# =============================================================================

from __future__ import annotations
from typing import List, TYPE_CHECKING
from datetime import date, datetime, timezone

from sqlalchemy import String, Integer, Boolean, Date, DateTime, Text, ForeignKey, JSON
from sqlalchemy.orm import Mapped, mapped_column, relationship

from database import Base

if TYPE_CHECKING:
    from models.user import User


PLAN_TYPES = ("basic", "premium", "vip", "daily")
MEMBERSHIP_STATUSES = ("active", "inactive", "expired", "frozen")


class Membership(Base):
    """
    Abo eines Benutzers.
    Statuswechsel kommen von außen (Admin, erfolgreiche Zahlung);
    es gibt keinen automatischen Ablauf-Job.
    """
    __tablename__ = "memberships"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)

    # 🔹 Öffentlicher Mitgliedscode (steht auch im QR-Code), z. B. WM-0001
    membership_id: Mapped[str] = mapped_column(String(40), unique=True, index=True)

    plan_type: Mapped[str] = mapped_column(String(20))
    status: Mapped[str] = mapped_column(String(20), default="active")
    start_date: Mapped[date] = mapped_column(Date)
    end_date: Mapped[date] = mapped_column(Date)
    auto_renew: Mapped[bool] = mapped_column(Boolean, default=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc)
    )

    user: Mapped["User"] = relationship("User", back_populates="memberships")

    @property
    def is_active(self) -> bool:
        return self.status == "active"

    def __repr__(self) -> str:
        return (
            f"<Membership(membership_id='{self.membership_id}', user_id={self.user_id}, "
            f"plan='{self.plan_type}', status='{self.status}')>"
        )


class MembershipPlan(Base):
    """Preisliste, ein Eintrag pro Tariftyp."""
    __tablename__ = "membership_plans"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    plan_type: Mapped[str] = mapped_column(String(20), unique=True)
    name: Mapped[str] = mapped_column(String(100))

    # 🔹 Monatspreis in Cent
    monthly_price: Mapped[int] = mapped_column(Integer)
    description: Mapped[str] = mapped_column(Text, default="")
    features: Mapped[List[str]] = mapped_column(JSON, default=list)

    def __repr__(self):
        return (
            f"<MembershipPlan(type='{self.plan_type}', name='{self.name}', "
            f"price={self.monthly_price / 100:.2f})>"
        )
