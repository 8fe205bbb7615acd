# =============================================================================
# 🎟️ models/punch_card.py
# -----------------------------------------------------------------------------
# Punch Cards (Tagespass-Pakete mit N Besuchen) und die Vorlagen, aus denen
# der Admin die kaufbaren Pakete pflegt.
# =============================================================================

from __future__ import annotations
from typing import Optional, TYPE_CHECKING
from datetime import datetime, timezone

from sqlalchemy import String, Integer, Boolean, DateTime, Text, ForeignKey, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from database import Base

if TYPE_CHECKING:
    from models.user import User


# "expired" ist deklariert, wird aber von keinem Codepfad gesetzt.
PUNCH_CARD_STATUSES = ("active", "expired", "exhausted")


class PunchCard(Base):
    """
    Gekauftes Paket mit `total_punches` Besuchen.

    Der Restbestand wird ausschließlich über
    `utils.punch_card_ledger.use_punch_card_entry` verringert.
    """
    __tablename__ = "punch_cards"
    __table_args__ = (
        CheckConstraint(
            "remaining_punches >= 0 AND remaining_punches <= total_punches",
            name="ck_punch_cards_remaining_range",
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)

    # 🔹 Paketname, z. B. "10-Day Pass Package"
    name: Mapped[str] = mapped_column(String(120))

    total_punches: Mapped[int] = mapped_column(Integer)
    remaining_punches: Mapped[int] = mapped_column(Integer)

    # 🔹 Preise in Cent
    price_per_punch: Mapped[int] = mapped_column(Integer)
    total_price: Mapped[int] = mapped_column(Integer)

    status: Mapped[str] = mapped_column(String(20), default="active")
    purchased_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        index=True,
    )

    user: Mapped["User"] = relationship("User", back_populates="punch_cards")

    @property
    def is_usable(self) -> bool:
        return self.status == "active" and self.remaining_punches > 0

    def __repr__(self) -> str:
        return (
            f"<PunchCard(id={self.id}, user_id={self.user_id}, "
            f"remaining={self.remaining_punches}/{self.total_punches}, status='{self.status}')>"
        )


class PunchCardTemplate(Base):
    __tablename__ = "punch_card_templates"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(120))
    total_punches: Mapped[int] = mapped_column(Integer)
    price_per_punch: Mapped[int] = mapped_column(Integer)
    total_price: Mapped[int] = mapped_column(Integer)
    description: Mapped[Optional[str]] = mapped_column(Text)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    sort_order: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc)
    )

    def __repr__(self):
        return f"<PunchCardTemplate(name='{self.name}', visits={self.total_punches}, active={self.is_active})>"
