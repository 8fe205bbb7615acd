# =============================================================================
# 📍 models/check_in.py
# -----------------------------------------------------------------------------
# Jeder Datensatz entspricht einem einzelnen Besuch (Zeit, Eingang, Methode).
# Check-ins werden nur angehängt, nie geändert.
# =============================================================================

from __future__ import annotations
from datetime import datetime, timezone

from sqlalchemy import String, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column

from database import Base


CHECK_IN_METHODS = ("qr", "manual")
DEFAULT_LOCATION = "Main Entrance"


class CheckIn(Base):
    __tablename__ = "check_ins"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)

    # Mitgliedscode oder "day-pass-{cardId}", wenn nur ein Tagespass existiert
    membership_id: Mapped[str] = mapped_column(String(60))

    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        index=True,
    )
    location: Mapped[str] = mapped_column(String(120), default=DEFAULT_LOCATION)
    method: Mapped[str] = mapped_column(String(10), default="qr")

    def __repr__(self) -> str:
        return f"<CheckIn(id={self.id}, user_id={self.user_id}, membership='{self.membership_id}')>"
