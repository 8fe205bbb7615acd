# =============================================================================
# 👤 models/user.py
# Benutzer-Modell (moderne SQLAlchemy 2.0 Architektur)
# =============================================================================

from __future__ import annotations
from typing import Optional, List, TYPE_CHECKING
from datetime import datetime, timezone

from sqlalchemy import String, DateTime
from sqlalchemy.orm import Mapped, mapped_column, relationship

from database import Base

if TYPE_CHECKING:
    from models.membership import Membership
    from models.punch_card import PunchCard
    from models.payment import Payment, PaymentMethod


USER_ROLES = ("member", "admin", "staff")


class User(Base):
    __tablename__ = "users"

    # =========================================================================
    # 🧩 Basisinformationen
    # =========================================================================
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(100), unique=True, index=True)
    email: Mapped[str] = mapped_column(String(200), unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(String(255))
    first_name: Mapped[str] = mapped_column(String(100))
    last_name: Mapped[str] = mapped_column(String(100))
    phone: Mapped[Optional[str]] = mapped_column(String(32))

    # =========================================================================
    # 🔐 Rolle & Zahlungsanbieter
    # =========================================================================
    role: Mapped[str] = mapped_column(String(20), default="member")
    stripe_customer_id: Mapped[Optional[str]] = mapped_column(String(64), index=True)

    # =========================================================================
    # 🕒 Zeitstempel
    # =========================================================================
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc)
    )

    # =========================================================================
    # 🔗 Beziehungen
    # =========================================================================
    memberships: Mapped[List["Membership"]] = relationship(
        "Membership",
        back_populates="user",
        lazy="selectin",
    )
    punch_cards: Mapped[List["PunchCard"]] = relationship(
        "PunchCard",
        back_populates="user",
        lazy="select",
    )
    payments: Mapped[List["Payment"]] = relationship(
        "Payment",
        back_populates="user",
        lazy="select",
    )
    payment_methods: Mapped[List["PaymentMethod"]] = relationship(
        "PaymentMethod",
        back_populates="user",
        cascade="all, delete-orphan",
        lazy="select",
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    # =========================================================================
    # 📌 Representation
    # =========================================================================
    def __repr__(self) -> str:
        return (
            f"<User(id={self.id}, username='{self.username}', "
            f"email='{self.email}', role='{self.role}')>"
        )
