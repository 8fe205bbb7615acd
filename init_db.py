# =============================================================================
# 🧩 init_db.py
# -----------------------------------------------------------------------------
# Initialisiert die Datenbank für Thermal Club:
#   - Erstellt alle Tabellen
#   - Fügt Standard-Tarife und Punch-Card-Pakete ein
#   - Erstellt einen Admin-Benutzer (ADMIN_EMAIL / ADMIN_PASSWORD)
# =============================================================================

import os

from passlib.hash import bcrypt
from sqlalchemy import select

import models  # noqa: F401  (registriert alle Tabellen an Base.metadata)
from database import Base, engine, SessionLocal
from models.user import User
from seeds.plans_seed import seed_plans, seed_punch_card_templates


def ensure_admin(db, email: str, password: str) -> bool:
    """Legt den Admin an, falls die Adresse noch frei ist."""
    if db.scalars(select(User).where(User.email == email)).first():
        print("  ✔️ Admin-Benutzer existiert bereits.")
        return False

    db.add(User(
        username="admin",
        first_name="System",
        last_name="Administrator",
        email=email,
        password_hash=bcrypt.hash(password),
        role="admin",
    ))
    db.commit()
    print(f"  🆕 Admin-Benutzer erstellt: {email}")
    return True


def main() -> None:
    # 🔹 Schritt 1: Tabellen anlegen
    print("🛠️ Erstelle Tabellen in der Datenbank...")
    Base.metadata.create_all(bind=engine)
    print("✅ Tabellen wurden erfolgreich erstellt.\n")

    # 🔹 Schritt 2: Standard-Daten einfügen
    db = SessionLocal()
    try:
        print("📦 Füge Standard-Tarife hinzu (falls nicht vorhanden)...")
        seed_plans(db)
        seed_punch_card_templates(db)

        print("👤 Prüfe auf Admin-Benutzer...")
        ensure_admin(
            db,
            os.getenv("ADMIN_EMAIL", "admin@thermal-club.local"),
            os.getenv("ADMIN_PASSWORD", "admin123"),
        )
    finally:
        db.close()
    print("\n🎉 Datenbankinitialisierung abgeschlossen!")


if __name__ == "__main__":
    main()
