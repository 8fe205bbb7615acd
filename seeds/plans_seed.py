# =============================================================================
# 🌍 seeds/plans_seed.py
# -----------------------------------------------------------------------------
# Initialisiert die Standard-Tarife (Basic, Premium, VIP, Day Pass) und die
# Punch-Card-Pakete (5 / 10 / 20 Besuche). Preise in Cent.
# =============================================================================

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from database import SessionLocal
from models.membership import MembershipPlan
from models.punch_card import PunchCardTemplate

DEFAULT_PLANS = [
    {
        "plan_type": "basic",
        "name": "Basic",
        "monthly_price": 4900,
        "description": "Access to thermal pools and sauna area",
        "features": ["Thermal pools", "Sauna area", "Locker"],
    },
    {
        "plan_type": "premium",
        "name": "Premium",
        "monthly_price": 8900,
        "description": "Everything in Basic plus steam bath and relaxation lounge",
        "features": ["Thermal pools", "Sauna area", "Steam bath", "Relaxation lounge", "Towel service"],
    },
    {
        "plan_type": "vip",
        "name": "VIP",
        "monthly_price": 12900,
        "description": "Full access including private areas and monthly massage",
        "features": ["All Premium features", "Private spa area", "Monthly massage", "Guest passes"],
    },
    {
        "plan_type": "daily",
        "name": "Day Pass",
        "monthly_price": 1500,
        "description": "Single day access",
        "features": ["Thermal pools", "Sauna area"],
    },
]

DEFAULT_TEMPLATES = [
    {"name": "5-Day Pass Package", "total_punches": 5, "price_per_punch": 2400, "total_price": 12000,
     "description": "5 visits, valid for any day", "sort_order": 1},
    {"name": "10-Day Pass Package", "total_punches": 10, "price_per_punch": 2200, "total_price": 22000,
     "description": "10 visits, save 8% per visit", "sort_order": 2},
    {"name": "20-Day Pass Package", "total_punches": 20, "price_per_punch": 2000, "total_price": 40000,
     "description": "20 visits, best value per visit", "sort_order": 3},
]


def seed_plans(db: Session) -> int:
    """Legt fehlende Tarife an (je `plan_type` einer). Gibt die Anzahl neuer Tarife zurück."""
    existing = set(db.scalars(select(MembershipPlan.plan_type)).all())
    added = 0
    for data in DEFAULT_PLANS:
        if data["plan_type"] in existing:
            print(f"  ✔️ Tarif '{data['name']}' bereits vorhanden.")
            continue
        db.add(MembershipPlan(**data))
        added += 1
        print(f"  ➕ Tarif '{data['name']}' hinzugefügt.")
    db.commit()
    return added


def seed_punch_card_templates(db: Session) -> int:
    """Pakete nur anlegen, wenn noch keine Vorlage existiert."""
    count = db.scalar(select(func.count(PunchCardTemplate.id))) or 0
    if count:
        print(f"ℹ️ Es existieren bereits {count} Punch-Card-Vorlagen.")
        return 0
    db.add_all(PunchCardTemplate(is_active=True, **data) for data in DEFAULT_TEMPLATES)
    db.commit()
    print(f"✅ {len(DEFAULT_TEMPLATES)} Punch-Card-Vorlagen angelegt.")
    return len(DEFAULT_TEMPLATES)


def run_seeds() -> None:
    db = SessionLocal()
    try:
        seed_plans(db)
        seed_punch_card_templates(db)
    except SQLAlchemyError as e:
        db.rollback()
        print(f"❌ Fehler beim Initialisieren der Tarife: {e}")
        raise
    finally:
        db.close()


# -----------------------------------------------------------------------------
# 🏁 Direkter Startpunkt
# -----------------------------------------------------------------------------
if __name__ == "__main__":
    print("🚀 Starte Tarif-Initialisierung ...")
    run_seeds()
    print("🏁 Fertig.")
