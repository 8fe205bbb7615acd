from sqlalchemy import inspect, text

import database
from database import build_database_url

REQUIRED_TABLES = [
    "users",
    "memberships",
    "membership_plans",
    "punch_cards",
    "punch_card_templates",
    "check_ins",
    "payments",
    "payment_methods",
    "notifications",
    "password_reset_tokens",
]


def test_database_connection(session_local):
    """Überprüft, ob eine Verbindung zur Test-Datenbank besteht."""
    with session_local() as db:
        assert db.execute(text("SELECT 1")).scalar() == 1


def test_required_tables_exist(db):
    tables = inspect(db.get_bind()).get_table_names()
    missing = [t for t in REQUIRED_TABLES if t not in tables]
    assert not missing, f"❌ Fehlende Tabellen: {missing}"


def test_database_url_prefers_explicit_setting(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "sqlite:///./thermal.db")
    assert build_database_url() == "sqlite:///./thermal.db"


def test_database_url_builds_mysql_url(monkeypatch):
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.setattr(database, "MYSQL_USER", "spa")
    monkeypatch.setattr(database, "MYSQL_PASS", "p@ss#1")
    monkeypatch.setattr(database, "MYSQL_HOST", "db")
    monkeypatch.setattr(database, "MYSQL_PORT", "3307")
    monkeypatch.setattr(database, "MYSQL_DB", "thermal_club")

    assert build_database_url() == "mysql+pymysql://spa:p%40ss%231@db:3307/thermal_club?charset=utf8mb4"


def test_seeds_are_idempotent(db):
    from seeds.plans_seed import seed_plans, seed_punch_card_templates

    assert seed_plans(db) == 4
    assert seed_punch_card_templates(db) == 3
    assert seed_plans(db) == 0
    assert seed_punch_card_templates(db) == 0
