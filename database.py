# =============================================================================
# 🗄️ database.py
# -----------------------------------------------------------------------------
# SQLAlchemy-Datenbankkonfiguration für Thermal Club
# Unterstützt MySQL (Standard) oder eine beliebige DATABASE_URL aus der .env
# =============================================================================

import os
from urllib.parse import quote_plus

from dotenv import load_dotenv
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

# 🔹 .env laden (z. B. aus .env-Datei im Projektverzeichnis)
load_dotenv()

# 🔹 MySQL-Parameter aus Umgebungsvariablen
MYSQL_USER = os.getenv("MYSQL_USER", "root")
MYSQL_PASS = os.getenv("MYSQL_PASS", "")
MYSQL_HOST = os.getenv("MYSQL_HOST", "localhost")
MYSQL_PORT = os.getenv("MYSQL_PORT", "3306")
MYSQL_DB = os.getenv("MYSQL_DB", "thermal_club")


def build_database_url() -> str:
    """DATABASE_URL hat Vorrang, sonst wird die MySQL-URL zusammengesetzt."""
    explicit = os.getenv("DATABASE_URL", "").strip()
    if explicit:
        return explicit
    # Passwort sicher escapen (bei Sonderzeichen wie @, #, !, %)
    encoded_pass = quote_plus(MYSQL_PASS)
    return (
        f"mysql+pymysql://{MYSQL_USER}:{encoded_pass}@{MYSQL_HOST}:{MYSQL_PORT}/{MYSQL_DB}?charset=utf8mb4"
    )


SQLALCHEMY_DATABASE_URL = build_database_url()

# 🔹 Engine erstellen
# pool_pre_ping = erkennt automatisch unterbrochene Verbindungen
# pool_recycle = hält MySQL-Verbindungen frisch
engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    pool_pre_ping=True,
    pool_recycle=280,
)

# 🔹 SessionFactory erzeugt eine Session für jede Anfrage
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

# 🔹 Basisklasse für alle SQLAlchemy-Modelle
Base = declarative_base()


# 🔹 Dependency für FastAPI
def get_db():
    """
    Erstellt eine neue Datenbank-Session pro Anfrage und schließt sie automatisch.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
