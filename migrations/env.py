# =============================================================================
# ⚙️ Alembic Environment Configuration (Thermal Club)
# -----------------------------------------------------------------------------
# Lädt .env-Variablen, nutzt dieselbe Datenbank-URL wie die App und
# registriert alle Modelle.
# =============================================================================

from logging.config import fileConfig
from alembic import context
from sqlalchemy import engine_from_config, pool
from dotenv import load_dotenv

# -------------------------------------------------------------------------
# 🔹 .env-Datei laden
# -------------------------------------------------------------------------
load_dotenv()

# -------------------------------------------------------------------------
# 🔹 Alembic-Konfiguration
# -------------------------------------------------------------------------
config = context.config
if config.config_file_name:
    fileConfig(config.config_file_name)

# -------------------------------------------------------------------------
# 🔹 Verbindung (DATABASE_URL oder MySQL aus MYSQL_*)
# -------------------------------------------------------------------------
from database import Base, build_database_url
import models  # noqa: F401  (Modelle an Base.metadata registrieren)

SQLALCHEMY_DATABASE_URL = build_database_url()
config.set_main_option("sqlalchemy.url", SQLALCHEMY_DATABASE_URL.replace("%", "%%"))

target_metadata = Base.metadata

# -------------------------------------------------------------------------
# 🔹 Migration im Offline-Modus
# -------------------------------------------------------------------------
def run_migrations_offline() -> None:
    """Führt Migrationen im Offline-Modus aus (z. B. in CI/CD)."""
    context.configure(
        url=SQLALCHEMY_DATABASE_URL,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        compare_type=True,
        compare_server_default=False,
    )

    with context.begin_transaction():
        context.run_migrations()

# -------------------------------------------------------------------------
# 🔹 Migration im Online-Modus
# -------------------------------------------------------------------------
def run_migrations_online() -> None:
    """Führt Migrationen im Online-Modus aus (lokal oder auf Server)."""
    section = config.get_section(config.config_ini_section) or {}

    connectable = engine_from_config(
        section,
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,
            compare_server_default=False,
        )

        with context.begin_transaction():
            context.run_migrations()

# -------------------------------------------------------------------------
# 🔹 Einstiegspunkt
# -------------------------------------------------------------------------
if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
