from logging.config import fileConfig
import os
import re
import sys

from sqlalchemy import engine_from_config
from sqlalchemy import pool

from alembic import context

# backend/alembic/env.py -> make backend/ importable so ``app`` resolves
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))


# this is the Alembic Config object, which provides
# access to the values within the .ini file in use.
config = context.config

# Interpret the config file for Python logging.
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

from app.core.config import settings  # noqa: E402
from app.database import Base  # noqa: E402
# Import all models to ensure they are registered with Base.metadata
import app.models  # noqa: E402,F401

target_metadata = Base.metadata


def _db_url() -> str:
    return (
        os.getenv("DB_URL")
        or os.getenv("SQLALCHEMY_DATABASE_URL")
        or config.get_main_option("sqlalchemy.url")
        or settings.SQLALCHEMY_DATABASE_URL
    )


def _masked(url: str) -> str:
    # Best-effort masking of password in logs
    return re.sub(r"(://[^:/]+:)([^@]+)(@)", r"\1****\3", url)


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode, emitting SQL to the script output."""
    url = _db_url()
    print(f"[alembic] Using DB URL (offline): {_masked(url)}")
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        render_as_batch=url.startswith("sqlite"),
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Run migrations in 'online' mode against a live connection."""
    section = config.get_section(config.config_ini_section, {}) or {}
    section["sqlalchemy.url"] = _db_url()
    connectable = engine_from_config(section, prefix="sqlalchemy.", poolclass=pool.NullPool)

    with connectable.connect() as connection:
        # SQLite cannot ALTER most constraints in place
        is_sqlite = connection.dialect.name == "sqlite"
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            render_as_batch=is_sqlite,
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
