"""
============================================================
TARJETA CRC — alembic/env.py (Entorno de migraciones)
============================================================
Responsibilities:
  - Resolver la URL de la DB desde Settings (DATABASE_URL) o alembic.ini.
  - Ejecutar migraciones online (engine efímero) u offline (SQL a stdout).

Collaborators:
  - Alembic (context, config)
  - SQLAlchemy (solo para el engine de migraciones)
  - role_admin.crosscutting.config.get_settings

Policy:
  - El runtime usa SQL crudo (psycopg): no hay metadata ORM, sin autogenerate.
  - Cada migración corre en su propia transacción.
============================================================
"""

from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool

from role_admin.crosscutting.config import get_settings

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = None

_DRIVER_PREFIXES = ("postgresql://", "postgres://")


def migration_url() -> str:
    """DATABASE_URL con driver psycopg 3 explícito para SQLAlchemy."""
    raw = get_settings().database_url or config.get_main_option("sqlalchemy.url")
    for prefix in _DRIVER_PREFIXES:
        if raw.startswith(prefix):
            return "postgresql+psycopg://" + raw[len(prefix) :]
    return raw


def run_migrations_offline() -> None:
    context.configure(
        url=migration_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        transaction_per_migration=True,
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    section = config.get_section(config.config_ini_section) or {}
    section["sqlalchemy.url"] = migration_url()
    engine = engine_from_config(section, prefix="sqlalchemy.", poolclass=pool.NullPool)

    with engine.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            transaction_per_migration=True,
        )
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
