"""Alembic migration environment for the Breakroom schema."""

import sys
from logging.config import fileConfig
from pathlib import Path

from alembic import context
from dotenv import load_dotenv
from sqlalchemy import create_engine, pool

# Make the breakroom package importable when alembic runs from a checkout
project_root = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(project_root))

# .env.local overrides .env, same as main.py
load_dotenv(project_root / ".env")
load_dotenv(project_root / ".env.local", override=True)

from breakroom.database import get_sync_database_url
from breakroom.tables import metadata

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = metadata


def run_migrations_offline() -> None:
    """Emit the migration SQL to stdout instead of running it."""
    context.configure(
        url=get_sync_database_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Apply migrations over a sync psycopg2 connection."""
    engine = create_engine(get_sync_database_url(), poolclass=pool.NullPool)

    with engine.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
