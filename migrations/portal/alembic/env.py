import asyncio
import os
import sys
from pathlib import Path

from logging.config import fileConfig
from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import async_engine_from_config

from alembic import context

# ── Path setup ────────────────────────────────────────────────────────────────
# env.py lives at: <repo>/migrations/portal/alembic/env.py
#   parents[3] = repo root, which holds the portal and portal_shared packages
repo_root = Path(__file__).resolve().parents[3]
sys.path.insert(0, str(repo_root))

# ── ALL model modules must be imported so Alembic's autogenerate detects them ─
from portal.auth.models import Admin, Doctor, Patient, SuperAdmin  # noqa: E402,F401
from portal_shared.database import Base  # noqa: E402

# ── Alembic config ────────────────────────────────────────────────────────────
config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# Prefer the env var so docker-compose and CI can override without touching ini
url = os.environ.get("DATABASE_URL") or config.get_main_option("sqlalchemy.url")
# Escape '%' as '%%' for configparser interpolation (URL-encoded passwords)
config.set_main_option("sqlalchemy.url", url.replace("%", "%%"))

target_metadata = Base.metadata


# ── Offline mode ──────────────────────────────────────────────────────────────

def run_migrations_offline() -> None:
    """Generate SQL without a live DB connection (useful for review/dry-run)."""
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


# ── Online mode (async) ───────────────────────────────────────────────────────

def do_run_migrations(connection: Connection) -> None:
    context.configure(connection=connection, target_metadata=target_metadata)
    with context.begin_transaction():
        context.run_migrations()


async def run_async_migrations() -> None:
    connectable = async_engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    async with connectable.connect() as connection:
        await connection.run_sync(do_run_migrations)
    await connectable.dispose()


def run_migrations_online() -> None:
    asyncio.run(run_async_migrations())


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
