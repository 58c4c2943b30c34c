import logging
from collections.abc import Collection, Mapping
from logging.config import fileConfig
from typing import Any

from alembic import context
from alembic.runtime.migration import MigrationContext, MigrationInfo
from sqlalchemy import engine_from_config, pool

from subway.core.config import settings
from subway.core.utils import convert_async_db_url_to_sync
from subway.models import Base  # This will import all models

logger = logging.getLogger("alembic.env")

# this is the Alembic Config object, which provides
# access to the values within the .ini file in use.
config = context.config

# Use the URL from the ini/caller when given, otherwise the application's (as a sync URL)
if not config.get_main_option("sqlalchemy.url"):
    config.set_main_option("sqlalchemy.url", convert_async_db_url_to_sync(settings.DATABASE_URL))

# Interpret the config file for Python logging.
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode.

    Configures the context with just a URL so that SQL is emitted to the
    script output without a DBAPI connection.
    """
    url = config.get_main_option("sqlalchemy.url")
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        render_as_batch=url is not None and url.startswith("sqlite"),
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Run migrations in 'online' mode against a live connection."""
    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    with connectable.connect() as connection:
        migrations_applied = []

        def on_version_apply(
            ctx: MigrationContext,
            step: MigrationInfo,
            heads: Collection[Any],
            run_args: Mapping[str, Any],
        ) -> None:
            """Callback when a migration is applied."""
            migrations_applied.append(step.up_revision_id)
            logger.info(f"Applying migration {step.up_revision_id}")

        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            on_version_apply=on_version_apply,
            render_as_batch=connection.dialect.name == "sqlite",
        )

        migration_context = context.get_context()
        current_rev = migration_context.get_current_revision()
        head_rev = context.script.get_current_head()

        if current_rev == head_rev:
            logger.info(f"Database already at target revision: {head_rev or 'base'}")
        elif current_rev is None:
            logger.info(f"Initializing database to revision: {head_rev}")
        else:
            logger.info(f"Upgrading database from {current_rev} to {head_rev}")

        with context.begin_transaction():
            context.run_migrations()

        if migrations_applied:
            logger.info(f"Applied {len(migrations_applied)} migration(s). Database now at revision: {head_rev}")


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
