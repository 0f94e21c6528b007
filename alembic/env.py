from __future__ import annotations

from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine, pool

from app.db import DATABASE_URL

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)


def get_metadata():
    from app.db import Base
    import app.models.user  # noqa: F401
    import app.models.reward  # noqa: F401
    import app.models.reward_claim  # noqa: F401
    import app.models.order  # noqa: F401

    return Base.metadata


def run_migrations_offline():
    """Run migrations in 'offline' mode."""
    context.configure(url=DATABASE_URL, target_metadata=get_metadata(), literal_binds=True)

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online():
    """Run migrations in 'online' mode."""
    connectable = create_engine(DATABASE_URL, poolclass=pool.NullPool)

    with connectable.connect() as connection:
        context.configure(connection=connection, target_metadata=get_metadata())

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
