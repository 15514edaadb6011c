from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool

from daycare.db.base import Base
# Imported for their side effect of registering tables on Base.metadata
from daycare.core.organizations import models as _organizations  # noqa: F401
from daycare.core.directory import models as _directory  # noqa: F401
from daycare.core.audit import models as _audit  # noqa: F401
from daycare.core.incidents import models as _incidents  # noqa: F401
from daycare.settings import get_settings

config = context.config
if config.config_file_name:
    fileConfig(config.config_file_name)
target_metadata = Base.metadata


def run_migrations_offline() -> None:
    context.configure(
        url=get_settings().DATABASE_SYNC_URL,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    section = config.get_section(config.config_ini_section, {})
    section["sqlalchemy.url"] = get_settings().DATABASE_SYNC_URL
    connectable = engine_from_config(section, prefix="sqlalchemy.", poolclass=pool.NullPool)
    with connectable.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata, compare_type=True)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
