"""
Alembic environment for the courtshare schema.

Migrations run over a synchronous driver. The URL comes from
DATABASE_URL_SYNC when it is set explicitly; otherwise it is derived from the
application's async DATABASE_URL by dropping the async driver, so a deployment
only has to configure one database URL.

The reservation overlap exclusion constraint (PostgreSQL only) lives in the
migration itself and is invisible to autogenerate; it is never dropped by a
generated revision.
"""

from logging.config import fileConfig

from sqlalchemy import engine_from_config, pool
from sqlalchemy.engine import make_url
from alembic import context

from courtshare.core.config import get_settings
from courtshare.db.base import Base
from courtshare.db.session import sync_database_url
import courtshare.models  # noqa: F401 - registers every table on Base.metadata

config = context.config
settings = get_settings()

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def configure_options(url: str) -> dict:
    return {
        "target_metadata": target_metadata,
        "compare_type": True,
        # SQLite cannot ALTER constraints in place
        "render_as_batch": make_url(url).get_backend_name() == "sqlite",
    }


def run_migrations_offline() -> None:
    """Generate SQL script without connecting to the database."""
    url = sync_database_url(settings)
    context.configure(
        url=url,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **configure_options(url),
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Run migrations against a live database connection."""
    url = sync_database_url(settings)
    config.set_main_option("sqlalchemy.url", url.replace("%", "%%"))
    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    with connectable.connect() as connection:
        context.configure(connection=connection, **configure_options(url))
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
