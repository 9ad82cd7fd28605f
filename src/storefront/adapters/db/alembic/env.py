"""Alembic environment for the Storefront schema.

The database URL is looked up in this order: ``-x url=...`` on the command
line, then ``sqlalchemy.url`` from the Alembic config (as set by
``storefront.config.build_alembic_config``), then ``STOREFRONT_DB_URL``.
Type and server-default drift are compared during autogenerate; SQLite
migrations run in batch mode.
"""

from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool

from storefront.adapters.db.dialects import DialectName
from storefront.adapters.db.schema import metadata
from storefront.config import (
    ALEMBIC_URL_KEY,
    DB_URL_ENV,
    DatabaseUrlNotSetError,
    get_db_url,
)

# pylint: disable=no-member

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

COMPARE_OPTIONS = {"compare_type": True, "compare_server_default": True}


def resolve_url() -> str:
    """Return the URL migrations should run against."""
    url = context.get_x_argument(as_dictionary=True).get("url")
    if url:
        return url
    url = config.get_main_option(ALEMBIC_URL_KEY)
    # an uninterpolated "%(...)s" placeholder counts as unset
    if url and "%(" not in url:
        return url
    try:
        return get_db_url()
    except DatabaseUrlNotSetError as exc:
        raise RuntimeError(f"Set {DB_URL_ENV} to your database URL.") from exc


def run_migrations_offline() -> None:
    """Render the migration SQL without connecting to a database."""
    context.configure(
        url=resolve_url(),
        target_metadata=metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **COMPARE_OPTIONS,
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Apply migrations over a dedicated, unpooled connection."""
    engine = engine_from_config(
        {ALEMBIC_URL_KEY: resolve_url()},
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    with engine.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=metadata,
            render_as_batch=connection.dialect.name == DialectName.SQLITE.value,
            **COMPARE_OPTIONS,
        )
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
