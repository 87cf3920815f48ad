import logging
from logging.config import fileConfig

from alembic import context

from pricebook.config import get_settings
from pricebook.database import is_sqlite, make_engine
from pricebook.schema import metadata

config = context.config

# The programmatic runner configures logging itself
if config.config_file_name is not None and config.attributes.get("configure_logger", True):
    fileConfig(config.config_file_name, disable_existing_loggers=False)

logger = logging.getLogger("alembic.env")

target_metadata = metadata


def _database_url() -> str:
    return config.get_main_option("sqlalchemy.url") or get_settings().DATABASE_URL


def run_migrations_offline() -> None:
    context.configure(
        url=_database_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        transaction_per_migration=True,
    )
    with context.begin_transaction():
        context.run_migrations()


def _run_on_connection(connection) -> None:
    sqlite = connection.dialect.name == "sqlite"
    context.configure(
        connection=connection,
        target_metadata=target_metadata,
        # Each revision commits on its own so a failure leaves the previous one applied
        transaction_per_migration=True,
        # pricebook.database makes pysqlite run DDL inside the transaction
        transactional_ddl=True,
        render_as_batch=sqlite,
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    connection = config.attributes.get("connection")
    if connection is not None:
        _run_on_connection(connection)
        return

    url = _database_url()
    # Batch table rebuilds on SQLite drop parent tables; FK checks stay off for them
    engine = make_engine(url, enforce_foreign_keys=False if is_sqlite(url) else None)
    try:
        with engine.connect() as connection:
            _run_on_connection(connection)
    finally:
        engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
