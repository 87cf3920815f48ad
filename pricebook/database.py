import logging
from typing import Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url

from pricebook.config import get_settings

logger = logging.getLogger(__name__)


def is_sqlite(url: str) -> bool:
    return make_url(url).get_backend_name() == "sqlite"


def redact(url: str) -> str:
    return make_url(url).render_as_string(hide_password=True)


def _install_sqlite_hooks(engine: Engine, enforce_foreign_keys: bool) -> None:
    """Make pysqlite run DDL inside real transactions and set the FK pragma.

    pysqlite only opens a transaction ahead of DML, so a CREATE or ALTER issued
    first would autocommit and survive a rollback.  Disabling its own
    transaction handling and emitting BEGIN ourselves keeps each migration
    all-or-nothing.
    """

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        # The pragma is a no-op inside a transaction, so set it on connect
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=%s" % ("ON" if enforce_foreign_keys else "OFF"))
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")


def make_engine(url: Optional[str] = None, enforce_foreign_keys: Optional[bool] = None) -> Engine:
    settings = get_settings()
    url = url or settings.DATABASE_URL
    if not is_sqlite(url):
        return create_engine(url, pool_pre_ping=True)

    if enforce_foreign_keys is None:
        enforce_foreign_keys = settings.SQLITE_ENFORCE_FOREIGN_KEYS
    engine = create_engine(url)
    _install_sqlite_hooks(engine, enforce_foreign_keys)
    logger.debug("SQLite engine for %s (foreign_keys=%s)", url, enforce_foreign_keys)
    return engine


class _LazyEngine:
    """Lazily creates the SQLAlchemy engine on first access."""

    def __init__(self):
        self._engine = None

    def _get(self):
        if self._engine is None:
            self._engine = make_engine()
        return self._engine

    def connect(self):
        return self._get().connect()

    def begin(self):
        return self._get().begin()

    def dispose(self):
        if self._engine:
            self._engine.dispose()
            self._engine = None

    # Expose for Alembic / direct use
    def __getattr__(self, name):
        return getattr(self._get(), name)


engine = _LazyEngine()
