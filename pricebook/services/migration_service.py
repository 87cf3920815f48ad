"""Migration runner: thin wrappers over ``alembic.command`` with logging.

Migrations apply strictly in revision order, each in its own transaction.  A
failure is logged, wrapped in MigrationError and re-raised; nothing is retried.
"""
import logging
from pathlib import Path
from typing import List, Optional

from alembic import command
from alembic.config import Config
from alembic.migration import MigrationContext
from alembic.script import Script, ScriptDirectory

from pricebook.config import get_settings
from pricebook.database import make_engine, redact
from pricebook.errors import MigrationError
from pricebook.schemas.migration import RevisionInfo

logger = logging.getLogger(__name__)

# The Alembic environment ships as package data
MIGRATIONS_DIR = Path(__file__).resolve().parents[1] / "migrations"

MAIN_HEAD = "main@head"


def configure_logging(level: Optional[str] = None) -> None:
    """Send log records to stderr and set the pricebook logger to LOG_LEVEL."""
    level = (level or get_settings().LOG_LEVEL).upper()
    logging.basicConfig(
        format="%(asctime)s %(levelname)-5.5s [%(name)s] %(message)s",
    )
    logging.getLogger("pricebook").setLevel(level)


def alembic_config(url: Optional[str] = None) -> Config:
    """Build an Alembic Config for the packaged migrations and *url*."""
    url = url or get_settings().DATABASE_URL
    cfg = Config()
    cfg.set_main_option("script_location", str(MIGRATIONS_DIR))
    # ConfigParser interpolation would eat percent-encoded characters
    cfg.set_main_option("sqlalchemy.url", url.replace("%", "%%"))
    cfg.attributes["configure_logger"] = False
    return cfg


def _script_directory(url: Optional[str] = None) -> ScriptDirectory:
    return ScriptDirectory.from_config(alembic_config(url))


def _as_list(value) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    return list(value)


def _revision_info(script: Script) -> RevisionInfo:
    return RevisionInfo(
        revision=script.revision,
        down_revisions=_as_list(script.down_revision),
        branch_labels=sorted(script.branch_labels or []),
        doc=script.doc,
        is_head=script.is_head,
        is_base=script.is_base,
    )


# ---------------------------------------------------------------------------
# Inspection
# ---------------------------------------------------------------------------

def current(url: Optional[str] = None) -> List[str]:
    """Return the revision ids recorded in the store, one per applied line."""
    url = url or get_settings().DATABASE_URL
    engine = make_engine(url)
    try:
        with engine.connect() as conn:
            heads = MigrationContext.configure(conn).get_current_heads()
    finally:
        engine.dispose()
    return sorted(heads)


def history(url: Optional[str] = None) -> List[RevisionInfo]:
    """All known revisions, bases first."""
    script_dir = _script_directory(url)
    return [_revision_info(s) for s in reversed(list(script_dir.walk_revisions()))]


def pending(url: Optional[str] = None, target: str = MAIN_HEAD) -> List[RevisionInfo]:
    """Revisions between the store's current state and *target*, in apply order."""
    script_dir = _script_directory(url)
    applied = set()
    for head in current(url):
        applied.update(s.revision for s in script_dir.walk_revisions(base="base", head=head))
    wanted = [
        s for s in script_dir.walk_revisions(base="base", head=target)
        if s.revision not in applied
    ]
    return [_revision_info(s) for s in reversed(wanted)]


# ---------------------------------------------------------------------------
# Apply
# ---------------------------------------------------------------------------

def _fail(action: str, target: str, url: str, exc: Exception) -> MigrationError:
    statement = getattr(exc, "statement", None)
    try:
        at = current(url)
    except Exception as inner:
        logger.warning("Could not read current revision after failure: %s", inner)
        at = []
    logger.error(
        "%s to %s failed on %s (store at %s): %s",
        action,
        target,
        redact(url),
        ", ".join(at) or "base",
        exc,
    )
    if statement:
        logger.error("Failing statement: %s", statement)
    return MigrationError(f"{action} to {target} failed: {exc}", target=target, statement=statement, current=at)


def upgrade(target: str = MAIN_HEAD, url: Optional[str] = None) -> List[str]:
    """Apply revisions up to *target* and return the resulting heads."""
    url = url or get_settings().DATABASE_URL
    logger.info("Upgrading %s to %s", redact(url), target)
    try:
        command.upgrade(alembic_config(url), target)
    except Exception as exc:
        raise _fail("Upgrade", target, url, exc) from exc
    heads = current(url)
    logger.info("Store now at %s", ", ".join(heads) or "base")
    return heads


def downgrade(target: str, url: Optional[str] = None) -> List[str]:
    """Revert revisions down to *target* and return the resulting heads."""
    url = url or get_settings().DATABASE_URL
    logger.info("Downgrading %s to %s", redact(url), target)
    try:
        command.downgrade(alembic_config(url), target)
    except Exception as exc:
        raise _fail("Downgrade", target, url, exc) from exc
    heads = current(url)
    logger.info("Store now at %s", ", ".join(heads) or "base")
    return heads
