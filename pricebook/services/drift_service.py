"""Compare a migrated store against the Core schema in pricebook.schema."""
import logging
from typing import List, Optional

from alembic.autogenerate import compare_metadata
from alembic.migration import MigrationContext

from pricebook.config import get_settings
from pricebook.database import engine, is_sqlite, make_engine, redact
from pricebook.errors import SchemaDriftError
from pricebook.schema import metadata
from pricebook.schemas.migration import DriftItem, DriftReport

logger = logging.getLogger(__name__)

_OBJECT_DIFFS = {
    "add_constraint",
    "remove_constraint",
    "add_index",
    "remove_index",
    "add_fk",
    "remove_fk",
}


def _describe(diff) -> List[DriftItem]:
    # Column modifications come grouped in a list per column
    if isinstance(diff, list):
        items = []
        for sub in diff:
            items.extend(_describe(sub))
        return items

    kind = diff[0]
    if kind in ("add_table", "remove_table"):
        return [DriftItem(kind=kind, table=diff[1].name, detail=diff[1].name)]
    if kind in ("add_column", "remove_column"):
        return [DriftItem(kind=kind, table=diff[2], detail=diff[3].name)]
    if kind.startswith("modify_"):
        _, _schema, table, column = diff[:4]
        old, new = diff[-2], diff[-1]
        return [DriftItem(kind=kind, table=table, detail=f"{column}: {old!r} -> {new!r}")]
    if kind in _OBJECT_DIFFS:
        obj = diff[1]
        table = obj.table.name if obj.table is not None else None
        columns = ", ".join(c.name for c in obj.columns) if hasattr(obj, "columns") else ""
        return [DriftItem(kind=kind, table=table, detail=f"{obj.name or '<unnamed>'} ({columns})")]
    return [DriftItem(kind=kind, detail=repr(diff))]


def check_drift(url: Optional[str] = None) -> DriftReport:
    """Diff the live store against the expected main-line schema.

    Column types are not compared on SQLite, whose declared types are only
    affinities and do not round-trip through reflection.
    """
    bind = make_engine(url) if url else engine
    url = url or get_settings().DATABASE_URL
    try:
        with bind.connect() as conn:
            ctx = MigrationContext.configure(conn, opts={"compare_type": not is_sqlite(url)})
            diffs = compare_metadata(ctx, metadata)
    finally:
        if bind is not engine:
            bind.dispose()

    items: List[DriftItem] = []
    for diff in diffs:
        items.extend(_describe(diff))
    report = DriftReport(url=redact(url), items=items)
    if report.has_drift:
        logger.warning("Schema drift on %s: %d difference(s)", report.url, len(items))
    else:
        logger.info("No schema drift on %s", report.url)
    return report


def assert_no_drift(url: Optional[str] = None) -> DriftReport:
    report = check_drift(url)
    if report.has_drift:
        raise SchemaDriftError(report)
    return report
