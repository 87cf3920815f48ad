"""Receipt deduplication: collapse receipts sharing a paid_at and constrain it.

Used by the ``002_unique_receipt_paid_at`` migration.  The whole procedure runs
on the caller's connection and relies on the caller's transaction; nothing is
committed here.
"""
import logging
from typing import Dict, Iterable, List, Optional, Tuple

import sqlalchemy as sa
from alembic.migration import MigrationContext
from alembic.operations import Operations

from pricebook.errors import DanglingReferenceError
from pricebook.schema import prices, products, receipts
from pricebook.schemas.migration import CollapseResult

logger = logging.getLogger(__name__)

UNIQUE_PAID_AT = "uq_receipts_paid_at"


# ---------------------------------------------------------------------------
# Planning helpers
# ---------------------------------------------------------------------------

def plan_receipt_collapse(rows: Iterable[Tuple[int, object]]) -> Dict[int, int]:
    """Map every receipt id to the lowest id sharing its paid_at.

    *rows* are ``(id, paid_at)`` pairs.  Survivors map to themselves.
    """
    rows = list(rows)
    lowest: Dict[object, int] = {}
    for receipt_id, paid_at in rows:
        current = lowest.get(paid_at)
        if current is None or receipt_id < current:
            lowest[paid_at] = receipt_id
    return {receipt_id: lowest[paid_at] for receipt_id, paid_at in rows}


def merge_prices(price_rows: Iterable[dict], survivor_of: Dict[int, int]) -> List[dict]:
    """Re-point price rows at surviving receipts.

    Rows that end up sharing (product_id, receipt_id) are merged: counts add up
    and the unit price comes from the row with the lowest original receipt id.
    """
    merged: Dict[Tuple[int, int], dict] = {}
    for row in sorted(price_rows, key=lambda r: (r["receipt_id"], r["product_id"])):
        survivor = survivor_of.get(row["receipt_id"], row["receipt_id"])
        key = (row["product_id"], survivor)
        existing = merged.get(key)
        if existing is None:
            merged[key] = {
                "product_id": row["product_id"],
                "receipt_id": survivor,
                "count": row["count"],
                "unit_price": row["unit_price"],
            }
        else:
            existing["count"] += row["count"]
    return list(merged.values())


# ---------------------------------------------------------------------------
# Integrity checks
# ---------------------------------------------------------------------------

def find_dangling_prices(bind) -> Dict[str, List[int]]:
    """Return parent ids referenced by prices that do not exist, per column."""
    missing_receipts = bind.execute(
        sa.select(prices.c.receipt_id)
        .select_from(prices.outerjoin(receipts, prices.c.receipt_id == receipts.c.id))
        .where(receipts.c.id.is_(None))
        .distinct()
    ).scalars().all()
    missing_products = bind.execute(
        sa.select(prices.c.product_id)
        .select_from(prices.outerjoin(products, prices.c.product_id == products.c.id))
        .where(products.c.id.is_(None))
        .distinct()
    ).scalars().all()
    dangling = {}
    if missing_receipts:
        dangling["receipt_id"] = sorted(missing_receipts)
    if missing_products:
        dangling["product_id"] = sorted(missing_products)
    return dangling


def assert_no_dangling_prices(bind) -> None:
    dangling = find_dangling_prices(bind)
    if dangling:
        column, ids = next(iter(dangling.items()))
        raise DanglingReferenceError("prices", column, ids)


# ---------------------------------------------------------------------------
# Collapse procedure
# ---------------------------------------------------------------------------

def collapse_receipts_by_paid_at(
    bind,
    cascade_prices: bool = True,
    operations: Optional[Operations] = None,
) -> CollapseResult:
    """Keep one receipt per paid_at and add the unique constraint.

    Survivors are staged, the table is emptied, the constraint is added and the
    survivors go back in with their original ids.  With *cascade_prices* the
    prices are staged too, re-pointed at survivors and reinserted; without it
    prices are left alone and any that referenced a removed receipt make the
    procedure fail.
    """
    if operations is None:
        operations = Operations(MigrationContext.configure(bind))

    receipt_rows = bind.execute(
        sa.select(receipts.c.id, receipts.c.merchant_name, receipts.c.paid_at).order_by(receipts.c.id)
    ).all()
    survivor_of = plan_receipt_collapse((r.id, r.paid_at) for r in receipt_rows)
    staged_receipts = [
        {"id": r.id, "merchant_name": r.merchant_name, "paid_at": r.paid_at}
        for r in receipt_rows
        if survivor_of[r.id] == r.id
    ]
    collapsed = {rid: sid for rid, sid in survivor_of.items() if rid != sid}

    prices_before = bind.execute(sa.select(sa.func.count()).select_from(prices)).scalar_one()
    staged_prices: List[dict] = []
    if cascade_prices:
        price_rows = bind.execute(sa.select(prices)).mappings().all()
        staged_prices = merge_prices(price_rows, survivor_of)
        bind.execute(prices.delete())

    logger.info(
        "Collapsing %d receipts into %d (cascade_prices=%s)",
        len(receipt_rows),
        len(staged_receipts),
        cascade_prices,
    )

    bind.execute(receipts.delete())

    with operations.batch_alter_table("receipts") as batch_op:
        batch_op.create_unique_constraint(UNIQUE_PAID_AT, ["paid_at"])

    if staged_receipts:
        bind.execute(receipts.insert(), staged_receipts)
    if staged_prices:
        bind.execute(prices.insert(), staged_prices)

    assert_no_dangling_prices(bind)

    prices_after = bind.execute(sa.select(sa.func.count()).select_from(prices)).scalar_one()
    result = CollapseResult(
        receipts_before=len(receipt_rows),
        receipts_after=len(staged_receipts),
        prices_before=prices_before,
        prices_after=prices_after,
        collapsed=collapsed,
    )
    logger.info(
        "Receipt collapse done: %d receipts removed, prices %d -> %d",
        result.receipts_removed,
        prices_before,
        prices_after,
    )
    return result


def drop_paid_at_constraint(operations: Operations) -> None:
    with operations.batch_alter_table("receipts") as batch_op:
        batch_op.drop_constraint(UNIQUE_PAID_AT, type_="unique")
