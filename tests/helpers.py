"""Row helpers shared by the store-level tests."""
from datetime import datetime

import sqlalchemy as sa

from pricebook.schema import prices, products, receipts

T1 = datetime(2023, 10, 1, 12, 30)
T2 = datetime(2023, 10, 2, 9, 15)
T3 = datetime(2023, 10, 3, 18, 0)


def seed(engine, product_rows=(), receipt_rows=(), price_rows=()):
    """Insert rows given as tuples in column order."""
    with engine.begin() as conn:
        if product_rows:
            conn.execute(products.insert(), [{"id": i, "name": n} for i, n in product_rows])
        if receipt_rows:
            conn.execute(
                receipts.insert(),
                [{"id": i, "merchant_name": m, "paid_at": p} for i, m, p in receipt_rows],
            )
        if price_rows:
            conn.execute(
                prices.insert(),
                [
                    {"product_id": p, "receipt_id": r, "count": c, "unit_price": u}
                    for p, r, c, u in price_rows
                ],
            )


def fetch_receipts(engine):
    with engine.connect() as conn:
        rows = conn.execute(
            sa.select(receipts.c.id, receipts.c.merchant_name, receipts.c.paid_at).order_by(receipts.c.id)
        ).all()
    return [tuple(r) for r in rows]


def fetch_prices(engine):
    with engine.connect() as conn:
        rows = conn.execute(
            sa.select(prices.c.product_id, prices.c.receipt_id, prices.c.count, prices.c.unit_price)
            .order_by(prices.c.receipt_id, prices.c.product_id)
        ).all()
    return [tuple(r) for r in rows]


def table_names(engine):
    return set(sa.inspect(engine).get_table_names())


def unique_constraint_names(engine, table):
    return {uc["name"] for uc in sa.inspect(engine).get_unique_constraints(table)}
