#!/usr/bin/env python3
"""Fail (exit 1) when the store at DATABASE_URL differs from pricebook.schema."""
from __future__ import annotations

import sys

from pricebook.services.drift_service import check_drift
from pricebook.services.migration_service import MAIN_HEAD, configure_logging, current, pending


def main() -> None:
    configure_logging()

    waiting = pending(target=MAIN_HEAD)
    if waiting:
        print(f"[PENDING] Store at {', '.join(current()) or 'base'}; not yet applied:")
        for rev in waiting:
            print(f"  {rev.revision}  {rev.doc or ''}")

    report = check_drift()
    for item in report.items:
        print(f"[DRIFT] {item.kind} {item.table or '-'}: {item.detail}")

    if report.has_drift:
        print("\nSchema drift detected. Run `alembic upgrade main@head` or fix pricebook/schema.py.")
        sys.exit(1)

    print("Schema drift check passed.")


if __name__ == "__main__":
    main()
