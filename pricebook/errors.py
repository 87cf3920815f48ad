"""Exceptions raised by the migration runner and data migrations."""
from typing import Iterable, List, Optional


class PricebookError(Exception):
    pass


class MigrationError(PricebookError):
    """A migration failed; the store is left at the last committed revision."""

    def __init__(
        self,
        message: str,
        target: Optional[str] = None,
        statement: Optional[str] = None,
        current: Optional[List[str]] = None,
    ):
        super().__init__(message)
        self.target = target
        self.statement = statement
        self.current = current or []


class DanglingReferenceError(PricebookError):
    """Rows in *table* reference parent ids that no longer exist."""

    def __init__(self, table: str, column: str, ids: Iterable[int]):
        self.table = table
        self.column = column
        self.ids = sorted(set(ids))
        super().__init__(
            f"{table}.{column} references missing rows: {', '.join(map(str, self.ids))}"
        )


class SchemaDriftError(PricebookError):
    def __init__(self, report):
        self.report = report
        super().__init__(f"Schema drift detected: {len(report.items)} difference(s)")
