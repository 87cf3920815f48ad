from typing import Dict, List, Optional
from pydantic import BaseModel


class RevisionInfo(BaseModel):
    revision: str
    down_revisions: List[str] = []
    branch_labels: List[str] = []
    doc: Optional[str] = None
    is_head: bool = False
    is_base: bool = False


class CollapseResult(BaseModel):
    receipts_before: int
    receipts_after: int
    prices_before: int
    prices_after: int
    # collapsed receipt id -> surviving receipt id
    collapsed: Dict[int, int] = {}

    @property
    def receipts_removed(self) -> int:
        return self.receipts_before - self.receipts_after


class DriftItem(BaseModel):
    kind: str
    table: Optional[str] = None
    detail: str


class DriftReport(BaseModel):
    url: str
    items: List[DriftItem] = []

    @property
    def has_drift(self) -> bool:
        return bool(self.items)

    def tables(self, kind: str) -> List[str]:
        return [item.table for item in self.items if item.kind == kind and item.table]
