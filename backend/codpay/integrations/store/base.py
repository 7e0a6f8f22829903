from __future__ import annotations

import contextlib
from dataclasses import dataclass, field


@dataclass
class FindResult:
    docs: list = field(default_factory=list)
    total_docs: int = 0


class RecordStore:
    """Document store contract used by the COD operations.

    ``where`` maps dotted paths (``"cod.order_id"``) to values and matches by
    equality; list-valued fields match when they contain the value.
    ``update`` merges top-level keys into the stored document.
    """

    name = "unknown"

    def find(self, collection: str, where: dict | None = None, *, limit: int | None = None) -> FindResult:
        raise NotImplementedError

    def create(self, collection: str, data: dict) -> dict:
        raise NotImplementedError

    def update(self, collection: str, record_id, data: dict) -> dict:
        raise NotImplementedError

    def atomic(self):
        return contextlib.nullcontext(self)
