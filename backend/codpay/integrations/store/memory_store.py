from __future__ import annotations

import contextlib
import copy
import threading
import uuid
from datetime import datetime

from codpay.integrations.common import StoreError
from codpay.integrations.store.base import FindResult, RecordStore

_MISSING = object()


def _resolve_path(doc: dict, path: str):
    current = doc
    for part in str(path or "").split("."):
        if not isinstance(current, dict) or part not in current:
            return _MISSING
        current = current[part]
    return current


def _matches(doc: dict, where: dict | None) -> bool:
    for path, expected in (where or {}).items():
        actual = _resolve_path(doc, path)
        if actual is _MISSING:
            if expected is None:
                continue
            return False
        if isinstance(actual, list) and not isinstance(expected, list):
            if expected not in actual:
                return False
            continue
        if actual != expected:
            return False
    return True


class InMemoryRecordStore(RecordStore):
    name = "memory"

    def __init__(self, seed: dict | None = None):
        self._lock = threading.RLock()
        self._collections: dict[str, dict] = {}
        for collection, docs in (seed or {}).items():
            for doc in docs:
                record = copy.deepcopy(doc)
                record.setdefault("id", uuid.uuid4().hex)
                self._collections.setdefault(collection, {})[record["id"]] = record

    def find(self, collection: str, where: dict | None = None, *, limit: int | None = None) -> FindResult:
        with self._lock:
            rows = [
                copy.deepcopy(doc)
                for doc in self._collections.get(collection, {}).values()
                if _matches(doc, where)
            ]
        total = len(rows)
        if limit is not None:
            rows = rows[: max(0, int(limit))]
        return FindResult(docs=rows, total_docs=total)

    def create(self, collection: str, data: dict) -> dict:
        record = copy.deepcopy(dict(data or {}))
        record["id"] = uuid.uuid4().hex
        record.setdefault("created_at", datetime.utcnow().isoformat())
        with self._lock:
            self._collections.setdefault(collection, {})[record["id"]] = record
        return copy.deepcopy(record)

    def update(self, collection: str, record_id, data: dict) -> dict:
        with self._lock:
            record = self._collections.get(collection, {}).get(record_id)
            if record is None:
                raise StoreError(f"STORE_RECORD_NOT_FOUND:{collection}/{record_id}")
            for key, value in (data or {}).items():
                if key == "id":
                    continue
                record[key] = copy.deepcopy(value)
            return copy.deepcopy(record)

    @contextlib.contextmanager
    def atomic(self):
        with self._lock:
            snapshot = copy.deepcopy(self._collections)
            try:
                yield self
            except Exception:
                self._collections = snapshot
                raise
