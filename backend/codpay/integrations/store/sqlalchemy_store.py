from __future__ import annotations

import contextlib

from sqlalchemy.exc import SQLAlchemyError

from codpay.extensions import db
from codpay.integrations.common import StoreError, StoreMisconfiguredError
from codpay.integrations.store.base import FindResult, RecordStore
from codpay.models import Cart, Order, Transaction


def models_for_collections(collections) -> dict:
    return {
        collections.carts: Cart,
        collections.orders: Order,
        collections.transactions: Transaction,
    }


class SQLAlchemyRecordStore(RecordStore):
    """Record store over the Flask-SQLAlchemy session.

    Each write commits on its own unless it runs inside ``atomic()``, in
    which case everything commits together when the outermost block exits.
    """

    name = "sqlalchemy"

    def __init__(self, models: dict, session=None):
        self.models = dict(models or {})
        self._session = session
        self._depth = 0

    @property
    def session(self):
        return self._session if self._session is not None else db.session

    def _model(self, collection: str):
        model = self.models.get(collection)
        if model is None:
            raise StoreMisconfiguredError(f"STORE_UNKNOWN_COLLECTION:{collection}")
        return model

    def _get(self, model, record_id):
        try:
            pk = int(record_id)
        except (TypeError, ValueError):
            return None
        return self.session.get(model, pk)

    def _finish_write(self) -> None:
        if self._depth:
            self.session.flush()
        else:
            self.session.commit()

    def find(self, collection: str, where: dict | None = None, *, limit: int | None = None) -> FindResult:
        model = self._model(collection)
        query = self.session.query(model)
        for path, value in (where or {}).items():
            clause = model.where_clause(path, value)
            if clause is None:
                raise StoreError(f"STORE_UNSUPPORTED_FILTER:{collection}.{path}")
            query = query.filter(clause)
        try:
            total = query.count()
            query = query.order_by(model.id.asc())
            if limit is not None:
                query = query.limit(max(0, int(limit)))
            rows = query.all()
        except SQLAlchemyError as e:
            raise StoreError(f"STORE_FIND_FAILED:{collection}") from e
        return FindResult(docs=[row.to_dict() for row in rows], total_docs=int(total))

    def create(self, collection: str, data: dict) -> dict:
        model = self._model(collection)
        row = model()
        try:
            row.apply_document(dict(data or {}))
            self.session.add(row)
            self._finish_write()
        except SQLAlchemyError as e:
            if not self._depth:
                self.session.rollback()
            raise StoreError(f"STORE_CREATE_FAILED:{collection}") from e
        return row.to_dict()

    def update(self, collection: str, record_id, data: dict) -> dict:
        model = self._model(collection)
        row = self._get(model, record_id)
        if row is None:
            raise StoreError(f"STORE_RECORD_NOT_FOUND:{collection}/{record_id}")
        try:
            row.apply_document(dict(data or {}))
            self.session.add(row)
            self._finish_write()
        except SQLAlchemyError as e:
            if not self._depth:
                self.session.rollback()
            raise StoreError(f"STORE_UPDATE_FAILED:{collection}/{record_id}") from e
        return row.to_dict()

    @contextlib.contextmanager
    def atomic(self):
        self._depth += 1
        try:
            yield self
        except Exception:
            self._depth -= 1
            if not self._depth:
                self.session.rollback()
            raise
        self._depth -= 1
        if not self._depth:
            try:
                self.session.commit()
            except SQLAlchemyError as e:
                self.session.rollback()
                raise StoreError("STORE_COMMIT_FAILED") from e
