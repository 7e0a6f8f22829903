from __future__ import annotations

from codpay.integrations.common import StoreMisconfiguredError
from codpay.integrations.store.base import RecordStore
from codpay.integrations.store.memory_store import InMemoryRecordStore
from codpay.integrations.store.sqlalchemy_store import SQLAlchemyRecordStore, models_for_collections
from codpay.services.cod.policy import DEFAULT_COLLECTIONS


def _settings_value(settings, key: str, default=None):
    if isinstance(settings, dict):
        return settings.get(key, default)
    return getattr(settings, key, default)


def build_record_store(settings, collections=None) -> RecordStore:
    backend = (_settings_value(settings, "COD_STORE_BACKEND", "sqlalchemy") or "sqlalchemy").strip().lower()
    collections = collections or DEFAULT_COLLECTIONS

    if backend == "memory":
        return InMemoryRecordStore()

    if backend != "sqlalchemy":
        raise StoreMisconfiguredError(f"STORE_MISCONFIGURED:backend={backend}")

    names = [collections.carts, collections.orders, collections.transactions]
    if len(set(names)) != len(names):
        raise StoreMisconfiguredError("STORE_MISCONFIGURED:collection names must be distinct")

    return SQLAlchemyRecordStore(models_for_collections(collections))


def store_health(settings) -> dict:
    backend = (_settings_value(settings, "COD_STORE_BACKEND", "sqlalchemy") or "sqlalchemy").strip().lower()
    status = "configured" if backend in ("sqlalchemy", "memory") else "misconfigured"
    return {
        "status": status,
        "backend": backend,
        "durable": backend == "sqlalchemy",
    }
