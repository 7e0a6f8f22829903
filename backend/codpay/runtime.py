from __future__ import annotations

import os
from dataclasses import dataclass

from flask import current_app

from codpay.integrations.store.base import RecordStore
from codpay.integrations.store.factory import build_record_store
from codpay.services.cod.adapter import CODAdapter, cod_adapter
from codpay.services.cod.policy import collections_from_env, policy_from_env

EXTENSION_KEY = "codpay"


@dataclass
class CODRuntime:
    adapter: CODAdapter
    store: RecordStore


def init_cod_runtime(app, *, adapter: CODAdapter | None = None, store: RecordStore | None = None) -> CODRuntime:
    if adapter is None:
        adapter = cod_adapter(
            label=(os.getenv("COD_LABEL") or "").strip() or None,
            policy=policy_from_env(),
            collections=collections_from_env(),
        )
    if store is None:
        store = build_record_store(app.config, adapter.collections)
    runtime = CODRuntime(adapter=adapter, store=store)
    app.extensions[EXTENSION_KEY] = runtime
    app.logger.info(
        "cod_runtime_ready store=%s label=%s currencies=%s regions=%s",
        store.name,
        adapter.label,
        ",".join(adapter.policy.supported_currencies) or "*",
        ",".join(adapter.policy.allowed_regions) or "*",
    )
    return runtime


def get_cod_runtime(app=None) -> CODRuntime:
    target = app or current_app
    runtime = target.extensions.get(EXTENSION_KEY)
    if runtime is None:
        raise RuntimeError("COD runtime not initialised; call init_cod_runtime(app)")
    return runtime
