from __future__ import annotations


class StoreError(RuntimeError):
    pass


class StoreMisconfiguredError(RuntimeError):
    pass
