from __future__ import annotations

import argparse
import json
import os
import sys


def _bootstrap_app():
    from codpay import create_app

    app = create_app()
    app.app_context().push()
    return app


def main():
    parser = argparse.ArgumentParser(description="Report COD confirmations that stopped before the transaction update.")
    parser.add_argument("--resume", action="store_true", help="Re-run confirm_order for every stalled COD order.")
    args = parser.parse_args()

    _bootstrap_app()
    from codpay.runtime import get_cod_runtime
    from codpay.services.cod.errors import CODError
    from codpay.services.cod.reconciliation import find_stalled_confirmations

    runtime = get_cod_runtime()
    summary = find_stalled_confirmations(runtime.store, runtime.adapter.collections)
    if args.resume:
        resumed = []
        for item in summary["stalled_items"]:
            try:
                result = runtime.adapter.confirm_order(runtime.store, cod_order_id=item["cod_order_id"])
                resumed.append({"cod_order_id": item["cod_order_id"], "ok": True, "order_id": result.order_id})
            except CODError as e:
                resumed.append({"cod_order_id": item["cod_order_id"], "ok": False, "error": e.code})
        summary["resumed"] = resumed

    print(json.dumps(summary, indent=2))
    stalled_count = int(summary.get("stalled_count") or 0)
    if args.resume:
        failed = [r for r in summary["resumed"] if not r["ok"]]
        return 0 if not failed else 2
    return 0 if stalled_count == 0 else 2


if __name__ == "__main__":
    os.environ.setdefault("FLASK_APP", "main.py")
    sys.exit(main())
