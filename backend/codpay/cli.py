from __future__ import annotations

import json

import click
from flask.cli import AppGroup

from codpay.extensions import db
from codpay.runtime import get_cod_runtime
from codpay.services.cod.confirm_order import find_cod_transaction
from codpay.services.cod.errors import CODError
from codpay.services.cod.fulfillment import mark_payment_collected, reject_order, update_delivery_status
from codpay.services.cod.reconciliation import find_stalled_confirmations
from codpay.services.cod.types import DeliveryStatus

cod_cli = AppGroup("cod", help="Cash on delivery fulfillment commands.")


def _echo_json(payload) -> None:
    click.echo(json.dumps(payload, indent=2, default=str))


def _fail(error: CODError):
    raise click.ClickException(f"{error.code}: {error.message}")


@cod_cli.command("init-db")
def init_db_command():
    """Create the COD tables (development databases)."""
    db.create_all()
    click.echo("cod_tables_ready")


@cod_cli.command("show")
@click.argument("cod_order_id")
def show_command(cod_order_id):
    runtime = get_cod_runtime()
    try:
        transaction = find_cod_transaction(runtime.store, cod_order_id, runtime.adapter.collections)
    except CODError as e:
        _fail(e)
    _echo_json(transaction)


@cod_cli.command("confirm")
@click.argument("cod_order_id")
@click.option("--email", "customer_email", default=None, help="Owner email for the order when no user is given.")
def confirm_command(cod_order_id, customer_email):
    runtime = get_cod_runtime()
    try:
        result = runtime.adapter.confirm_order(
            runtime.store,
            cod_order_id=cod_order_id,
            customer_email=customer_email,
        )
    except CODError as e:
        _fail(e)
    _echo_json(result.to_dict())


@cod_cli.command("delivery")
@click.argument("cod_order_id")
@click.argument("status", type=click.Choice(DeliveryStatus.ALL))
def delivery_command(cod_order_id, status):
    runtime = get_cod_runtime()
    try:
        transaction = update_delivery_status(
            runtime.store, cod_order_id, status, collections=runtime.adapter.collections
        )
    except CODError as e:
        _fail(e)
    _echo_json(transaction.get("cod") or {})


@cod_cli.command("collect")
@click.argument("cod_order_id")
@click.option("--date", "collection_date", default=None, help="Collection date (YYYY-MM-DD), defaults to today.")
def collect_command(cod_order_id, collection_date):
    runtime = get_cod_runtime()
    try:
        transaction = mark_payment_collected(
            runtime.store, cod_order_id, collection_date, collections=runtime.adapter.collections
        )
    except CODError as e:
        _fail(e)
    except ValueError:
        raise click.BadParameter("expected YYYY-MM-DD", param_hint="--date")
    _echo_json(transaction.get("cod") or {})


@cod_cli.command("reject")
@click.argument("cod_order_id")
def reject_command(cod_order_id):
    runtime = get_cod_runtime()
    try:
        transaction = reject_order(runtime.store, cod_order_id, collections=runtime.adapter.collections)
    except CODError as e:
        _fail(e)
    _echo_json({"status": transaction.get("status"), "cod": transaction.get("cod") or {}})


@cod_cli.command("reconcile")
def reconcile_command():
    """List confirmations that stopped after the order was created."""
    runtime = get_cod_runtime()
    summary = find_stalled_confirmations(runtime.store, runtime.adapter.collections)
    _echo_json(summary)
    if summary["stalled_count"]:
        raise SystemExit(2)


def register_cli(app) -> None:
    app.cli.add_command(cod_cli)
