# Overview: Flask CLI command group for storage inspection, manual export/import, and reload.

# backend/billing/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to billing (PowerShell: $env:FLASK_APP="billing").
# - Use: python -m flask storage <command> [options]
#
# - python -m flask storage status
#   Active durable backend, capability, per-store counts and volatile usage.
# - python -m flask storage export --out ./asset
#   Write products.json, transactions.json and expenses.json to a folder.
# - python -m flask storage import ./asset/products.json
#   Replace a store from a JSON file (store inferred from the file name).
# - python -m flask storage reload
#   Re-run the durable load (bundled files unless a folder is granted).

import json
from pathlib import Path

import click
from flask.cli import with_appcontext

from .storage import STORES, get_storage
from .validation import ValidationError, validate_record_list


@click.group('storage')
def storage_group():
    """Record store inspection and manual export/import."""


@storage_group.command('status')
@with_appcontext
def storage_status():
    """Show backend capability and store counts."""
    status = get_storage().status()
    click.echo(f"Backend: {status['backend']} ({status['capability']})")
    for store, count in status["counts"].items():
        click.echo(f"  {store}: {count} records")
    click.echo(f"Volatile usage: {status['volatile_usage_bytes']} / {status['volatile_quota_bytes']} bytes")
    for entry in status["volatile_entries"]:
        click.echo(f"  {entry['key']}: {entry['size_bytes']} bytes, updated {entry['updated_at']}")


@storage_group.command('export')
@click.option('--out', 'out_dir', required=True, type=click.Path(file_okay=False), help='Destination folder')
@with_appcontext
def storage_export(out_dir):
    """Export every store as pretty-printed JSON."""
    target = Path(out_dir)
    target.mkdir(parents=True, exist_ok=True)
    storage = get_storage()
    for store in STORES:
        file_name, body = storage.export_store(store)
        (target / file_name).write_text(body, encoding="utf-8")
        click.echo(f"PASS Wrote {target / file_name}")


@storage_group.command('import')
@click.argument('path', type=click.Path(exists=True, dir_okay=False))
@click.option('--store', type=click.Choice(STORES), default=None, help='Target store (default: from file name)')
@with_appcontext
def storage_import(path, store):
    """Replace a store from a JSON file."""
    if store is None:
        name = Path(path).name.lower()
        store = next((s for s in STORES if s in name), None)
        if store is None:
            raise click.UsageError("Cannot infer store from file name; pass --store")

    try:
        records = validate_record_list(json.loads(Path(path).read_text(encoding="utf-8")))
    except (json.JSONDecodeError, ValidationError) as exc:
        raise click.ClickException(f"Failed to load file: {exc}")

    count = get_storage().import_store(store, records)
    click.echo(f"PASS Imported {count} records into {store}")


@storage_group.command('reload')
@with_appcontext
def storage_reload():
    """Reload durable data into the cache."""
    storage = get_storage()
    storage.reload()
    click.echo(f"PASS Reloaded: {storage.status()['counts']}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(storage_group)
