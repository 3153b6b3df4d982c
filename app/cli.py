"""
Flask CLI commands for one-off administrative tasks.

Usage:
    flask import-devotions devotions.json            # Dry run (validate + count)
    flask import-devotions devotions.json --confirm  # Insert into the store

The file holds a JSON array of objects with title, verse, content and date.
"""

from __future__ import annotations

import json

import click
from flask.cli import with_appcontext


@click.command("import-devotions")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.option("--confirm", is_flag=True, default=False,
              help="Actually insert devotions. Without this flag, only validates (dry run).")
@with_appcontext
def import_devotions_command(path: str, confirm: bool) -> None:
    """Bulk import devotions from a JSON file."""
    from app.services import supabase_client
    from app.utils.errors import StoreError
    from app.utils.validation import validate_devotion_form

    store = supabase_client.get_store(admin=True)
    if store is None:
        click.echo("Error: content store not configured (check SUPABASE_URL / SUPABASE_ANON_KEY).")
        raise SystemExit(1)

    with open(path, encoding="utf-8") as fh:
        try:
            records = json.load(fh)
        except json.JSONDecodeError as e:
            click.echo(f"Error: {path} is not valid JSON ({e}).")
            raise SystemExit(1)

    if not isinstance(records, list):
        click.echo("Error: expected a JSON array of devotions.")
        raise SystemExit(1)

    valid = []
    for i, record in enumerate(records, 1):
        payload, errors = validate_devotion_form(record if isinstance(record, dict) else {})
        if errors:
            detail = "; ".join(f"{k}: {v}" for k, v in errors.items())
            click.echo(f"  [{i}/{len(records)}] Skipped: {detail}")
            continue
        valid.append(payload)

    click.echo(f"Found {len(valid)} valid devotion(s) out of {len(records)}.")

    if not confirm:
        click.echo("\nDry run: nothing inserted. Use --confirm to import.")
        return

    inserted = 0
    failed = 0
    for i, payload in enumerate(valid, 1):
        try:
            store.insert(payload)
            inserted += 1
        except StoreError as e:
            failed += 1
            click.echo(f"  [{i}/{len(valid)}] Failed: {payload['title']} ({type(e).__name__})")

    click.echo(f"\nDone. Inserted: {inserted}, Failed: {failed}")
