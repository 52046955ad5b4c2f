# Overview: Flask CLI command groups for bootstrap and inspection.

# backend/workshop_ledger/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to workshop_ledger (PowerShell: $env:FLASK_APP="workshop_ledger").
# - Use: python -m flask <group> <command> [options]
#
# Database bootstrap:
# - python -m flask ledger init-db
#   Create all tables that do not exist yet (use `flask db upgrade` for migrations).
# - python -m flask ledger reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Reports:
# - python -m flask reports dashboard --from 2026-01-01 --to 2026-01-31
#   Print the dashboard snapshot as JSON (defaults to the current month).
# - python -m flask reports cashflow [--from ...] [--to ...]
#   Print received / paid / net per counterparty bucket.
#
# Audit:
# - python -m flask audit recent --limit 20
#   Show the most recent audit entries, newest first.

import json

import click
from flask.cli import with_appcontext

from .extensions import db
from .services import audit_service, reporting_service
from .validation import ValidationError


@click.group('ledger')
def ledger_group():
    """Database bootstrap commands."""


@ledger_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables (idempotent)."""
    db.create_all()
    click.echo("OK Tables created")


@ledger_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()
    click.echo("CREATE  Recreating schema...")
    db.create_all()
    click.echo("OK Database reset")


@click.group('reports')
def reports_group():
    """Read-only financial reports."""


def _echo_report(build, start, end):
    try:
        report = build(start, end)
    except ValidationError as e:
        raise click.BadParameter(str(e))
    click.echo(json.dumps(report, indent=2, default=str))


@reports_group.command('dashboard')
@click.option('--from', 'start', default=None, help='First day (YYYY-MM-DD)')
@click.option('--to', 'end', default=None, help='Last day (YYYY-MM-DD)')
@with_appcontext
def dashboard(start, end):
    """Dashboard snapshot for a date range."""
    _echo_report(reporting_service.dashboard, start, end)


@reports_group.command('cashflow')
@click.option('--from', 'start', default=None, help='First day (YYYY-MM-DD)')
@click.option('--to', 'end', default=None, help='Last day (YYYY-MM-DD)')
@with_appcontext
def cashflow(start, end):
    """Money received and paid per counterparty."""
    _echo_report(reporting_service.cashflow, start, end)


@click.group('audit')
def audit_group():
    """Audit trail inspection."""


@audit_group.command('recent')
@click.option('--limit', default=20, show_default=True, type=int)
@with_appcontext
def recent(limit):
    """Show the most recent audit entries."""
    entries = audit_service.recent(limit)
    if not entries:
        click.echo("No audit entries.")
        return

    click.echo(f"{'When':<22} {'Action':<8} {'Entity':<20} {'User':<6} Summary")
    click.echo("-" * 90)
    for entry in entries:
        d = entry.to_dict()
        entity = f"{d['entity_type']}:{d['entity_id']}"
        user = d['user_id'] if d['user_id'] is not None else "-"
        click.echo(f"{d['timestamp'] or '':<22} {d['action']:<8} {entity:<20} {user!s:<6} {d['summary'] or ''}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(ledger_group)
    app.cli.add_command(reports_group)
    app.cli.add_command(audit_group)
