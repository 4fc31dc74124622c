# Overview: Flask CLI command groups for bootstrap, users, and reports.

# backend/meatbook/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create all tables that do not exist yet (idempotent).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Users:
# - python -m flask users list
#   List all users with active status.
# - python -m flask users create --username ravi --email ravi@example.com --password "Secret123"
#   Create a user (prompts if options are omitted).
#
# Reports (same summaries as /api/report/*):
# - python -m flask reports daily --user-id 1 --date 2024-05-01 [--json]
# - python -m flask reports range --user-id 1 --from 2024-05-01 --to 2024-05-07 [--json]

import json

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import User
from .services.auth_service import create_user
from .services.record_store import StoreUnavailableError
from .services import reporting_service
from .validation import ConflictError, ValidationError


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables (existing tables are left alone)."""
    click.echo("BUILD  Creating tables...")
    db.create_all()
    click.echo("PASS Database ready.")


@system_group.command('reset-db')
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

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete.")


@click.group('users')
def users_group():
    """User management commands."""


@users_group.command('create')
@click.option('--username', prompt=True, help='Username')
@click.option('--email', prompt=True, help='Email address')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@with_appcontext
def create_user_cli(username, email, password):
    """
    Create a new user.

    Password: 8+ characters with at least one letter and one digit.
    """
    try:
        user = create_user(username=username, email=email, password=password)
    except (ValidationError, ConflictError) as e:
        raise click.ClickException(str(e))
    click.echo(f"PASS Created user: {user.username} ({user.email}) ID {user.id}")


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users."""
    users = db.session.query(User).order_by(User.id.asc()).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*70)
    click.echo(f"{'ID':<5} {'Username':<20} {'Email':<30} {'Active':<8}")
    click.echo("="*70)
    for user in users:
        active_str = "Yes" if user.is_active else "No"
        click.echo(f"{user.id:<5} {user.username:<20} {user.email:<30} {active_str:<8}")
    click.echo("")


@click.group('reports')
def reports_group():
    """Daily and range summaries."""


def _echo_day(report: dict) -> None:
    click.echo(f"\n{report['date']}")
    click.echo("-"*40)
    for label, key in (
        ("Purchased kg", "total_purchased_kg"),
        ("Sold kg", "total_sold_kg"),
        ("Remaining kg", "remaining_kg"),
        ("Purchase cost", "total_purchase_cost"),
        ("Retail revenue", "total_retail_sales_revenue"),
        ("Hotel revenue", "total_hotel_sales_revenue"),
        ("Retail profit", "total_retail_profit"),
        ("Hotel profit", "total_hotel_profit"),
        ("Net profit", "net_profit"),
        ("Vendor payments", "vendor_payments"),
    ):
        click.echo(f"{label:<18} {report[key]:>20}")
    for row in report["inventory"]:
        click.echo(
            f"  {row['meat_type']}-{row['product_cut']:<12} "
            f"in {row['purchased_kg']:>10} out {row['sold_kg']:>10} left {row['remaining_kg']:>10}"
        )


@reports_group.command('daily')
@click.option('--user-id', type=int, required=True, help='Owner of the records')
@click.option('--date', 'day', default=None, help='Calendar day YYYY-MM-DD (default today, UTC)')
@click.option('--json', 'as_json', is_flag=True, help='Print the JSON document')
@with_appcontext
def daily_report_cli(user_id, day, as_json):
    """Print the daily summary for one user."""
    try:
        report = reporting_service.daily_report(user_id, day)
    except (ValidationError, StoreUnavailableError) as e:
        raise click.ClickException(str(e))

    if as_json:
        click.echo(json.dumps(report, indent=2))
        return
    _echo_day(report)


@reports_group.command('range')
@click.option('--user-id', type=int, required=True, help='Owner of the records')
@click.option('--from', 'start', required=True, help='First day YYYY-MM-DD')
@click.option('--to', 'end', required=True, help='Last day YYYY-MM-DD (inclusive)')
@click.option('--json', 'as_json', is_flag=True, help='Print the JSON document')
@with_appcontext
def range_report_cli(user_id, start, end, as_json):
    """Print one summary per day plus period totals."""
    try:
        report = reporting_service.range_report(user_id, start, end)
    except (ValidationError, StoreUnavailableError) as e:
        raise click.ClickException(str(e))

    if as_json:
        click.echo(json.dumps(report, indent=2))
        return
    for day in report["days"]:
        _echo_day(day)
    totals = report["totals"]
    click.echo("\n" + "="*40)
    click.echo(f"{report['from']} .. {report['to']} ({totals['days']} days)")
    click.echo(f"{'Net profit':<18} {totals['net_profit']:>20}")
    click.echo(f"{'Vendor payments':<18} {totals['vendor_payments']:>20}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(reports_group)
