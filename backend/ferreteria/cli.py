# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/ferreteria/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Idempotent bootstrap: creates tables and one profile per role.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# User inspection/bootstrap:
# - python -m flask users list
#   List all users with role and active status.
# - python -m flask users create --full-name "Ana" --email ana@donlucho.cl --role cajero
#   Create a profile (prompts if options are omitted).
#
# Alerts:
# - python -m flask alerts scan-low-stock
#   Raise an unread alert for every product at or below its minimum stock.

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import User
from .permissions import ROLES, Role
from .services.alert_service import scan_low_stock
from .services.products_service import list_products
from .services.user_service import create_user
from .validation import ConflictError, ValidationError


DEFAULT_PROFILES = [
    ("Gerente", "gerente@donlucho.local", Role.MANAGER),
    ("Contador", "contador@donlucho.local", Role.ACCOUNTANT),
    ("Cajero", "cajero@donlucho.local", Role.CASHIER),
    ("Bodeguero", "bodeguero@donlucho.local", Role.WAREHOUSE),
]


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """
    Create tables and one default profile per role.

    Safe to run again: existing emails are left alone.
    """
    click.echo("START Initializing Ferreteria Don Lucho...")
    db.create_all()

    for full_name, email, role in DEFAULT_PROFILES:
        existing = db.session.query(User).filter_by(email=email).first()
        if existing:
            click.echo(f"PASS Profile exists: {email} ({existing.role or 'no role'})")
            continue
        user = create_user(full_name=full_name, email=email, role=role, actor_user_id=None)
        click.echo(f"PASS Created profile: {email} (ID: {user.id}, role: {role})")

    click.echo("DONE System ready.")


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

    click.echo("PASS Database reset complete. Run 'python -m flask system init' to initialize.")


@click.group('users')
def users_group():
    """User profile commands."""


@users_group.command('create')
@click.option('--full-name', prompt=True, help='Full name')
@click.option('--email', prompt=True, help='Email address')
@click.option('--role', type=click.Choice(list(ROLES)), prompt=True, help='Role')
@with_appcontext
def create_user_cli(full_name, email, role):
    """Create a user profile with a role."""
    try:
        user = create_user(full_name=full_name, email=email, role=role, actor_user_id=None)
    except (ValidationError, ConflictError) as e:
        click.echo(f"FAIL {e}")
        raise SystemExit(1)
    click.echo(f"PASS Created user {user.email} (ID: {user.id}, role: {user.role})")


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users with their roles."""
    users = db.session.query(User).order_by(User.id.asc()).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*90)
    click.echo(f"{'ID':<5} {'Name':<25} {'Email':<35} {'Active':<8} {'Role'}")
    click.echo("="*90)

    for user in users:
        active_str = "Yes" if user.is_active else "No"
        click.echo(f"{user.id:<5} {user.full_name:<25} {user.email:<35} {active_str:<8} {user.role or '-'}")

    click.echo("="*90 + "\n")


@click.group('alerts')
def alerts_group():
    """Alert maintenance commands."""


@alerts_group.command('scan-low-stock')
@with_appcontext
def scan_low_stock_cli():
    """Raise an alert for every product at or below its minimum stock."""
    raised = scan_low_stock(list_products())
    click.echo(f"Raised {len(raised)} low-stock alert(s).")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(alerts_group)
