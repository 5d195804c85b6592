# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Idempotent: creates tables and the admin account from ADMIN_EMAIL / ADMIN_PASSWORD / ADMIN_NAME.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Users:
# - python -m flask users create-admin --email admin@company.com --name "Admin"
#   Create an additional admin account (prompts for the password).
# - python -m flask users list [--role employee]
#   List users with role, employee code and active status.
#
# Maintenance:
# - python -m flask maintenance cleanup-sessions --days 30
#   Delete expired or revoked session tokens older than the window.

import click
from flask import current_app
from flask.cli import with_appcontext

from .errors import DomainError
from .extensions import db
from .models import User, ROLES, ROLE_ADMIN
from .services.auth_service import create_user
from .services import session_service


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


def _ensure_admin(email: str, password: str, name: str) -> None:
    existing = db.session.query(User).filter_by(email=email.strip().lower()).first()
    if existing:
        click.echo(f"WARN  User '{existing.email}' already exists (role: {existing.role}), skipping...")
        return
    try:
        user = create_user(email=email, password=password, name=name, role=ROLE_ADMIN)
    except DomainError as e:
        click.echo(f"FAIL Failed to create admin '{email}': {e.message}")
        raise SystemExit(1)
    click.echo(f"PASS Created admin: {user.email} (ID: {user.id})")


@system_group.command('init')
@with_appcontext
def init_system():
    """
    Create the schema and seed the admin account from config.

    SECURITY: Change the default admin password immediately in production!
    """
    click.echo("START Initializing workforce system...")
    db.create_all()
    click.echo("PASS Tables created")

    config = current_app.config
    _ensure_admin(config["ADMIN_EMAIL"], config["ADMIN_PASSWORD"], config["ADMIN_NAME"])
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

    click.echo("PASS Database reset complete. Run 'python -m flask system init' to seed the admin.")


@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('create-admin')
@click.option('--email', prompt=True, help='Email address')
@click.option('--name', prompt=True, help='Display name')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@with_appcontext
def create_admin_cli(email, name, password):
    """Create an admin account."""
    _ensure_admin(email, password, name)


@users_group.command('list')
@click.option('--role', type=click.Choice(ROLES), help='Filter by role')
@with_appcontext
def list_users(role):
    """List users."""
    query = db.session.query(User)
    if role:
        query = query.filter_by(role=role)
    users = query.order_by(User.id).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo(f"{'ID':<5} {'Email':<32} {'Name':<24} {'Role':<10} {'Code':<12} {'Active'}")
    click.echo("-" * 92)
    for user in users:
        code = user.employee.employee_code if user.employee else "-"
        active_str = "yes" if user.is_active else "no"
        click.echo(f"{user.id:<5} {user.email:<32} {user.name[:24]:<24} {user.role:<10} {code:<12} {active_str}")


@click.group('maintenance')
def maintenance_group():
    """Housekeeping commands."""


@maintenance_group.command('cleanup-sessions')
@click.option('--days', type=int, default=30, show_default=True, help='Keep tokens newer than this')
@with_appcontext
def cleanup_sessions(days):
    """Delete expired or revoked session tokens."""
    deleted = session_service.cleanup_expired_sessions(days=days)
    click.echo(f"PASS Deleted {deleted} session token(s) older than {days} days")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(maintenance_group)
