# Overview: Flask CLI command groups for bootstrap, barcode pool and staff maintenance.

# boutique_pos/cli.py
# Commands Legend (run from the repository root):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init [--barcodes 20]
#   Idempotent bootstrap: creates tables, a default admin account, and an initial barcode pool.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Barcode pool:
# - python -m flask barcodes generate --count 50
#   Append up to 50 available barcodes to the pool.
# - python -m flask barcodes status
#   Show available count and the next barcode to be assigned.
#
# Staff:
# - python -m flask staff list
#   List staff accounts with role and active status.
# - python -m flask staff create --username jane --email jane@example.com --full-name "Jane Doe" --password "Password123!" --role cashier
#   Create a staff account (prompts if options are omitted).

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import Barcode, User
from .models.auth import ROLE_ADMIN, ROLES
from .services import barcode_service, staff_service
from .validation import ApiError


DEFAULT_ADMIN_PASSWORD = "Password123!"


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@click.option('--barcodes', 'barcode_count', default=20, show_default=True,
              help='Barcodes to generate when the pool is empty (0 to skip)')
@with_appcontext
def init_system(barcode_count):
    """
    Initialize the shop database.

    Creates:
    - All tables (no-op for tables that exist)
    - Admin user admin/admin@boutique.local with password "Password123!" if no staff exist
    - An initial barcode pool if none has been generated yet

    SECURITY: Change the admin password immediately in production!
    """
    click.echo("START Initializing database...")
    db.create_all()
    click.echo("PASS Tables ready")

    if db.session.query(User).count() == 0:
        admin = staff_service.create_staff({
            "full_name": "Administrator",
            "username": "admin",
            "email": "admin@boutique.local",
            "password": DEFAULT_ADMIN_PASSWORD,
            "role": ROLE_ADMIN,
        })
        click.echo(f"PASS Created admin user: {admin.username} / {DEFAULT_ADMIN_PASSWORD}")
    else:
        click.echo("PASS Staff accounts already exist, skipping admin user")

    if barcode_count and db.session.query(Barcode).count() == 0:
        remaining = barcode_count
        while remaining > 0:
            batch = min(remaining, barcode_service.MAX_GENERATE)
            barcode_service.generate_barcodes(batch)
            remaining -= batch
        click.echo(f"PASS Generated {barcode_count} barcodes")

    click.echo("DONE Initialization complete")


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


@click.group('barcodes')
def barcodes_group():
    """Barcode pool commands."""


@barcodes_group.command('generate')
@click.option('--count', type=int, required=True, help='Number of barcodes (1-50)')
@with_appcontext
def generate_barcodes_cli(count):
    """Append barcodes to the available pool."""
    try:
        rows = barcode_service.generate_barcodes(count)
    except ApiError as e:
        raise click.ClickException(str(e))
    click.echo(f"PASS Generated {len(rows)} barcodes: {rows[0].barcode} .. {rows[-1].barcode}")


@barcodes_group.command('status')
@with_appcontext
def barcode_status_cli():
    """Show pool availability."""
    info = barcode_service.get_availability()
    level = "CRITICAL" if info["critical_level"] else "LOW" if info["warning_level"] else "OK"
    click.echo(f"Available: {info['available_count']} ({level})")
    click.echo(f"Next:      {info['next_available_barcode'] or '-'}")


@click.group('staff')
def staff_group():
    """Staff account commands."""


@staff_group.command('list')
@with_appcontext
def list_staff_cli():
    """List all staff accounts."""
    users = db.session.query(User).order_by(User.id.asc()).all()

    if not users:
        click.echo("No staff found.")
        return

    click.echo("\n" + "="*90)
    click.echo(f"{'ID':<5} {'Username':<20} {'Email':<30} {'Role':<18} {'Active'}")
    click.echo("="*90)
    for user in users:
        active_str = "Yes" if user.is_active else "No"
        click.echo(f"{user.id:<5} {user.username:<20} {user.email:<30} {user.role:<18} {active_str}")
    click.echo("="*90 + "\n")


@staff_group.command('create')
@click.option('--username', prompt=True, help='Username')
@click.option('--email', prompt=True, help='Email address')
@click.option('--full-name', prompt=True, help='Full name')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice(list(ROLES)), default='cashier', show_default=True, help='Role')
@with_appcontext
def create_staff_cli(username, email, full_name, password, role):
    """
    Create a staff account.

    Password must meet strength requirements:
    - Minimum 8 characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit
    - At least one special character
    """
    try:
        user = staff_service.create_staff({
            "username": username,
            "email": email,
            "full_name": full_name,
            "password": password,
            "role": role,
        })
    except ApiError as e:
        raise click.ClickException(str(e))
    click.echo(f"PASS Created {user.role} '{user.username}' (ID: {user.id})")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(barcodes_group)
    app.cli.add_command(staff_group)
