# Overview: Flask CLI command groups for bootstrap, staff accounts and maintenance.

# backend/barpos/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py.
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap:
# - python -m flask system init [--with-demo-users] [--tables 10]
#   Create the schema (if missing), default categories, tables, and optionally demo staff.
# - python -m flask system check-db
#   Verify the database answers.
#
# Staff accounts:
# - python -m flask users list [--role cashier]
# - python -m flask users create --id rafa --role server --password "..." [--first-name Rafael]
# - python -m flask users set-active rafa --inactive
#
# Maintenance:
# - python -m flask maintenance cleanup-sessions --retention-days 30
#   Delete expired or revoked login sessions older than the retention window.

import click
from flask import current_app
from flask.cli import with_appcontext

from .extensions import db
from .models import BarTable, Category
from .models.enums import UserRole, values
from .services import auth_service, maintenance_service
from .validation import NotFoundError, ValidationError

DEFAULT_CATEGORIES = [
    ("Beers", "Bottled and draught beer"),
    ("Soft drinks", "Sodas, juices and water"),
    ("Spirits", "Whisky, gin, rum, vodka"),
    ("Food", "Snacks and plates"),
]

DEMO_USERS = [
    ("manager", "manager", "Bar", "Manager"),
    ("cashier-001", "cashier", "Front", "Cashier"),
    ("server-001", "server", "Floor", "Server"),
]


@click.group('system')
def system_group():
    """System bootstrap commands."""


@system_group.command('init')
@click.option('--tables', 'table_count', default=10, show_default=True, help='Number of tables to create')
@click.option('--with-demo-users', is_flag=True, help='Create one demo user per role')
@click.option('--demo-password', default='ChangeMe!2026', show_default=True, help='Password for demo users')
@with_appcontext
def init_system(table_count, with_demo_users, demo_password):
    """
    Idempotent bootstrap: schema, default categories, numbered tables and
    (optionally) demo staff accounts.
    """
    db.create_all()

    created_categories = 0
    for name, description in DEFAULT_CATEGORIES:
        if not db.session.query(Category).filter_by(name=name).first():
            db.session.add(Category(name=name, description=description))
            created_categories += 1

    created_tables = 0
    for number in range(1, table_count + 1):
        if not db.session.query(BarTable).filter_by(number=number).first():
            db.session.add(BarTable(number=number, capacity=4, status="free"))
            created_tables += 1
    db.session.commit()

    click.echo(f"Categories created: {created_categories}")
    click.echo(f"Tables created: {created_tables}")

    if with_demo_users:
        for user_id, role, first_name, last_name in DEMO_USERS:
            if auth_service.get_user(user_id):
                click.echo(f"User exists: {user_id}")
                continue
            auth_service.upsert_user(
                user_id=user_id,
                role=role,
                password=demo_password,
                first_name=first_name,
                last_name=last_name,
            )
            click.echo(f"Created user: {user_id} ({role})")

    click.echo("System initialized.")


@system_group.command('check-db')
@with_appcontext
def check_db():
    """Wait for the database using the configured attempts/delay."""
    attempt = maintenance_service.wait_for_database(
        attempts=current_app.config["DB_CONNECT_ATTEMPTS"],
        delay=current_app.config["DB_CONNECT_DELAY"],
    )
    click.echo(f"Database OK (attempt {attempt})")


@click.group('users')
def users_group():
    """Staff account commands."""


@users_group.command('list')
@click.option('--role', type=click.Choice(sorted(values(UserRole))), default=None)
@with_appcontext
def list_users(role):
    users = auth_service.get_users_by_role(role) if role else auth_service.list_users()
    if not users:
        click.echo("No users.")
        return
    for u in users:
        status = "active" if u.is_active else "inactive"
        click.echo(f"{u.id:<20} {u.role:<8} {status:<8} {u.display_name}")


@users_group.command('create')
@click.option('--id', 'user_id', prompt=True, help='Login name')
@click.option('--role', type=click.Choice(sorted(values(UserRole))), prompt=True)
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True)
@click.option('--email', default=None)
@click.option('--first-name', default=None)
@click.option('--last-name', default=None)
@with_appcontext
def create_user(user_id, role, password, email, first_name, last_name):
    """Create or update a staff account."""
    try:
        user = auth_service.upsert_user(
            user_id=user_id,
            role=role,
            password=password,
            email=email,
            first_name=first_name,
            last_name=last_name,
        )
    except ValidationError as e:
        raise click.ClickException(str(e))
    click.echo(f"Saved user: {user.id} ({user.role})")


@users_group.command('set-active')
@click.argument('user_id')
@click.option('--active/--inactive', default=True)
@with_appcontext
def set_active(user_id, active):
    try:
        user = auth_service.update_user_status(user_id, active)
    except NotFoundError as e:
        raise click.ClickException(str(e))
    click.echo(f"{user.id}: {'active' if user.is_active else 'inactive'}")


@click.group('maintenance')
def maintenance_group():
    """Housekeeping commands."""


@maintenance_group.command('cleanup-sessions')
@click.option('--retention-days', default=30, show_default=True, type=int)
@with_appcontext
def cleanup_sessions(retention_days):
    deleted = maintenance_service.cleanup_expired_sessions(retention_days=retention_days)
    click.echo(f"Deleted {deleted} login sessions.")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(maintenance_group)
