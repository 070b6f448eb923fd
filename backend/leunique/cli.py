# Overview: Flask CLI command groups for bootstrap, inspection, and user maintenance.

# backend/leunique/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/inspection:
# - python -m flask system init [--username Admin] --password <secret>
#   Open the snapshot (seeding sample data on first run) and create a super
#   admin when no active one exists.
# - python -m flask system info
#   Show the snapshot location, persistence state and record counts.
#
# User maintenance:
# - python -m flask users list [--role vendor]
#   List users with role and active status.
# - python -m flask users create --username ana --name "Ana" --role vendor
#   Create a user (prompts for the password).
# - python -m flask users set-password ana
#   Reset a password (prompts) and sign the user out everywhere.
# - python -m flask users deactivate ana
#   Block a user from signing in and end their sessions.

import click
from flask import current_app
from flask.cli import with_appcontext

from .extensions import get_store, get_sessions
from .permissions import Role
from .seed import BootstrapError, bootstrap_super_admin
from .services.auth_service import PasswordValidationError, register_user, validate_password_strength
from .services.password_service import looks_hashed
from .validation import ConflictError, ValidationError

ROLE_CHOICES = [role.value for role in Role]


@click.group('system')
def system_group():
    """System bootstrap and inspection."""


@system_group.command('init')
@click.option('--username', default=None, help='Super admin username (default: LEUNIQUE_ADMIN_USERNAME)')
@click.option('--password', default=None, help='Super admin password (default: LEUNIQUE_ADMIN_PASSWORD)')
@with_appcontext
def init_system(username, password):
    """Open (or seed) the snapshot and make sure a super admin exists. Idempotent."""
    store = get_store()
    cfg = current_app.config

    click.echo(f"START Initializing Le Unique data at {store.snapshot_path}")

    try:
        admin, created = bootstrap_super_admin(
            store,
            username=username or cfg["BOOTSTRAP_ADMIN_USERNAME"],
            password=password or cfg["BOOTSTRAP_ADMIN_PASSWORD"],
        )
    except BootstrapError as e:
        click.echo(f"FAIL {e}")
        raise SystemExit(1)
    click.echo(f"PASS Super admin: {admin.username} (ID: {admin.id}){' created' if created else ''}")

    for key, count in store.counts().items():
        click.echo(f"     {key:<24} {count}")

    if store.degraded:
        click.echo(f"FAIL Snapshot write failed: {store.persist_error}")
        raise SystemExit(1)


@system_group.command('info')
@with_appcontext
def system_info():
    """Show snapshot location, persistence state and record counts."""
    store = get_store()

    click.echo(f"Snapshot:        {store.snapshot_path}")
    click.echo(f"Last written:    {store.last_persisted_at or '-'}")
    click.echo(f"Persist status:  {'DEGRADED (' + store.persist_error + ')' if store.degraded else 'ok'}")
    click.echo(f"Active sessions: {get_sessions().active_count()}")
    click.echo("")
    for key, count in store.counts().items():
        click.echo(f"{key:<24} {count}")


@click.group('users')
def users_group():
    """Dashboard user maintenance."""


@users_group.command('list')
@click.option('--role', type=click.Choice(ROLE_CHOICES), default=None, help='Only users with this role')
@with_appcontext
def list_users(role):
    users = get_store().list_users(role=Role(role) if role else None)
    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "=" * 78)
    click.echo(f"{'ID':<5} {'Username':<20} {'Name':<25} {'Role':<12} {'Active':<7} {'Hash'}")
    click.echo("=" * 78)
    for user in users:
        active_str = "yes" if user.active else "no"
        hash_str = "ok" if looks_hashed(user.password) else "BAD"
        click.echo(f"{user.id:<5} {user.username:<20} {user.name:<25} {user.role.value:<12} {active_str:<7} {hash_str}")
    click.echo("=" * 78 + "\n")


@users_group.command('create')
@click.option('--username', required=True, help='Login name (unique, case-insensitive)')
@click.option('--name', default=None, help='Display name (defaults to username)')
@click.option('--role', type=click.Choice(ROLE_CHOICES), default=Role.VENDOR.value, show_default=True)
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True)
@with_appcontext
def create_user_cli(username, name, role, password):
    try:
        user = register_user(
            get_store(),
            {"username": username, "name": name, "role": role, "password": password},
            min_password_length=current_app.config["PASSWORD_MIN_LENGTH"],
        )
    except (ValidationError, PasswordValidationError, ConflictError) as e:
        click.echo(f"FAIL {e}")
        raise SystemExit(1)

    click.echo(f"PASS Created user: {user.username} (ID: {user.id}) with role '{user.role.value}'")


@users_group.command('set-password')
@click.argument('username')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True)
@with_appcontext
def set_password_cli(username, password):
    store = get_store()
    user = store.get_user_by_username(username)
    if user is None:
        click.echo(f"FAIL User '{username}' not found")
        raise SystemExit(1)

    try:
        validate_password_strength(password, current_app.config["PASSWORD_MIN_LENGTH"])
    except PasswordValidationError as e:
        click.echo(f"FAIL {e}")
        raise SystemExit(1)

    store.set_user_password(user.id, password)
    revoked = get_sessions().revoke_all_user_sessions(user.id)
    click.echo(f"PASS Password updated for {user.username} ({revoked} session(s) ended)")


@users_group.command('deactivate')
@click.argument('username')
@with_appcontext
def deactivate_user_cli(username):
    store = get_store()
    user = store.get_user_by_username(username)
    if user is None:
        click.echo(f"FAIL User '{username}' not found")
        raise SystemExit(1)

    store.update_user(user.id, {"active": False})
    revoked = get_sessions().revoke_all_user_sessions(user.id)
    click.echo(f"PASS Deactivated {user.username} ({revoked} session(s) ended)")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
