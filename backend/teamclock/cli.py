# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/teamclock/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create all tables that do not exist yet (use `flask db upgrade` for migrations).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Project (tenant) management:
# - python -m flask projects create --name "Acme" --owner-email owner@acme.test --timezone Europe/Berlin
#   Create a project; the owner becomes its ADMIN.
# - python -m flask projects list
#
# Users:
# - python -m flask users create --name "Ana" --email ana@acme.test --password "Password123!" [--join-code ABCD1234]
# - python -m flask users list [--project-id 1]
#
# Permission inspection:
# - python -m flask perms list [--role MANAGER]
#
# Reports:
# - python -m flask reports balance --email ana@acme.test [--start 2024-01-01] [--end 2024-01-31]
#   Print per-day worked/target/balance hours.
#
# Maintenance:
# - python -m flask maintenance cleanup-sessions
#   Delete expired and revoked session tokens.
# - python -m flask maintenance cleanup-security-events --retention-days 90

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import Project, User, ROLES
from .permissions import PERMISSION_DEFINITIONS
from .services.auth_service import create_user, normalize_email, PasswordValidationError, RegistrationError
from .services import permission_service, project_service, report_service, session_service
from .services.project_service import ProjectError
from .time_utils import parse_iso_date


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create missing tables. Existing data is kept."""
    db.create_all()
    click.echo("PASS Database tables created.")


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


@click.group('projects')
def projects_group():
    """Project (tenant) management commands."""


@projects_group.command('create')
@click.option('--name', prompt=True, help='Project name')
@click.option('--owner-email', prompt=True, help='Email of an existing user who becomes ADMIN')
@click.option('--timezone', 'tz_name', default=None, help='IANA timezone for day bucketing')
@with_appcontext
def create_project_cli(name, owner_email, tz_name):
    owner = db.session.query(User).filter_by(email=normalize_email(owner_email)).first()
    if not owner:
        click.echo(f"FAIL No user with email {owner_email}")
        return

    try:
        project = project_service.create_project(user_id=owner.id, name=name, timezone=tz_name)
    except ProjectError as e:
        click.echo(f"FAIL {e}")
        return

    click.echo(f"PASS Created project: {project.name} (ID: {project.id})")
    click.echo(f"     Join code: {project.join_code}")
    click.echo(f"     Timezone:  {project.timezone}")
    click.echo(f"     Admin:     {owner.email}")


@projects_group.command('list')
@with_appcontext
def list_projects():
    projects = db.session.query(Project).order_by(Project.id).all()
    if not projects:
        click.echo("No projects found.")
        return

    click.echo("\n" + "="*80)
    click.echo(f"{'ID':<5} {'Name':<30} {'Join code':<10} {'Timezone':<20} {'Members'}")
    click.echo("="*80)
    for project in projects:
        members = db.session.query(User).filter_by(project_id=project.id).count()
        click.echo(f"{project.id:<5} {project.name:<30} {project.join_code:<10} {project.timezone:<20} {members}")
    click.echo("="*80 + "\n")


@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('create')
@click.option('--name', prompt=True, help='Display name')
@click.option('--email', prompt=True, help='Email address')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--join-code', default=None, help='Join an existing project as EMPLOYEE')
@with_appcontext
def create_user_cli(name, email, password, join_code):
    """
    Create a new user.

    Password must meet strength requirements:
    - Minimum 8 characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit
    - At least one special character
    """
    try:
        user = create_user(name=name, email=email, password=password)
    except PasswordValidationError as e:
        click.echo(f"FAIL Password validation failed: {str(e)}")
        click.echo("Requirements: 8+ chars, uppercase, lowercase, digit, special char")
        return
    except RegistrationError as e:
        click.echo(f"FAIL Failed to create user: {str(e)}")
        return

    click.echo(f"PASS Created user: {user.name} ({user.email}) ID: {user.id}")

    if join_code:
        try:
            project = project_service.join_project(user_id=user.id, join_code=join_code)
        except ProjectError as e:
            click.echo(f"FAIL Could not join project: {e}")
            return
        click.echo(f"     Joined project: {project.name} (ID: {project.id}) as EMPLOYEE")


@users_group.command('list')
@click.option('--project-id', type=int, help='Filter by project ID')
@with_appcontext
def list_users(project_id):
    """List all users with their roles."""
    query = db.session.query(User)

    if project_id:
        query = query.filter_by(project_id=project_id)

    users = query.order_by(User.id).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*100)
    click.echo(f"{'ID':<5} {'Proj':<5} {'Name':<20} {'Email':<30} {'Active':<8} {'Role':<10} {'Manager'}")
    click.echo("="*100)

    for user in users:
        active_str = "Yes" if user.is_active else "No"
        project_str = str(user.project_id) if user.project_id else "-"
        manager_str = str(user.manager_id) if user.manager_id else "-"
        role_str = user.role or "-"
        click.echo(
            f"{user.id:<5} {project_str:<5} {user.name:<20} {user.email:<30} "
            f"{active_str:<8} {role_str:<10} {manager_str}"
        )

    click.echo("="*100 + "\n")


@click.group('perms')
def perms_group():
    """Permission inspection commands."""


@perms_group.command('list')
@click.option('--role', type=click.Choice(list(ROLES)), help='Only permissions granted to this role')
def list_permissions_cli(role):
    """List permissions grouped by category, optionally filtered by role."""
    granted = permission_service.get_role_permissions(role) if role else None

    click.echo(f"\n{'='*80}")
    click.echo(f"Permissions for role: {role}" if role else "All Permissions")
    click.echo(f"{'='*80}\n")

    current_category = None
    total = 0
    for code, name, _description, category in PERMISSION_DEFINITIONS:
        if granted is not None and code not in granted:
            continue
        if category != current_category:
            if current_category:
                click.echo("")
            click.echo(f"CATEGORY {category}")
            click.echo("-"*80)
            current_category = category
        click.echo(f"  {code:<28} {name}")
        total += 1

    click.echo(f"\n Total: {total} permissions\n")


@click.group('reports')
def reports_group():
    """Attendance report commands."""


@reports_group.command('balance')
@click.option('--email', required=True, help='User email')
@click.option('--start', default=None, help='First local date (YYYY-MM-DD)')
@click.option('--end', default=None, help='Last local date (YYYY-MM-DD)')
@with_appcontext
def balance_cli(email, start, end):
    """Print per-day worked, target and balance hours for one user."""
    user = db.session.query(User).filter_by(email=normalize_email(email)).first()
    if not user:
        click.echo(f"FAIL No user with email {email}")
        return

    try:
        start_day = parse_iso_date(start)
        end_day = parse_iso_date(end)
    except ValueError:
        click.echo("FAIL Dates must be YYYY-MM-DD")
        return

    result = report_service.get_result(user, start_day, end_day)

    click.echo(f"{'Date':<12} {'Day':<10} {'Worked':>8} {'Target':>8} {'Balance':>8}")
    for day in result.days.values():
        click.echo(
            f"{day.day.isoformat():<12} {day.day_name:<10} "
            f"{day.worked_hours:>8.2f} {day.target_hours:>8.2f} {day.balance_hours:>+8.2f}"
        )

    summary = result.summary
    click.echo("-"*50)
    click.echo(
        f"{'Total':<23} {summary.worked_hours:>8.2f} {summary.target_hours:>8.2f} {summary.balance_hours:>+8.2f}"
    )
    click.echo(f"Today worked: {result.today_worked_hours:.2f}h  Active: {'Yes' if result.currently_active else 'No'}")


@click.group('maintenance')
def maintenance_group():
    """Maintenance commands."""


@maintenance_group.command('cleanup-sessions')
@with_appcontext
def cleanup_sessions_cli():
    """Delete expired and revoked session tokens."""
    deleted = session_service.cleanup_expired_sessions()
    click.echo(f"Deleted {deleted} expired or revoked sessions.")


@maintenance_group.command('cleanup-security-events')
@click.option('--retention-days', type=int, default=90, show_default=True)
@with_appcontext
def cleanup_security_events_cli(retention_days):
    """
    Cleanup old security events.

    Default retention: 90 days.
    """
    deleted = permission_service.cleanup_security_events(retention_days=retention_days)
    click.echo(f"Deleted {deleted} security events older than {retention_days} days.")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(projects_group)
    app.cli.add_command(users_group)
    app.cli.add_command(perms_group)
    app.cli.add_command(reports_group)
    app.cli.add_command(maintenance_group)
