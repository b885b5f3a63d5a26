# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/jewelpos/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Use: flask --app jewelpos <group> <command> [options]
#
# System bootstrap/repair:
# - flask --app jewelpos system init
#   Idempotent bootstrap: roles, permissions, role grants and default users.
# - flask --app jewelpos system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Users:
# - flask --app jewelpos users list
# - flask --app jewelpos users create --username ani --email ani@toko.local --password "Password123!" --role cashier
# - flask --app jewelpos users set-role --username ani --role manager
# - flask --app jewelpos users deactivate --username ani
#
# Reference data:
# - flask --app jewelpos catalog seed-demo
#   Two locations with boxes, three gold categories and a few products.
#
# Maintenance:
# - flask --app jewelpos members recalculate-stats [--member-id 7]
#   Re-derive member totals, points and tier from completed transactions.
# - flask --app jewelpos prices check [--tz Asia/Jakarta]
#   Report whether today's gold prices have been entered.

from decimal import Decimal

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import GoldCategory, Location, Role, User
from .models.enums import LocationType
from .services import catalog_service, loyalty_service, permission_service, price_service
from .services.auth_service import assign_role, create_user, create_default_roles, PasswordValidationError
from .services.session_service import revoke_all_user_sessions
from .validation import ServiceError


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@click.option('--password', default='Password123!', help='Password for the default users')
@with_appcontext
def init_system(password):
    """
    Initialize roles, permissions and default users.

    Creates:
    - Roles: admin, manager, cashier
    - All permissions, with the default grants per role
    - Users: admin/admin@jewelpos.local, manager/manager@jewelpos.local,
      cashier/cashier@jewelpos.local

    SECURITY: Change passwords immediately in production!
    """
    click.echo("START Initializing jewelpos...")

    click.echo("\nLIST Creating roles...")
    create_default_roles()
    roles = db.session.query(Role).all()
    click.echo(f"PASS Roles: {', '.join(r.name for r in roles)}")

    click.echo("\nSECURITY Initializing permissions...")
    perm_count = permission_service.initialize_permissions()
    assignment_count = permission_service.assign_default_role_permissions()
    click.echo(f"PASS Created {perm_count} permissions, {assignment_count} role assignments")

    click.echo("\nUSERS Creating default users...")
    for username in ("admin", "manager", "cashier"):
        if db.session.query(User).filter_by(username=username).first():
            click.echo(f"WARN  User '{username}' already exists, skipping...")
            continue
        try:
            create_user(
                username=username,
                email=f"{username}@jewelpos.local",
                password=password,
                role_name=username,
            )
            click.echo(f"PASS Created user: {username} with role '{username}'")
        except PasswordValidationError as e:
            click.echo(f"FAIL Password validation failed for '{username}': {e.message}")
            return
        except ServiceError as e:
            db.session.rollback()
            click.echo(f"FAIL Failed to create user '{username}': {e.message}")

    click.echo("\nDONE jewelpos initialized. Change the default passwords in production!")


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

    click.echo("PASS Database reset complete. Run 'flask --app jewelpos system init' to initialize.")


# =============================================================================
# USER COMMANDS
# =============================================================================

@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('create')
@click.option('--username', prompt=True, help='Username')
@click.option('--email', prompt=True, help='Email address')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice(['admin', 'manager', 'cashier']), prompt=True, help='Role')
@click.option('--full-name', default=None, help='Display name')
@with_appcontext
def create_user_cli(username, email, password, role, full_name):
    """
    Create a new user.

    Password must be 8+ chars with uppercase, lowercase, digit and special char.
    """
    try:
        create_user(
            username=username,
            email=email,
            password=password,
            full_name=full_name,
            role_name=role,
        )
        click.echo(f"PASS Created user: {username} ({email}) with role '{role}'")
    except PasswordValidationError as e:
        click.echo(f"FAIL Password validation failed: {e.message}")
        click.echo("Requirements: 8+ chars, uppercase, lowercase, digit, special char")
    except ServiceError as e:
        db.session.rollback()
        click.echo(f"FAIL Failed to create user: {e.message}")


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users with their roles."""
    users = db.session.query(User).order_by(User.id).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*80)
    click.echo(f"{'ID':<5} {'Username':<20} {'Email':<30} {'Active':<8} {'Role'}")
    click.echo("="*80)

    for user in users:
        active_str = "Yes" if user.is_active else "No"
        role_str = user.role.name if user.role else "none"
        click.echo(f"{user.id:<5} {user.username:<20} {user.email:<30} {active_str:<8} {role_str}")

    click.echo("="*80 + "\n")


@users_group.command('set-role')
@click.option('--username', required=True, help='Username')
@click.option('--role', type=click.Choice(['admin', 'manager', 'cashier']), required=True, help='Role')
@with_appcontext
def set_role(username, role):
    """Replace a user's role (one role per user)."""
    user = db.session.query(User).filter_by(username=username).first()
    if not user:
        click.echo(f"FAIL User '{username}' not found")
        return
    try:
        assign_role(user.id, role)
    except ServiceError as e:
        click.echo(f"FAIL {e.message}")
        return
    click.echo(f"PASS {username} now has role '{role}'")


@users_group.command('deactivate')
@click.option('--username', required=True, help='Username')
@with_appcontext
def deactivate_user(username):
    """Disable login and revoke every open session of a user."""
    user = db.session.query(User).filter_by(username=username).first()
    if not user:
        click.echo(f"FAIL User '{username}' not found")
        return
    user.is_active = False
    db.session.commit()
    revoked = revoke_all_user_sessions(user.id, reason="User deactivated")
    click.echo(f"PASS {username} deactivated, {revoked} session(s) revoked")


# =============================================================================
# REFERENCE DATA
# =============================================================================

@click.group('catalog')
def catalog_group():
    """Reference data (locations, boxes, gold categories, products)."""


DEMO_CATEGORIES = [
    # code, name, purity, buy, sell
    ("24K", "Emas 24 Karat", Decimal("0.9999"), Decimal("1050000"), Decimal("1150000")),
    ("22K", "Emas 22 Karat", Decimal("0.9160"), Decimal("960000"), Decimal("1050000")),
    ("17K", "Emas 17 Karat", Decimal("0.7500"), Decimal("780000"), Decimal("860000")),
]

DEMO_PRODUCTS = [
    # barcode, name, category code, weight, type, audience
    ("CIN-24-001", "Cincin Polos 24K", "24K", Decimal("2.500"), "cincin", "dewasa"),
    ("KAL-22-001", "Kalung Rantai 22K", "22K", Decimal("5.250"), "kalung", "dewasa"),
    ("GEL-17-001", "Gelang Anak 17K", "17K", Decimal("3.100"), "gelang", "anak"),
]


@catalog_group.command('seed-demo')
@with_appcontext
def seed_demo():
    """Create demo reference data (skipped if any location exists)."""
    if db.session.query(Location).first():
        click.echo("WARN  Locations already exist, skipping demo seed.")
        return

    try:
        shop = catalog_service.create_location(code="TK01", name="Toko Pusat", type=LocationType.SHOP)
        warehouse = catalog_service.create_location(code="GD01", name="Gudang Utama", type=LocationType.WAREHOUSE)
        for location in (shop, warehouse):
            for n in (1, 2):
                catalog_service.create_storage_box(location_id=location.id, code=f"{location.code}-B{n}", capacity=100)

        categories = {}
        for code, name, purity, buy, sell in DEMO_CATEGORIES:
            categories[code] = catalog_service.create_gold_category(
                code=code, name=name, purity=purity, buy_price=buy, sell_price=sell,
            )

        for barcode, name, cat_code, weight, ptype, audience in DEMO_PRODUCTS:
            catalog_service.create_product(
                barcode=barcode,
                name=name,
                gold_category_id=categories[cat_code].id,
                weight=weight,
                type=ptype,
                category=audience,
            )
        db.session.commit()
    except ServiceError as e:
        db.session.rollback()
        click.echo(f"FAIL Demo seed failed: {e.message}")
        return

    click.echo(f"PASS Seeded 2 locations, 4 boxes, {len(DEMO_CATEGORIES)} gold categories, {len(DEMO_PRODUCTS)} products")


# =============================================================================
# MAINTENANCE
# =============================================================================

@click.group('members')
def members_group():
    """Member maintenance commands."""


@members_group.command('recalculate-stats')
@click.option('--member-id', type=int, default=None, help='Only this member')
@with_appcontext
def recalculate_stats(member_id):
    """Re-derive totals, points and tier from completed transactions."""
    try:
        updated = loyalty_service.recalculate_member_stats(member_id)
    except ServiceError as e:
        click.echo(f"FAIL Recalculation failed: {e.message}")
        return
    click.echo(f"PASS Recalculated {updated} member(s)")


@click.group('prices')
def prices_group():
    """Gold price commands."""


@prices_group.command('check')
@click.option('--tz', default=None, help='IANA time zone (default: PRICE_UPDATE_TIMEZONE)')
@with_appcontext
def check_prices(tz):
    """Report whether today's gold prices have been entered."""
    try:
        status = price_service.check_price_update_needed(tz=tz)
    except ServiceError as e:
        click.echo(f"FAIL {e.message}")
        return

    if status["needs_update"]:
        click.echo(f"WARN  Prices not updated today ({status['timezone']}). Last update: {status['last_update'] or 'never'}")
    else:
        click.echo(f"PASS Prices updated today by {status['last_updated_by'] or 'unknown'} at {status['last_update']}")

    active = db.session.query(GoldCategory).filter(GoldCategory.deleted_at.is_(None)).count()
    click.echo(f"     {len(status['categories'])} active of {active} gold categories")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(catalog_group)
    app.cli.add_command(members_group)
    app.cli.add_command(prices_group)
