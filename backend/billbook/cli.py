# Overview: Flask CLI command groups for bootstrap, accounts, and stock checks.

# backend/billbook/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Create all tables (idempotent). Use "flask db upgrade" for migrated deployments.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Accounts:
# - python -m flask accounts list
# - python -m flask accounts create --email owner@example.com --password "Password123"
# - python -m flask accounts token --email owner@example.com
#   Issue a bearer token for API scripting.
# - python -m flask accounts delete --email owner@example.com --yes
#   Permanently delete the account, its data and its uploaded files.
#
# Stock:
# - python -m flask stock low --email owner@example.com
#   List products at or below their low-stock threshold.

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import Account
from .services.account_service import delete_account
from .services.auth_service import AuthError, PasswordValidationError, create_account, normalize_email
from .services.error_service import get_safe_auth_error_message
from .services.inventory_service import low_stock_products
from .services.session_service import create_session


@click.group("system")
def system_group():
    """System bootstrap and repair commands."""


@system_group.command("init")
@with_appcontext
def init_system():
    """Create any missing tables."""
    db.create_all()
    click.echo("PASS Database tables are in place")


@system_group.command("reset-db")
@click.option("--yes", is_flag=True, help="Skip confirmation")
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("This deletes every account, document and product. Continue?", abort=True)
    db.drop_all()
    db.create_all()
    click.echo("PASS Database reset")


@click.group("accounts")
def accounts_group():
    """Account inspection and bootstrap."""


def _get_account(email: str) -> Account | None:
    return db.session.query(Account).filter_by(email=normalize_email(email)).first()


@accounts_group.command("list")
@with_appcontext
def list_accounts():
    accounts = db.session.query(Account).order_by(Account.id.asc()).all()
    if not accounts:
        click.echo("No accounts")
        return
    for a in accounts:
        status = "active" if a.is_active else "disabled"
        click.echo(f"{a.id:>5}  {a.email:<40} {status}")


@accounts_group.command("create")
@click.option("--email", prompt=True, help="Email address")
@click.option("--password", prompt=True, hide_input=True, confirmation_prompt=True, help="Password")
@click.option("--name", "full_name", default=None, help="Owner name")
@click.option("--company", "company_name", default=None, help="Business name")
@with_appcontext
def create_account_cli(email, password, full_name, company_name):
    """
    Create an account.

    Password requirements:
    - Minimum 8 characters
    - At least one letter
    - At least one digit
    """
    try:
        account = create_account(email, password, full_name=full_name, company_name=company_name)
    except PasswordValidationError as e:
        raise click.ClickException(str(e))
    except AuthError as e:
        raise click.ClickException(get_safe_auth_error_message(e))
    click.echo(f"PASS Created account {account.email} (ID: {account.id})")


@accounts_group.command("token")
@click.option("--email", required=True, help="Account email")
@with_appcontext
def issue_token(email):
    """Print a new bearer token for the account."""
    account = _get_account(email)
    if account is None or not account.is_active:
        raise click.ClickException("Account not found or disabled")
    session, token = create_session(account)
    click.echo(token)
    click.echo(f"expires {session.expires_at.isoformat()}Z", err=True)


@accounts_group.command("delete")
@click.option("--email", required=True, help="Account email")
@click.option("--yes", is_flag=True, help="Skip confirmation")
@with_appcontext
def delete_account_cli(email, yes):
    """Delete an account with all of its documents, products and files."""
    account = _get_account(email)
    if account is None:
        raise click.ClickException("Account not found")
    address = account.email
    if not yes:
        click.confirm(f"Delete {address} and all of its data?", abort=True)
    deleted = delete_account(account)
    click.echo(f"PASS Deleted account {address} ({sum(deleted.values())} rows)")


@click.group("stock")
def stock_group():
    """Stock inspection."""


@stock_group.command("low")
@click.option("--email", required=True, help="Account email")
@with_appcontext
def low_stock(email):
    account = _get_account(email)
    if account is None:
        raise click.ClickException("Account not found")
    products = low_stock_products(account.id)
    if not products:
        click.echo("No products below their threshold")
        return
    for p in products:
        click.echo(f"{p.quantity:>6} / {p.low_stock_threshold:<6} {p.name} ({p.sku or '-'})")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(accounts_group)
    app.cli.add_command(stock_group)
