# Overview: Pytest coverage for the flask CLI command groups.

from billbook.models import Account
from billbook.services.session_service import validate_session


def test_create_and_list_accounts(app, db_session):
    runner = app.test_cli_runner()

    result = runner.invoke(args=['accounts', 'create', '--email', 'cli@shop.test', '--password', 'Password123'])
    assert result.exit_code == 0, result.output
    assert 'PASS Created account cli@shop.test' in result.output

    result = runner.invoke(args=['accounts', 'list'])
    assert 'cli@shop.test' in result.output


def test_create_rejects_weak_password(app, db_session):
    result = app.test_cli_runner().invoke(args=['accounts', 'create', '--email', 'cli@shop.test', '--password', 'weak'])
    assert result.exit_code != 0
    assert db_session.query(Account).count() == 0


def test_token_is_usable(app, account):
    result = app.test_cli_runner().invoke(args=['accounts', 'token', '--email', 'owner@acme.test'])
    assert result.exit_code == 0
    token = result.stdout.strip().splitlines()[0]
    assert validate_session(token).id == account.id


def test_low_stock(app, account, product_a, make_product):
    make_product(account.id, "Plenty", 500)
    result = app.test_cli_runner().invoke(args=['stock', 'low', '--email', 'owner@acme.test'])
    assert 'Product A' in result.output
    assert 'Plenty' not in result.output


def test_delete_account(app, db_session, account, other_account, product_a):
    runner = app.test_cli_runner()

    result = runner.invoke(args=['accounts', 'delete', '--email', 'owner@acme.test', '--yes'])
    assert result.exit_code == 0, result.output
    assert 'PASS Deleted account owner@acme.test' in result.output
    assert [a.email for a in db_session.query(Account)] == [other_account.email]

    result = runner.invoke(args=['accounts', 'delete', '--email', 'owner@acme.test', '--yes'])
    assert result.exit_code != 0
    assert 'Account not found' in result.output
