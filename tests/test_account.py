"""Tests for account service and account commands."""

from decimal import Decimal

import pytest
from cashledger.cli.main import cli
from cashledger.domain.entities import AccountKind, Direction
from cashledger.domain.errors import (
    AccountNotFound,
    ConflictError,
    DependencyError,
    InvalidMovement,
    PersistenceFailure,
    ValidationError,
)
from cashledger.domain.references import OpeningBalanceRef


def test_create_account_starts_at_zero(account_service):
    """New accounts are active with a zero balance."""
    account_id = account_service.create_account(name="Nequi", kind=AccountKind.DIGITAL)
    account = account_service.get_account(account_id)

    assert account.name == "Nequi"
    assert account.kind is AccountKind.DIGITAL
    assert account.balance == Decimal("0")
    assert account.is_active is True


def test_create_account_with_opening_balance_posts_movement(account_service, movement_service):
    """An opening balance is posted as an incoming movement, not written directly."""
    account_id = account_service.create_account(
        name="Bancolombia", kind=AccountKind.BANK, opening_balance=Decimal("250000")
    )

    account = account_service.get_account(account_id)
    assert account.balance == Decimal("250000")

    movement = movement_service.find_by_reference(OpeningBalanceRef(account_id))
    assert movement is not None
    assert movement.direction is Direction.IN
    assert movement.previous_balance == Decimal("0")
    assert movement.new_balance == Decimal("250000")


def test_create_account_rejects_negative_opening_balance(account_service):
    with pytest.raises(ValidationError):
        account_service.create_account(name="Caja", opening_balance=Decimal("-1"))
    assert account_service.list_accounts() == []


def test_failed_opening_balance_leaves_no_account(temp_db, account_service, monkeypatch):
    def failing_post(*args, **kwargs):
        raise PersistenceFailure("disk I/O error")

    monkeypatch.setattr(temp_db, "_post", failing_post)

    with pytest.raises(PersistenceFailure):
        account_service.create_account(name="Caja", opening_balance=Decimal("100000"))

    assert account_service.list_accounts() == []


def test_create_account_rejects_fractional_cent_opening_balance(account_service):
    with pytest.raises(InvalidMovement):
        account_service.create_account(name="Caja", opening_balance=Decimal("100.005"))
    assert account_service.list_accounts() == []


def test_create_account_rejects_empty_name(account_service):
    with pytest.raises(ValidationError):
        account_service.create_account(name="   ")


def test_create_account_duplicate_name_is_case_insensitive(account_service, cash_account):
    with pytest.raises(ConflictError):
        account_service.create_account(name="EFECTIVO")


def test_rename_account(account_service, cash_account):
    account_service.rename_account(cash_account.id, "Caja principal", kind=AccountKind.CASH)
    assert account_service.get_account(cash_account.id).name == "Caja principal"


def test_rename_account_to_existing_name_fails(account_service, cash_account, bank_account):
    with pytest.raises(ConflictError):
        account_service.rename_account(bank_account.id, "efectivo")


def test_deactivate_and_activate_account(account_service, cash_account):
    account_service.deactivate_account(cash_account.id)
    assert account_service.get_account(cash_account.id).is_active is False
    assert account_service.list_accounts(active_only=True) == []

    account_service.activate_account(cash_account.id)
    assert account_service.get_account(cash_account.id).is_active is True


def test_deactivate_missing_account_raises(account_service):
    with pytest.raises(AccountNotFound):
        account_service.deactivate_account(999)


def test_delete_account_without_movements(account_service, cash_account):
    account_service.delete_account(cash_account.id)
    assert account_service.get_account(cash_account.id) is None


def test_delete_account_with_movements_is_blocked(account_service, funded_cash_account):
    with pytest.raises(DependencyError) as exc_info:
        account_service.delete_account(funded_cash_account.id)
    assert "Deactivate it instead" in str(exc_info.value)
    assert account_service.get_account(funded_cash_account.id) is not None


def test_list_accounts_is_ordered_by_id(account_service, cash_account, bank_account):
    names = [acc.name for acc in account_service.list_accounts()]
    assert names == ["Efectivo", "Bancolombia"]


# CLI


def test_account_create_command(cli_runner, temp_db):
    result = cli_runner.invoke(
        cli, ["--db-path", temp_db.database_path, "account", "create", "Efectivo"]
    )

    assert result.exit_code == 0
    assert "Created account 'Efectivo'" in result.output
    assert "ID:" in result.output


def test_account_create_command_with_opening_balance(cli_runner, temp_db, account_service):
    result = cli_runner.invoke(
        cli,
        [
            "--db-path",
            temp_db.database_path,
            "account",
            "create",
            "Bancolombia",
            "--kind",
            "bank",
            "--opening-balance",
            "$ 250.000",
        ],
    )

    assert result.exit_code == 0
    assert "Opening balance: $ 250.000" in result.output
    assert account_service.get_account_by_name("Bancolombia").balance == Decimal("250000")


def test_account_create_duplicate_command(cli_runner, temp_db, cash_account):
    result = cli_runner.invoke(
        cli, ["--db-path", temp_db.database_path, "account", "create", "Efectivo"]
    )

    assert result.exit_code == 1
    assert "already exists" in result.output


def test_account_list_empty(cli_runner, temp_db):
    result = cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "account", "list"])

    assert result.exit_code == 0
    assert "No accounts found" in result.output


def test_account_list_shows_balance_and_status(
    cli_runner, temp_db, account_service, funded_cash_account, bank_account
):
    account_service.deactivate_account(bank_account.id)

    result = cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "account", "list"])

    assert result.exit_code == 0
    assert "Efectivo" in result.output
    assert "$ 50.000" in result.output
    assert "(inactive)" in result.output


def test_account_delete_command_refuses_account_with_movements(
    cli_runner, temp_db, funded_cash_account
):
    result = cli_runner.invoke(
        cli, ["--db-path", temp_db.database_path, "account", "delete", "Efectivo", "--yes"]
    )

    assert result.exit_code == 1
    assert "Deactivate it instead" in result.output


def test_account_deactivate_command_by_id(cli_runner, temp_db, account_service, cash_account):
    result = cli_runner.invoke(
        cli, ["--db-path", temp_db.database_path, "account", "deactivate", str(cash_account.id)]
    )

    assert result.exit_code == 0
    assert account_service.get_account(cash_account.id).is_active is False


def test_account_command_unknown_account(cli_runner, temp_db):
    result = cli_runner.invoke(
        cli, ["--db-path", temp_db.database_path, "account", "deactivate", "Caja fuerte"]
    )

    assert result.exit_code == 1
    assert "Account 'Caja fuerte' not found" in result.output
