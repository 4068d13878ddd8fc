"""Tests for movement posting, transfers and corrections."""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import date, timedelta
from decimal import Decimal
from threading import Barrier

import pytest
from cashledger.cli.main import cli
from cashledger.domain.entities import Direction
from cashledger.domain.errors import (
    AccountNotFound,
    ConcurrentUpdateError,
    DuplicateReference,
    InvalidMovement,
    MovementNotFound,
)
from cashledger.domain.references import SaleRef, TransferRef


def test_post_in_then_out_records_snapshots(movement_service, account_service, cash_account):
    """50.000 in then 20.000 out leaves 30.000 with chained snapshots."""
    first = movement_service.post_movement(cash_account.id, Direction.IN, Decimal("50000"), "Base")
    second = movement_service.post_movement(cash_account.id, Direction.OUT, Decimal("20000"), "Insumos")

    assert (first.previous_balance, first.new_balance) == (Decimal("0"), Decimal("50000"))
    assert (second.previous_balance, second.new_balance) == (Decimal("50000"), Decimal("30000"))
    assert account_service.get_account(cash_account.id).balance == Decimal("30000")


@pytest.mark.parametrize("amount", [Decimal("0"), Decimal("-5000")])
def test_non_positive_amount_is_rejected(movement_service, account_service, funded_cash_account, amount):
    with pytest.raises(InvalidMovement):
        movement_service.post_movement(funded_cash_account.id, "out", amount, "Nada")

    assert account_service.get_account(funded_cash_account.id).balance == Decimal("50000")
    assert len(movement_service.list_movements(account_id=funded_cash_account.id)) == 1


@pytest.mark.parametrize(
    "amount", [Decimal("0.005"), Decimal("1000.001"), Decimal("1000000000000")]
)
def test_amount_the_ledger_cannot_store_is_rejected(
    movement_service, account_service, funded_cash_account, amount
):
    with pytest.raises(InvalidMovement):
        movement_service.post_movement(funded_cash_account.id, "in", amount, "Ajuste")

    # The account keeps accepting postings
    movement = movement_service.post_movement(funded_cash_account.id, "in", Decimal("1000"), "Ajuste")

    assert movement.new_balance == Decimal("51000")
    assert account_service.get_account(funded_cash_account.id).balance == Decimal("51000")


def test_amount_with_cents_is_posted_exactly(movement_service, account_service, cash_account):
    movement_service.post_movement(cash_account.id, "in", Decimal("1250.50"), "Venta")
    second = movement_service.post_movement(cash_account.id, "out", "0.75", "Propina")
    third = movement_service.post_movement(cash_account.id, "in", Decimal("100"), "Venta")

    assert second.previous_balance == Decimal("1250.50")
    assert third.previous_balance == Decimal("1249.75")
    assert account_service.get_account(cash_account.id).balance == Decimal("1349.75")


def test_invalid_direction_is_rejected(movement_service, cash_account):
    with pytest.raises(InvalidMovement):
        movement_service.post_movement(cash_account.id, "sideways", Decimal("100"), "Nada")


def test_empty_concept_is_rejected(movement_service, cash_account):
    with pytest.raises(InvalidMovement):
        movement_service.post_movement(cash_account.id, "in", Decimal("100"), "  ")


def test_unknown_account_is_rejected(movement_service):
    with pytest.raises(AccountNotFound):
        movement_service.post_movement(42, "in", Decimal("100"), "Base")


def test_negative_balance_is_allowed(movement_service, account_service, funded_cash_account):
    movement = movement_service.post_movement(
        funded_cash_account.id, "out", Decimal("70000"), "Pago proveedor"
    )

    assert movement.new_balance == Decimal("-20000")
    assert account_service.get_account(funded_cash_account.id).balance == Decimal("-20000")


def test_posting_to_inactive_account_is_allowed(movement_service, account_service, cash_account):
    account_service.deactivate_account(cash_account.id)
    movement_service.post_movement(cash_account.id, "in", Decimal("1000"), "Ajuste")

    assert account_service.get_account(cash_account.id).balance == Decimal("1000")


def test_second_movement_for_same_reference_is_rejected(movement_service, account_service, cash_account):
    movement_service.post_movement(cash_account.id, "in", Decimal("100000"), "Venta F-1", reference=SaleRef(7))

    with pytest.raises(DuplicateReference):
        movement_service.post_movement(
            cash_account.id, "in", Decimal("100000"), "Venta F-1", reference=SaleRef(7)
        )

    assert account_service.get_account(cash_account.id).balance == Decimal("100000")


def test_find_by_reference_returns_typed_reference(movement_service, cash_account):
    posted = movement_service.post_movement(
        cash_account.id, "in", Decimal("100000"), "Venta F-1", reference=SaleRef(7)
    )

    found = movement_service.find_by_reference(SaleRef(7))
    assert found.id == posted.id
    assert found.reference == SaleRef(7)
    assert movement_service.find_by_reference(SaleRef(8)) is None


def test_check_funds(movement_service, funded_cash_account):
    enough = movement_service.check_funds(funded_cash_account.id, Decimal("50000"))
    short = movement_service.check_funds(funded_cash_account.id, Decimal("60000"))

    assert enough.sufficient is True
    assert short.sufficient is False
    assert short.shortfall == Decimal("10000")


def test_transfer_moves_funds_between_accounts(
    movement_service, account_service, funded_cash_account, bank_account
):
    out_leg, in_leg = movement_service.transfer(
        funded_cash_account.id, bank_account.id, Decimal("20000"), "Consignación"
    )

    assert out_leg.direction is Direction.OUT
    assert in_leg.direction is Direction.IN
    assert out_leg.transfer_to_account_id == bank_account.id
    assert out_leg.reference == TransferRef(out_leg.reference.transfer_id, "out")
    assert in_leg.reference == TransferRef(out_leg.reference.transfer_id, "in")
    assert out_leg.concept == "Transferencia a Bancolombia: Consignación"
    assert in_leg.concept == "Transferencia desde Efectivo: Consignación"
    assert account_service.get_account(funded_cash_account.id).balance == Decimal("30000")
    assert account_service.get_account(bank_account.id).balance == Decimal("20000")


def test_transfer_to_same_account_is_rejected(movement_service, funded_cash_account):
    with pytest.raises(InvalidMovement):
        movement_service.transfer(
            funded_cash_account.id, funded_cash_account.id, Decimal("1000"), "Nada"
        )


def test_reversing_one_transfer_leg_reverses_both(
    movement_service, account_service, funded_cash_account, bank_account
):
    _, in_leg = movement_service.transfer(
        funded_cash_account.id, bank_account.id, Decimal("20000"), "Consignación"
    )

    movement_service.reverse_movement(in_leg.id)

    assert account_service.get_account(funded_cash_account.id).balance == Decimal("50000")
    assert account_service.get_account(bank_account.id).balance == Decimal("0")
    assert movement_service.list_movements(account_id=bank_account.id) == []


def test_reverse_movement_restores_balance(movement_service, account_service, funded_cash_account):
    movement = movement_service.post_movement(funded_cash_account.id, "out", Decimal("20000"), "Insumos")

    reversed_movement = movement_service.reverse_movement(movement.id)

    assert reversed_movement.id == movement.id
    assert movement_service.get_movement(movement.id) is None
    assert account_service.get_account(funded_cash_account.id).balance == Decimal("50000")


def test_reversed_movement_id_is_not_reused(movement_service, funded_cash_account):
    movement = movement_service.post_movement(funded_cash_account.id, "out", Decimal("20000"), "Insumos")
    movement_service.reverse_movement(movement.id)

    later = movement_service.post_movement(funded_cash_account.id, "out", Decimal("5000"), "Taxi")

    assert later.id > movement.id


def test_reverse_missing_movement(movement_service):
    with pytest.raises(MovementNotFound):
        movement_service.reverse_movement(999)


def test_replace_movement_moves_money_to_new_account(
    movement_service, account_service, funded_cash_account, bank_account
):
    movement = movement_service.post_movement(
        funded_cash_account.id, "out", Decimal("20000"), "Arriendo", reference=SaleRef(3)
    )

    replacement = movement_service.replace_movement(
        movement.id, bank_account.id, "out", Decimal("25000"), "Arriendo", reference=SaleRef(3)
    )

    assert replacement.account_id == bank_account.id
    assert replacement.previous_balance == Decimal("0")
    assert replacement.new_balance == Decimal("-25000")
    assert account_service.get_account(funded_cash_account.id).balance == Decimal("50000")
    assert movement_service.find_by_reference(SaleRef(3)).id == replacement.id


def test_list_movements_newest_first(movement_service, funded_cash_account, bank_account):
    movement_service.post_movement(bank_account.id, "in", Decimal("1000"), "Intereses")
    latest = movement_service.post_movement(funded_cash_account.id, "out", Decimal("2000"), "Taxi")

    everything = movement_service.list_movements()
    cash_only = movement_service.list_movements(account_id=funded_cash_account.id)

    assert everything[0].id == latest.id
    assert len(everything) == 3
    assert [m.concept for m in cash_only] == ["Taxi", "Base de caja"]


def test_list_movements_by_date(movement_service, funded_cash_account):
    today = date.today()

    assert len(movement_service.list_movements(start_date=today - timedelta(days=1))) == 1
    assert movement_service.list_movements(end_date=today - timedelta(days=2)) == []

    with pytest.raises(ValueError):
        movement_service.list_movements(start_date=today, end_date=today - timedelta(days=1))


def test_stale_balance_read_is_retried(
    temp_db, movement_service, account_service, funded_cash_account, caplog
):
    """A balance that changes between read and write triggers a retry, not a lost update."""
    original = temp_db._read_balance_for_update
    calls = []

    def stale_once(session, account_id):
        calls.append(account_id)
        balance = original(session, account_id)
        # Pretend another writer changed the row after the first read
        return balance - Decimal("1") if len(calls) == 1 else balance

    temp_db._read_balance_for_update = stale_once
    with caplog.at_level(logging.WARNING, logger="cashledger"):
        movement = movement_service.post_movement(
            funded_cash_account.id, "out", Decimal("20000"), "Insumos"
        )

    assert len(calls) == 2
    assert movement.previous_balance == Decimal("50000")
    assert movement.new_balance == Decimal("30000")
    assert account_service.get_account(funded_cash_account.id).balance == Decimal("30000")
    assert len(movement_service.list_movements(account_id=funded_cash_account.id)) == 2
    assert "balance_conflict" in caplog.text


def test_retries_exhausted_raises_concurrent_update(
    temp_db, movement_service, account_service, funded_cash_account
):
    original = temp_db._read_balance_for_update

    def always_stale(session, account_id):
        return original(session, account_id) + Decimal("1")

    temp_db._read_balance_for_update = always_stale

    with pytest.raises(ConcurrentUpdateError):
        movement_service.post_movement(funded_cash_account.id, "out", Decimal("20000"), "Insumos")

    del temp_db._read_balance_for_update
    assert account_service.get_account(funded_cash_account.id).balance == Decimal("50000")
    assert len(movement_service.list_movements(account_id=funded_cash_account.id)) == 1


def test_concurrent_postings_are_serialized(movement_service, account_service, cash_account):
    """Parallel writers on one account all succeed and none is lost."""
    num_threads = 6
    postings_per_thread = 15
    barrier = Barrier(num_threads, timeout=30)

    def post_many():
        barrier.wait()
        for _ in range(postings_per_thread):
            movement_service.post_movement(cash_account.id, "in", Decimal("100"), "Venta")

    with ThreadPoolExecutor(max_workers=num_threads) as executor:
        futures = [executor.submit(post_many) for _ in range(num_threads)]
        errors = [f.exception() for f in as_completed(futures) if f.exception() is not None]

    assert errors == []
    movements = movement_service.list_movements(account_id=cash_account.id)
    assert len(movements) == num_threads * postings_per_thread
    assert account_service.get_account(cash_account.id).balance == Decimal("9000")
    # Snapshots chain without gaps or repeats
    assert sorted(m.previous_balance for m in movements) == [
        Decimal(100 * i) for i in range(num_threads * postings_per_thread)
    ]


def test_balance_equals_movement_sum_after_mixed_activity(
    temp_db, movement_service, account_service, funded_cash_account, bank_account
):
    movement_service.post_movement(funded_cash_account.id, "out", Decimal("12500"), "Almuerzo")
    movement_service.transfer(funded_cash_account.id, bank_account.id, Decimal("30000"), "Ahorro")
    extra = movement_service.post_movement(bank_account.id, "in", Decimal("7000"), "Intereses")
    movement_service.reverse_movement(extra.id)

    for account in account_service.list_accounts():
        total_in, total_out = temp_db.sum_movements(account.id)
        assert account.balance == total_in - total_out


# CLI


def test_movement_post_command(cli_runner, temp_db, account_service, cash_account):
    result = cli_runner.invoke(
        cli,
        ["--db-path", temp_db.database_path, "movement", "post", "Efectivo", "in", "$ 50.000", "Base"],
    )

    assert result.exit_code == 0
    assert "+$ 50.000 on 'Efectivo'" in result.output
    assert account_service.get_account(cash_account.id).balance == Decimal("50000")


def test_movement_post_command_rejects_zero(cli_runner, temp_db, cash_account):
    result = cli_runner.invoke(
        cli, ["--db-path", temp_db.database_path, "movement", "post", "Efectivo", "in", "0", "Base"]
    )

    assert result.exit_code == 1
    assert "Money was not recorded" in result.output
    assert "greater than 0" in result.output


def test_movement_list_command(cli_runner, temp_db, funded_cash_account):
    result = cli_runner.invoke(
        cli, ["--db-path", temp_db.database_path, "movement", "list", "--account", "Efectivo"]
    )

    assert result.exit_code == 0
    assert "Found 1 movement(s)" in result.output
    assert "Base de caja" in result.output


def test_withdraw_with_insufficient_funds_can_be_cancelled(
    cli_runner, temp_db, account_service, funded_cash_account
):
    result = cli_runner.invoke(
        cli,
        ["--db-path", temp_db.database_path, "withdraw", "Efectivo", "80000", "Retiro"],
        input="n\n",
    )

    assert result.exit_code == 0
    assert "insufficient funds" in result.output
    assert "Cancelled." in result.output
    assert account_service.get_account(funded_cash_account.id).balance == Decimal("50000")


def test_withdraw_with_insufficient_funds_forced(cli_runner, temp_db, account_service, funded_cash_account):
    result = cli_runner.invoke(
        cli,
        ["--db-path", temp_db.database_path, "withdraw", "Efectivo", "80000", "Retiro", "--force"],
    )

    assert result.exit_code == 0
    assert account_service.get_account(funded_cash_account.id).balance == Decimal("-30000")


def test_transfer_command(cli_runner, temp_db, account_service, funded_cash_account, bank_account):
    result = cli_runner.invoke(
        cli,
        [
            "--db-path",
            temp_db.database_path,
            "movement",
            "transfer",
            "Efectivo",
            "Bancolombia",
            "20000",
            "Consignación",
        ],
    )

    assert result.exit_code == 0
    assert "Transferred $ 20.000" in result.output
    assert account_service.get_account(bank_account.id).balance == Decimal("20000")


def test_reverse_command(cli_runner, temp_db, account_service, movement_service, funded_cash_account):
    movement = movement_service.post_movement(funded_cash_account.id, "out", Decimal("20000"), "Insumos")

    result = cli_runner.invoke(
        cli, ["--db-path", temp_db.database_path, "movement", "reverse", str(movement.id), "--yes"]
    )

    assert result.exit_code == 0
    assert f"Reversed movement {movement.id}" in result.output
    assert account_service.get_account(funded_cash_account.id).balance == Decimal("50000")


def test_cli_reports_store_failures_with_distinct_exit_code(
    cli_runner, temp_db, funded_cash_account, monkeypatch
):
    from cashledger.database.sqlalchemy_db import SQLAlchemyDatabase
    from cashledger.domain.errors import PersistenceFailure

    def broken(self, **kwargs):
        raise PersistenceFailure("database is locked")

    monkeypatch.setattr(SQLAlchemyDatabase, "apply_movement", broken)

    result = cli_runner.invoke(
        cli, ["--db-path", temp_db.database_path, "movement", "post", "Efectivo", "in", "100", "Base"]
    )

    assert result.exit_code == 2
    assert "Error: database is locked" in result.output
