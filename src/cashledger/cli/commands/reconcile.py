"""Reconciliation commands."""

import click
from cashledger.cli.error_handling import handle_domain_error
from cashledger.domain.account import AccountService
from cashledger.domain.entities import ReconciliationResult
from cashledger.domain.errors import DomainError, ReconciliationPartialFailure
from cashledger.domain.reconcile import ReconciliationService
from cashledger.utils.amount_parser import format_amount


def _echo_result(result: ReconciliationResult, account_names: dict[int, str]) -> None:
    for pass_name, created in result.created_by_pass.items():
        click.echo(f"  {pass_name}: {created} created")
    for account_id, balance in result.balances.items():
        name = account_names.get(account_id, str(account_id))
        click.echo(f"  {name}: {format_amount(balance)}")
    for error in result.errors:
        click.echo(f"  ! {error}", err=True)


@click.command("reconcile")
@click.option("--created-by", help="Creator for synthesized movements whose record has none")
@click.option("--strict", is_flag=True, help="Exit with failure if any record could not be posted")
@click.pass_context
def reconcile(ctx, created_by: str | None, strict: bool):
    """Backfill movements for historical records and recompute balances.

    Safe to run repeatedly; records that already have a movement are skipped.

    Examples:
        cashledger reconcile
        cashledger reconcile --created-by admin --strict
    """
    db = ctx.obj["db"]
    service = ReconciliationService(db)

    try:
        result = service.reconcile_history(default_creator=created_by)
        names = {acc.id: acc.name for acc in AccountService(db).list_accounts()}
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(result.summary())
    _echo_result(result, names)

    if strict and result.partial_failure:
        handle_domain_error(ctx, ReconciliationPartialFailure(result.errors))


@click.command("recompute")
@click.pass_context
def recompute(ctx):
    """Recompute every active account balance from its movements."""
    db = ctx.obj["db"]
    service = ReconciliationService(db)

    try:
        result = service.recompute_balances()
        names = {acc.id: acc.name for acc in AccountService(db).list_accounts()}
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Recomputed {len(result.balances)} account(s)")
    _echo_result(result, names)
    if result.partial_failure:
        ctx.exit(1)


@click.command("verify")
@click.pass_context
def verify(ctx):
    """Check that every stored balance equals the sum of its movements.

    Read-only. Exits with failure if any account disagrees.
    """
    service = ReconciliationService(ctx.obj["db"])

    try:
        discrepancies = service.find_discrepancies()
    except DomainError as e:
        handle_domain_error(ctx, e)

    if not discrepancies:
        click.echo("All balances match their movements.")
        return

    click.echo(f"Found {len(discrepancies)} discrepancy(ies):")
    for item in discrepancies:
        click.echo(
            f"  {item.account_name} (ID: {item.account_id}): stored "
            f"{format_amount(item.stored_balance)}, movements {format_amount(item.computed_balance)}"
        )
    click.echo("Run 'cashledger recompute' to fix them.")
    ctx.exit(1)


def register_commands(cli):
    """Register reconciliation commands with main CLI."""
    cli.add_command(reconcile)
    cli.add_command(recompute)
    cli.add_command(verify)
