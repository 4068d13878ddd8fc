"""Movement commands: posting, listing, reversing, transfers and withdrawals."""

import click
from cashledger.cli.account_resolution import parse_amount_or_exit, resolve_account_or_exit
from cashledger.cli.error_handling import handle_domain_error
from cashledger.domain.account import AccountService
from cashledger.domain.entities import Direction, Movement
from cashledger.domain.errors import DomainError
from cashledger.domain.movement import MovementService
from cashledger.utils.amount_parser import format_amount
from cashledger.utils.date_parser import parse_date


def _echo_movement(movement: Movement, account_name: str) -> None:
    sign = "+" if movement.direction is Direction.IN else "-"
    click.echo(
        f"Movement {movement.id}: {sign}{format_amount(movement.amount)} on '{account_name}' "
        f"({format_amount(movement.previous_balance)} -> {format_amount(movement.new_balance)})"
    )


@click.group()
def movement_group():
    """Post and inspect account movements."""
    pass


@movement_group.command("post")
@click.argument("account", metavar="ACCOUNT")
@click.argument("direction", type=click.Choice([d.value for d in Direction]))
@click.argument("amount", metavar="AMOUNT")
@click.argument("concept", metavar="CONCEPT")
@click.option("--by", "created_by", help="Operator posting the movement")
@click.pass_context
def post_movement(ctx, account: str, direction: str, amount: str, concept: str, created_by: str | None):
    """Post a movement against an account.

    Examples:
        cashledger movement post Efectivo in 50000 "Base de caja"
        cashledger movement post 1 out "$ 20.000" "Gasto: Insumos"
    """
    db = ctx.obj["db"]
    account_service = AccountService(db)
    service = MovementService(db)

    account_id = resolve_account_or_exit(ctx, account_service, account)
    parsed = parse_amount_or_exit(ctx, amount)

    try:
        movement = service.post_movement(
            account_id=account_id,
            direction=direction,
            amount=parsed,
            concept=concept,
            created_by=created_by,
        )
    except DomainError as e:
        click.echo("Money was not recorded.", err=True)
        handle_domain_error(ctx, e)

    _echo_movement(movement, account_service.get_account(account_id).name)


@movement_group.command("list")
@click.option("--account", help="Account name or ID")
@click.option("--start-date", help="Start date (YYYY-MM-DD or relative like 'this month')")
@click.option("--end-date", help="End date (YYYY-MM-DD or relative like 'today')")
@click.pass_context
def list_movements(ctx, account: str | None, start_date: str | None, end_date: str | None):
    """List movements, newest first."""
    db = ctx.obj["db"]
    account_service = AccountService(db)
    service = MovementService(db)

    account_id = resolve_account_or_exit(ctx, account_service, account) if account else None

    start = None
    if start_date:
        try:
            start = parse_date(start_date)
        except ValueError as e:
            click.echo(f"Error: Invalid start date: {e}", err=True)
            ctx.exit(1)

    end = None
    if end_date:
        try:
            end = parse_date(end_date)
        except ValueError as e:
            click.echo(f"Error: Invalid end date: {e}", err=True)
            ctx.exit(1)

    try:
        movements = service.list_movements(account_id=account_id, start_date=start, end_date=end)
    except ValueError as e:
        handle_domain_error(ctx, e)

    if not movements:
        click.echo("No movements found.")
        return

    accounts = {acc.id: acc.name for acc in account_service.list_accounts()}

    click.echo(f"\nFound {len(movements)} movement(s):")
    click.echo("-" * 110)
    click.echo(
        f"{'ID':<6} {'Date':<17} {'Account':<15} {'Dir':<4} {'Amount':>14} {'Balance':>14}  Concept"
    )
    click.echo("-" * 110)
    for mov in movements:
        click.echo(
            f"{mov.id:<6} {mov.created_at:%Y-%m-%d %H:%M} {accounts.get(mov.account_id, 'Unknown')[:15]:<15} "
            f"{mov.direction.value:<4} {format_amount(mov.amount):>14} "
            f"{format_amount(mov.new_balance):>14}  {mov.concept[:40]}"
        )


@movement_group.command("reverse")
@click.argument("movement_id", type=int)
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def reverse_movement(ctx, movement_id: int, yes: bool):
    """Delete a movement and undo its effect on the balance.

    Reversing one leg of a transfer reverses both legs.
    """
    db = ctx.obj["db"]
    service = MovementService(db)

    try:
        movement = service.require_movement(movement_id)
    except DomainError as e:
        handle_domain_error(ctx, e)

    if not yes and not click.confirm(
        f"Reverse movement {movement_id} ({movement.direction.value} "
        f"{format_amount(movement.amount)}, '{movement.concept}')?"
    ):
        click.echo("Reversal cancelled.")
        return

    try:
        service.reverse_movement(movement_id)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Reversed movement {movement_id}")


@movement_group.command("transfer")
@click.argument("source", metavar="SOURCE_ACCOUNT")
@click.argument("destination", metavar="DESTINATION_ACCOUNT")
@click.argument("amount", metavar="AMOUNT")
@click.argument("concept", metavar="CONCEPT")
@click.option("--by", "created_by", help="Operator making the transfer")
@click.option("--force", is_flag=True, help="Transfer even if the source balance is insufficient")
@click.pass_context
def transfer(ctx, source: str, destination: str, amount: str, concept: str, created_by: str | None, force: bool):
    """Move money from one account to another.

    Examples:
        cashledger movement transfer Efectivo Bancolombia 100000 "Consignación"
    """
    db = ctx.obj["db"]
    account_service = AccountService(db)
    service = MovementService(db)

    source_id = resolve_account_or_exit(ctx, account_service, source)
    destination_id = resolve_account_or_exit(ctx, account_service, destination)
    parsed = parse_amount_or_exit(ctx, amount)

    try:
        _confirm_funds(ctx, service, source_id, parsed, force)
        out_leg, in_leg = service.transfer(
            source_account_id=source_id,
            destination_account_id=destination_id,
            amount=parsed,
            concept=concept,
            created_by=created_by,
        )
    except DomainError as e:
        click.echo("Money was not recorded.", err=True)
        handle_domain_error(ctx, e)

    click.echo(
        f"Transferred {format_amount(parsed)}: movements {out_leg.id} (out) and {in_leg.id} (in)"
    )


def _confirm_funds(ctx, service: MovementService, account_id: int, amount, force: bool) -> None:
    """Warn about insufficient funds and let the operator decide."""
    check = service.check_funds(account_id, amount)
    if check.sufficient or force:
        return
    click.echo(
        f"Warning: insufficient funds. Current balance: {format_amount(check.balance)}",
        err=True,
    )
    if not click.confirm("Continue anyway?"):
        click.echo("Cancelled.")
        ctx.exit(0)


@click.command("withdraw")
@click.argument("account", metavar="ACCOUNT")
@click.argument("amount", metavar="AMOUNT")
@click.argument("concept", metavar="CONCEPT")
@click.option("--by", "created_by", help="Operator making the withdrawal")
@click.option("--force", is_flag=True, help="Withdraw even if the balance is insufficient")
@click.pass_context
def withdraw(ctx, account: str, amount: str, concept: str, created_by: str | None, force: bool):
    """Take money out of an account.

    An insufficient balance only triggers a warning; the ledger allows
    negative balances.
    """
    db = ctx.obj["db"]
    account_service = AccountService(db)
    service = MovementService(db)

    account_id = resolve_account_or_exit(ctx, account_service, account)
    parsed = parse_amount_or_exit(ctx, amount)

    try:
        _confirm_funds(ctx, service, account_id, parsed, force)
        movement = service.post_movement(
            account_id=account_id,
            direction=Direction.OUT,
            amount=parsed,
            concept=concept,
            created_by=created_by,
        )
    except DomainError as e:
        click.echo("Money was not recorded.", err=True)
        handle_domain_error(ctx, e)

    _echo_movement(movement, account_service.get_account(account_id).name)


def register_commands(cli):
    """Register movement commands with main CLI."""
    cli.add_command(movement_group, name="movement")
    cli.add_command(withdraw)
