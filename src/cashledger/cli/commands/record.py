"""Business record commands: sales, expenses, payments and partner withdrawals."""

import click
from cashledger.cli.account_resolution import parse_amount_or_exit, resolve_account_or_exit
from cashledger.cli.error_handling import handle_domain_error
from cashledger.domain.account import AccountService
from cashledger.domain.entities import PaymentRecordType
from cashledger.domain.errors import DomainError
from cashledger.domain.events import BusinessEventService, EventOutcome
from cashledger.utils.amount_parser import format_amount

no_post_option = click.option(
    "--no-post",
    "allow_unposted",
    is_flag=True,
    help="Keep the record even if no account can take the movement",
)


def _echo_outcome(label: str, outcome: EventOutcome) -> None:
    click.echo(f"Recorded {label} (ID: {outcome.record_id})")
    if outcome.movement is not None:
        click.echo(
            f"  Movement {outcome.movement.id}: {outcome.movement.direction.value} "
            f"{format_amount(outcome.movement.amount)}, "
            f"balance {format_amount(outcome.movement.new_balance)}"
        )
    if outcome.warning:
        click.echo(f"Warning: {outcome.warning}", err=True)


def _preferred_account(ctx, account: str | None) -> int | None:
    if account is None:
        return None
    return resolve_account_or_exit(ctx, AccountService(ctx.obj["db"]), account)


@click.group()
def record_group():
    """Record business events that move money."""
    pass


@record_group.command("sale")
@click.argument("invoice_number", metavar="INVOICE")
@click.argument("total", metavar="TOTAL")
@click.option("--method", "payment_method", default="efectivo", show_default=True, help="Payment method")
@click.option("--account", help="Account that received the payment (name or ID)")
@click.option("--credit", "is_credit", is_flag=True, help="Sale on credit; no money moves yet")
@click.option("--status", default="paid", show_default=True, help="Sale status")
@click.option("--by", "created_by", help="Operator recording the sale")
@no_post_option
@click.pass_context
def record_sale(
    ctx,
    invoice_number: str,
    total: str,
    payment_method: str,
    account: str | None,
    is_credit: bool,
    status: str,
    created_by: str | None,
    allow_unposted: bool,
):
    """Record a sale. Paid cash sales post an incoming movement.

    Examples:
        cashledger record sale F-1001 100000
        cashledger record sale F-1002 "$ 45.500" --method nequi
        cashledger record sale F-1003 80000 --credit --status pending
    """
    service = BusinessEventService(ctx.obj["db"])
    parsed = parse_amount_or_exit(ctx, total)
    account_id = _preferred_account(ctx, account)

    try:
        outcome = service.record_sale(
            invoice_number=invoice_number,
            total=parsed,
            payment_method=payment_method,
            payment_account_id=account_id,
            is_credit=is_credit,
            status=status,
            created_by=created_by,
            require_ledger=not allow_unposted,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    _echo_outcome(f"sale {invoice_number}", outcome)


@record_group.command("expense")
@click.argument("amount", metavar="AMOUNT")
@click.argument("concept", metavar="CONCEPT")
@click.option("--method", "payment_method", default="efectivo", show_default=True, help="Payment method")
@click.option("--account", help="Account the money left from (name or ID)")
@click.option("--on-credit", is_flag=True, help="Bought on credit; creates an account payable")
@click.option("--by", "registered_by", help="Operator registering the expense")
@no_post_option
@click.pass_context
def record_expense(
    ctx,
    amount: str,
    concept: str,
    payment_method: str,
    account: str | None,
    on_credit: bool,
    registered_by: str | None,
    allow_unposted: bool,
):
    """Record an expense. Cash expenses post an outgoing movement.

    Examples:
        cashledger record expense 20000 "Insumos"
        cashledger record expense 350000 "Arriendo" --method bancolombia
        cashledger record expense 120000 "Proveedor" --on-credit
    """
    service = BusinessEventService(ctx.obj["db"])
    parsed = parse_amount_or_exit(ctx, amount)
    account_id = _preferred_account(ctx, account)

    try:
        outcome = service.record_expense(
            amount=parsed,
            payment_method=payment_method,
            concept=concept,
            payment_account_id=account_id,
            registered_by=registered_by,
            on_credit=on_credit,
            require_ledger=not allow_unposted,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    _echo_outcome(f"expense '{concept}'", outcome)
    if on_credit:
        click.echo("  Account payable created; no money moved")


@record_group.command("payment")
@click.argument("amount", metavar="AMOUNT")
@click.option(
    "--type",
    "payment_type",
    type=click.Choice([t.value for t in PaymentRecordType]),
    required=True,
    help="receivable: a customer pays us; payable: we pay a supplier",
)
@click.option("--method", "payment_method", default="efectivo", show_default=True, help="Payment method")
@click.option("--account", help="Account the money moved through (name or ID)")
@click.option("--notes", help="Free-text notes, used as the movement concept")
@click.option("--by", "registered_by", help="Operator registering the payment")
@no_post_option
@click.pass_context
def record_payment(
    ctx,
    amount: str,
    payment_type: str,
    payment_method: str,
    account: str | None,
    notes: str | None,
    registered_by: str | None,
    allow_unposted: bool,
):
    """Record a payment on an account receivable or payable.

    Examples:
        cashledger record payment 50000 --type receivable --notes "Abono cliente"
        cashledger record payment 120000 --type payable --method bancolombia
    """
    service = BusinessEventService(ctx.obj["db"])
    parsed = parse_amount_or_exit(ctx, amount)
    account_id = _preferred_account(ctx, account)

    try:
        outcome = service.record_payment(
            type=PaymentRecordType(payment_type),
            amount=parsed,
            payment_method=payment_method,
            payment_account_id=account_id,
            notes=notes,
            registered_by=registered_by,
            require_ledger=not allow_unposted,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    _echo_outcome(f"{payment_type} payment", outcome)


@record_group.command("withdrawal")
@click.argument("partner_name", metavar="PARTNER")
@click.argument("amount", metavar="AMOUNT")
@click.option("--method", default="efectivo", show_default=True, help="Payment method")
@click.option("--notes", help="Free-text notes")
@click.option("--approved-by", help="Who approved the withdrawal")
@click.pass_context
def record_withdrawal(
    ctx,
    partner_name: str,
    amount: str,
    method: str,
    notes: str | None,
    approved_by: str | None,
):
    """Record a partner withdrawal.

    Examples:
        cashledger record withdrawal "Ana" 200000
        cashledger record withdrawal "Luis" 150000 --method nequi --approved-by Ana
    """
    service = BusinessEventService(ctx.obj["db"])
    parsed = parse_amount_or_exit(ctx, amount)

    try:
        outcome = service.record_partner_withdrawal(
            partner_name=partner_name,
            amount=parsed,
            method=method,
            notes=notes,
            approved_by=approved_by,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    _echo_outcome(f"withdrawal for {partner_name}", outcome)


@click.group()
def withdrawal_group():
    """Correct recorded partner withdrawals."""
    pass


@withdrawal_group.command("update")
@click.argument("withdrawal_id", type=int)
@click.option("--partner", "partner_name", help="New partner name")
@click.option("--amount", help="New amount")
@click.option("--method", help="New payment method")
@click.option("--notes", help="New notes")
@click.option("--by", "updated_by", help="Operator making the correction")
@click.pass_context
def update_withdrawal(
    ctx,
    withdrawal_id: int,
    partner_name: str | None,
    amount: str | None,
    method: str | None,
    notes: str | None,
    updated_by: str | None,
):
    """Edit a partner withdrawal, replacing its movement when money changes."""
    service = BusinessEventService(ctx.obj["db"])
    parsed = parse_amount_or_exit(ctx, amount) if amount is not None else None

    try:
        outcome = service.update_partner_withdrawal(
            withdrawal_id,
            partner_name=partner_name,
            amount=parsed,
            method=method,
            notes=notes,
            updated_by=updated_by,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Updated withdrawal {withdrawal_id}")
    if outcome.movement is not None:
        click.echo(
            f"  Movement {outcome.movement.id}: out {format_amount(outcome.movement.amount)}"
        )


@withdrawal_group.command("delete")
@click.argument("withdrawal_id", type=int)
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def delete_withdrawal(ctx, withdrawal_id: int, yes: bool):
    """Delete a partner withdrawal and return its money to the account."""
    service = BusinessEventService(ctx.obj["db"])

    if not yes and not click.confirm(f"Delete withdrawal {withdrawal_id}?"):
        click.echo("Deletion cancelled.")
        return

    try:
        reversed_movement = service.delete_partner_withdrawal(withdrawal_id)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Deleted withdrawal {withdrawal_id}")
    if reversed_movement is not None:
        click.echo(f"  Returned {format_amount(reversed_movement.amount)} to account {reversed_movement.account_id}")


def register_commands(cli):
    """Register record commands with main CLI."""
    cli.add_command(record_group, name="record")
    cli.add_command(withdrawal_group, name="withdrawal")
