"""Payment method resolution command."""

import click
from cashledger.cli.error_handling import handle_domain_error
from cashledger.domain.account import AccountService
from cashledger.domain.errors import DomainError
from cashledger.domain.resolver import MethodResolver


@click.command("resolve")
@click.argument("method", metavar="PAYMENT_METHOD")
@click.option("--account-id", type=int, help="Account recorded on the business record, if any")
@click.pass_context
def resolve_method(ctx, method: str, account_id: int | None):
    """Show which account a payment method posts to.

    Examples:
        cashledger resolve efectivo
        cashledger resolve nequi --account-id 3
    """
    db = ctx.obj["db"]
    resolver = MethodResolver(db)

    try:
        resolved_id = resolver.resolve_account_for_method(method, preferred_account_id=account_id)
    except DomainError as e:
        handle_domain_error(ctx, e)

    account = AccountService(db).get_account(resolved_id)
    click.echo(f"{method} -> {account.name} (ID: {account.id})")


def register_commands(cli):
    """Register resolve command with main CLI."""
    cli.add_command(resolve_method)
