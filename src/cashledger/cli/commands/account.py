"""Account management commands."""

import click
from cashledger.cli.account_resolution import parse_amount_or_exit, resolve_account_or_exit
from cashledger.cli.error_handling import handle_domain_error
from cashledger.domain.account import AccountService
from cashledger.domain.entities import AccountKind
from cashledger.domain.errors import DomainError
from cashledger.utils.amount_parser import format_amount

KIND_CHOICES = [kind.value for kind in AccountKind]


@click.group()
def account_group():
    """Manage financial accounts."""
    pass


@account_group.command("create")
@click.argument("name", metavar="ACCOUNT_NAME")
@click.option(
    "--kind",
    type=click.Choice(KIND_CHOICES),
    default=AccountKind.CASH.value,
    show_default=True,
    help="Account kind",
)
@click.option("--opening-balance", help="Opening balance, posted as an initial movement")
@click.option("--by", "created_by", help="Operator creating the account")
@click.pass_context
def create_account(ctx, name: str, kind: str, opening_balance: str | None, created_by: str | None):
    """Create a new account.

    Examples:
        cashledger account create "Efectivo"
        cashledger account create "Bancolombia" --kind bank --opening-balance 250000
        cashledger account create "Nequi" --kind digital
    """
    db = ctx.obj["db"]
    service = AccountService(db)

    balance = parse_amount_or_exit(ctx, opening_balance) if opening_balance else None

    try:
        account_id = service.create_account(
            name=name, kind=AccountKind(kind), opening_balance=balance, created_by=created_by
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Created account '{name}' (ID: {account_id})")
    if balance:
        click.echo(f"Opening balance: {format_amount(balance)}")


@account_group.command("list")
@click.option("--active", "active_only", is_flag=True, help="Only show active accounts")
@click.pass_context
def list_accounts(ctx, active_only: bool):
    """List accounts with their balances."""
    db = ctx.obj["db"]
    service = AccountService(db)

    accounts = service.list_accounts(active_only=active_only)
    if not accounts:
        click.echo("No accounts found.")
        return

    click.echo("\nAccounts:")
    click.echo("-" * 72)
    for acc in accounts:
        status = "" if acc.is_active else " (inactive)"
        click.echo(
            f"ID: {acc.id:3d} | {acc.name:20s} | {acc.kind.value:7s} | "
            f"{format_amount(acc.balance):>16s}{status}"
        )


@account_group.command("rename")
@click.argument("account", metavar="ACCOUNT")
@click.argument("new_name", metavar="NEW_NAME")
@click.option("--kind", type=click.Choice(KIND_CHOICES), help="New account kind")
@click.pass_context
def rename_account(ctx, account: str, new_name: str, kind: str | None) -> None:
    """Rename an account.

    ACCOUNT can be an account name or ID. Renaming changes which payment
    methods resolve to the account.

    Examples:
        cashledger account rename "Caja" "Efectivo"
        cashledger account rename 2 "Bancolombia" --kind bank
    """
    db = ctx.obj["db"]
    service = AccountService(db)
    account_id = resolve_account_or_exit(ctx, service, account)

    try:
        service.rename_account(
            account_id=account_id, name=new_name, kind=AccountKind(kind) if kind else None
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Renamed account to '{new_name}'")


@account_group.command("deactivate")
@click.argument("account", metavar="ACCOUNT")
@click.pass_context
def deactivate_account(ctx, account: str) -> None:
    """Deactivate an account, keeping its history.

    Inactive accounts are never picked by the method resolver.
    """
    db = ctx.obj["db"]
    service = AccountService(db)
    account_id = resolve_account_or_exit(ctx, service, account)

    try:
        service.deactivate_account(account_id)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Deactivated account {account_id}")


@account_group.command("activate")
@click.argument("account", metavar="ACCOUNT")
@click.pass_context
def activate_account(ctx, account: str) -> None:
    """Reactivate a deactivated account."""
    db = ctx.obj["db"]
    service = AccountService(db)
    account_id = resolve_account_or_exit(ctx, service, account)

    try:
        service.activate_account(account_id)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Activated account {account_id}")


@account_group.command("delete")
@click.argument("account", metavar="ACCOUNT")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def delete_account(ctx, account: str, yes: bool) -> None:
    """Delete an account that has no movements.

    ACCOUNT can be an account name or ID. Accounts with movements can only
    be deactivated.

    Examples:
        cashledger account delete "Caja menor"
        cashledger account delete 3 --yes
    """
    db = ctx.obj["db"]
    service = AccountService(db)
    account_id = resolve_account_or_exit(ctx, service, account)
    account_obj = service.get_account(account_id)

    if not yes and not click.confirm(
        f"Are you sure you want to delete account '{account_obj.name}' (ID: {account_id})?"
    ):
        click.echo("Deletion cancelled.")
        return

    try:
        service.delete_account(account_id)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Deleted account '{account_obj.name}'")


def register_commands(cli):
    """Register account commands with main CLI."""
    cli.add_command(account_group, name="account")
