"""CLI helpers for account resolution and amount parsing."""

from __future__ import annotations

from decimal import Decimal

import click
from cashledger.cli.error_handling import handle_domain_error
from cashledger.domain.account import AccountService
from cashledger.utils.account_resolver import resolve_account
from cashledger.utils.amount_parser import parse_amount


def resolve_account_or_exit(
    ctx: click.Context, account_service: AccountService, account: str | int
) -> int:
    """Resolve account name or ID, or exit with a CLI error.

    This keeps error messaging and exit behavior consistent across commands.
    """
    try:
        return resolve_account(account_service, account)
    except ValueError as exc:
        handle_domain_error(ctx, exc)


def parse_amount_or_exit(ctx: click.Context, amount: str) -> Decimal:
    """Parse an amount argument, or exit with a CLI error."""
    try:
        return parse_amount(amount)
    except ValueError as exc:
        click.echo(f"Error: Invalid amount format: {exc}", err=True)
        ctx.exit(1)
