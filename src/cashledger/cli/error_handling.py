"""CLI error handling helpers."""

import logging

import click

from cashledger.domain.errors import ConcurrentUpdateError, DomainError, PersistenceFailure

logger = logging.getLogger(__name__)

# Exit status for failures of the store itself, as opposed to refused input
STORE_FAILURE_EXIT_CODE = 2


def handle_domain_error(ctx: click.Context, error: DomainError | ValueError) -> None:
    """Render a refused operation and exit with failure."""
    logger.debug("command_failed command=%s error_type=%s", ctx.info_name, type(error).__name__)
    click.echo(f"Error: {error}", err=True)
    if isinstance(error, ConcurrentUpdateError):
        click.echo("The account kept changing while posting; nothing was recorded. Try again.", err=True)
    ctx.exit(STORE_FAILURE_EXIT_CODE if isinstance(error, PersistenceFailure) else 1)
