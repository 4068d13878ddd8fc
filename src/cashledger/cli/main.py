"""Main CLI entry point."""

import click
from cashledger.database.factories import create_database
from cashledger.logging_config import configure_logging

# Import and register all commands at module level
from cashledger.cli.commands import (
    account,
    movement,
    resolve,
    record,
    reconcile,
)


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to SQLite database file (overrides CASHLEDGER_DB_PATH environment variable)",
    envvar="CASHLEDGER_DB_PATH",
)
@click.option(
    "--database-url",
    help="SQLAlchemy database URL; takes precedence over --db-path",
    envvar="CASHLEDGER_DATABASE_URL",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    envvar="CASHLEDGER_LOG_LEVEL",
    default="WARNING",
    show_default=True,
    help="Logging verbosity (logs go to stderr)",
)
@click.pass_context
def cli(ctx, db_path: str | None, database_url: str | None, log_level: str):
    """Cashledger - cash and bank ledger.

    Track balances of cash drawers, bank accounts and digital wallets, post
    movements against them, and reconcile the ledger with historical sales,
    expenses and payments.
    """
    ctx.ensure_object(dict)
    configure_logging(log_level)

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        db = create_database(database_url=database_url, database_path=db_path)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db
        ctx.call_on_close(db.disconnect)


# Register all commands
account.register_commands(cli)
movement.register_commands(cli)
resolve.register_commands(cli)
record.register_commands(cli)
reconcile.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
