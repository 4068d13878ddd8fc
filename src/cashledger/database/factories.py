"""Database factory functions for creating database instances."""

import os
from pathlib import Path
from typing import Optional

from cashledger.database.sqlalchemy_db import DEFAULT_MAX_RETRIES, SQLAlchemyDatabase

DB_PATH_ENV = "CASHLEDGER_DB_PATH"
DATABASE_URL_ENV = "CASHLEDGER_DATABASE_URL"


def default_database_path() -> str:
    """Return ``~/.cashledger/cashledger.db``, creating the directory if needed."""
    db_dir = Path.home() / ".cashledger"
    db_dir.mkdir(exist_ok=True)
    return str(db_dir / "cashledger.db")


def create_sqlite_database(
    database_path: Optional[str] = None, max_retries: int = DEFAULT_MAX_RETRIES
) -> SQLAlchemyDatabase:
    """Create a SQLite database instance.

    Args:
        database_path: Path to SQLite database file. If None, checks CASHLEDGER_DB_PATH
            environment variable, then defaults to ~/.cashledger/cashledger.db
        max_retries: Attempts for a contended balance update

    Returns:
        SQLAlchemyDatabase instance configured for SQLite
    """
    if database_path is None:
        database_path = os.environ.get(DB_PATH_ENV)

    if database_path is None:
        database_path = default_database_path()

    return SQLAlchemyDatabase(f"sqlite:///{database_path}", max_retries=max_retries)


def create_database(
    database_url: Optional[str] = None,
    database_path: Optional[str] = None,
    max_retries: int = DEFAULT_MAX_RETRIES,
) -> SQLAlchemyDatabase:
    """Create a database instance from a URL or a SQLite path.

    A URL (argument, then CASHLEDGER_DATABASE_URL) wins over any SQLite path,
    so the same code runs against PostgreSQL in production and a file in tests.
    """
    if database_url is None:
        database_url = os.environ.get(DATABASE_URL_ENV)

    if database_url:
        return SQLAlchemyDatabase(database_url, max_retries=max_retries)

    return create_sqlite_database(database_path=database_path, max_retries=max_retries)
