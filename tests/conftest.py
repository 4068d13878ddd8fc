"""Shared pytest fixtures for cashledger tests."""

import tempfile
import os
from decimal import Decimal
import pytest

from cashledger.database.factories import create_sqlite_database
from cashledger.domain.account import AccountService
from cashledger.domain.entities import AccountKind
from cashledger.domain.events import BusinessEventService
from cashledger.domain.movement import MovementService
from cashledger.domain.reconcile import ReconciliationService
from cashledger.domain.resolver import MethodResolver
from cashledger.logging_config import reset_logging


@pytest.fixture(autouse=True)
def clean_logging():
    """Drop handlers installed by CLI invocations between tests."""
    yield
    reset_logging()


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    # Cleanup
    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def account_service(temp_db):
    """Create an AccountService with a temporary database."""
    return AccountService(temp_db)


@pytest.fixture
def movement_service(temp_db):
    """Create a MovementService with a temporary database."""
    return MovementService(temp_db)


@pytest.fixture
def resolver(temp_db):
    """Create a MethodResolver with the default method mapping."""
    return MethodResolver(temp_db)


@pytest.fixture
def reconciliation_service(temp_db):
    """Create a ReconciliationService with a temporary database."""
    return ReconciliationService(temp_db)


@pytest.fixture
def event_service(temp_db):
    """Create a BusinessEventService with a temporary database."""
    return BusinessEventService(temp_db)


@pytest.fixture
def cash_account(account_service):
    """Create the cash drawer account ("Efectivo")."""
    account_id = account_service.create_account(name="Efectivo", kind=AccountKind.CASH)
    return account_service.get_account(account_id)


@pytest.fixture
def bank_account(account_service):
    """Create a bank account ("Bancolombia")."""
    account_id = account_service.create_account(name="Bancolombia", kind=AccountKind.BANK)
    return account_service.get_account(account_id)


@pytest.fixture
def funded_cash_account(account_service, movement_service, cash_account):
    """Cash account holding 50.000 from a single incoming movement."""
    movement_service.post_movement(cash_account.id, "in", Decimal("50000"), "Base de caja")
    return account_service.get_account(cash_account.id)


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()
