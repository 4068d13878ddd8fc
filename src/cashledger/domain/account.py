"""Account domain service."""

import logging
from decimal import Decimal
from typing import Optional

from cashledger.database.base import Database
from cashledger.domain.entities import Account as AccountEntity, AccountKind
from cashledger.domain.errors import (
    AccountNotFound,
    ConflictError,
    DependencyError,
    ValidationError,
    account_delete_blocked,
    account_not_found,
)
from cashledger.domain.movement import coerce_amount

logger = logging.getLogger(__name__)

OPENING_BALANCE_CONCEPT = "Saldo inicial"


class AccountService:
    """Service for managing financial accounts."""

    def __init__(self, db: Database):
        """Initialize account service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_account(
        self,
        name: str,
        kind: AccountKind = AccountKind.CASH,
        opening_balance: Optional[Decimal] = None,
        created_by: Optional[str] = None,
    ) -> int:
        """Create a new account.

        An opening balance is not written to the account directly; it is posted
        as an ``in`` movement in the same transaction as the account itself.

        Args:
            name: Account display name (unique, case-insensitive)
            kind: Account kind
            opening_balance: Optional starting balance, must not be negative
            created_by: Operator creating the account

        Returns:
            Account ID

        Raises:
            ValidationError: If the name is empty or the opening balance is negative
            ConflictError: If an account with the same name already exists
            InvalidMovement: If the opening balance has fractions of a cent or is too large
        """
        name = name.strip()
        if not name:
            raise ValidationError("Account name is required")
        if opening_balance is not None and opening_balance < 0:
            raise ValidationError("Opening balance cannot be negative")

        # Names drive method-to-account lookup, so compare case-insensitively
        if self.db.get_account_by_name(name) is not None:
            raise ConflictError(f"Account with name '{name}' already exists")

        if opening_balance:
            opening_balance = coerce_amount(opening_balance)

        account_id = self.db.create_account(
            name=name,
            kind=kind,
            opening_balance=opening_balance or None,
            opening_concept=OPENING_BALANCE_CONCEPT,
            created_by=created_by,
        )
        logger.info(
            "account_created account_id=%s name=%s kind=%s opening_balance=%s",
            account_id,
            name,
            kind.value,
            opening_balance or 0,
        )
        return account_id

    def get_account(self, account_id: int) -> Optional[AccountEntity]:
        """Get account by ID.

        Args:
            account_id: Account ID

        Returns:
            Account entity or None if not found
        """
        return self.db.get_account(account_id)

    def require_account(self, account_id: int) -> AccountEntity:
        """Get account by ID or raise AccountNotFound."""
        account = self.db.get_account(account_id)
        if account is None:
            raise AccountNotFound(account_not_found(account_id))
        return account

    def get_account_by_name(self, name: str) -> Optional[AccountEntity]:
        """Get account by name (case-insensitive)."""
        return self.db.get_account_by_name(name)

    def list_accounts(self, active_only: bool = False) -> list[AccountEntity]:
        """List accounts ordered by ID."""
        return self.db.list_accounts(active_only=active_only)

    def rename_account(self, account_id: int, name: str, kind: Optional[AccountKind] = None) -> None:
        """Rename an account and optionally change its kind.

        Raises:
            AccountNotFound: If the account does not exist
            ConflictError: If another account already uses the name
        """
        self.require_account(account_id)
        name = name.strip()
        if not name:
            raise ValidationError("Account name is required")

        existing = self.db.get_account_by_name(name)
        if existing is not None and existing.id != account_id:
            raise ConflictError(f"Account with name '{name}' already exists")

        self.db.update_account(account_id=account_id, name=name, kind=kind)

    def deactivate_account(self, account_id: int) -> None:
        """Soft-deactivate an account; its movements and balance are kept."""
        self.require_account(account_id)
        self.db.set_account_active(account_id, False)
        logger.info("account_deactivated account_id=%s", account_id)

    def activate_account(self, account_id: int) -> None:
        """Reactivate a previously deactivated account."""
        self.require_account(account_id)
        self.db.set_account_active(account_id, True)
        logger.info("account_activated account_id=%s", account_id)

    def delete_account(self, account_id: int) -> None:
        """Delete an account that never had any movement.

        Raises:
            AccountNotFound: If the account does not exist
            DependencyError: If the account has movements (deactivate it instead)
        """
        self.require_account(account_id)

        movement_count = self.db.get_account_movement_count(account_id)
        if movement_count > 0:
            raise DependencyError(account_delete_blocked(account_id, movement_count))

        self.db.delete_account(account_id)
        logger.info("account_deleted account_id=%s", account_id)
