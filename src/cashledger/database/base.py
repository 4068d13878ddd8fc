"""Abstract database interface."""

from abc import ABC, abstractmethod
from typing import Optional
from datetime import date
from decimal import Decimal

# Import entities directly to avoid circular import through domain/__init__.py
from cashledger.domain.entities import (
    Account,
    AccountKind,
    Direction,
    Movement,
    Sale,
    PaymentRecord,
    PaymentRecordType,
    Expense,
    PartnerWithdrawal,
)
from cashledger.domain.references import ReferenceKey


class Database(ABC):
    """Abstract database interface for cashledger.

    Every balance-changing method is a single all-or-nothing unit: the
    movement rows and the account balances they affect are committed together
    or not at all.
    """

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    # Account operations
    @abstractmethod
    def create_account(
        self,
        name: str,
        kind: AccountKind,
        opening_balance: Optional[Decimal] = None,
        opening_concept: str = "Saldo inicial",
        created_by: Optional[str] = None,
    ) -> int:
        """Create a new account. Returns account ID.

        A non-zero ``opening_balance`` is posted as an ``in`` movement in the
        same transaction, so the account never exists without it.
        """
        pass

    @abstractmethod
    def get_account(self, account_id: int) -> Optional[Account]:
        """Get account by ID."""
        pass

    @abstractmethod
    def get_account_by_name(self, name: str, active_only: bool = False) -> Optional[Account]:
        """Get account by name, compared case-insensitively."""
        pass

    @abstractmethod
    def list_accounts(self, active_only: bool = False) -> list[Account]:
        """List accounts ordered by ID."""
        pass

    @abstractmethod
    def update_account(
        self, account_id: int, name: Optional[str] = None, kind: Optional[AccountKind] = None
    ) -> None:
        """Update account name and/or kind. Never touches the balance."""
        pass

    @abstractmethod
    def set_account_active(self, account_id: int, is_active: bool) -> None:
        """Activate or deactivate an account."""
        pass

    @abstractmethod
    def delete_account(self, account_id: int) -> None:
        """Hard-delete an account that has no movements."""
        pass

    @abstractmethod
    def get_account_movement_count(self, account_id: int) -> int:
        """Count movements owned by an account."""
        pass

    # Movement operations
    @abstractmethod
    def apply_movement(
        self,
        account_id: int,
        direction: Direction,
        amount: Decimal,
        concept: str,
        reference_type: Optional[str] = None,
        reference_id: Optional[str] = None,
        created_by: Optional[str] = None,
    ) -> Movement:
        """Insert a movement and update its account balance in one transaction."""
        pass

    @abstractmethod
    def apply_transfer(
        self,
        source_account_id: int,
        destination_account_id: int,
        amount: Decimal,
        out_concept: str,
        in_concept: str,
        transfer_id: str,
        created_by: Optional[str] = None,
    ) -> tuple[Movement, Movement]:
        """Post both legs of a transfer in one transaction. Returns (out, in)."""
        pass

    @abstractmethod
    def reverse_movement(self, movement_id: int) -> Movement:
        """Delete a movement and revert its effect on the account balance.

        Returns the movement as it was before deletion.
        """
        pass

    @abstractmethod
    def replace_movement(
        self,
        movement_id: int,
        account_id: int,
        direction: Direction,
        amount: Decimal,
        concept: str,
        reference_type: Optional[str] = None,
        reference_id: Optional[str] = None,
        created_by: Optional[str] = None,
    ) -> Movement:
        """Reverse a movement and post its replacement in one transaction."""
        pass

    @abstractmethod
    def insert_backfill_movement(
        self,
        account_id: int,
        direction: Direction,
        amount: Decimal,
        concept: str,
        reference_type: str,
        reference_id: str,
        created_by: Optional[str] = None,
    ) -> Movement:
        """Insert a synthesized movement without touching the account balance.

        Balance snapshots are recorded as zero; a recompute pass is expected
        to follow.
        """
        pass

    @abstractmethod
    def get_movement(self, movement_id: int) -> Optional[Movement]:
        """Get movement by ID."""
        pass

    @abstractmethod
    def find_movement_by_reference(
        self, reference_type: str, reference_id: str
    ) -> Optional[Movement]:
        """Get the movement linked to a business record, if any."""
        pass

    @abstractmethod
    def list_movements(
        self,
        account_id: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        reference_type: Optional[str] = None,
    ) -> list[Movement]:
        """List movements, newest first, with optional filters."""
        pass

    @abstractmethod
    def list_reference_keys(self) -> set[ReferenceKey]:
        """Return every non-null (reference_type, reference_id) pair in the log."""
        pass

    # Balance operations
    @abstractmethod
    def sum_movements(self, account_id: int) -> tuple[Decimal, Decimal]:
        """Return (sum of in amounts, sum of out amounts) for an account."""
        pass

    @abstractmethod
    def recompute_account_balance(self, account_id: int) -> Decimal:
        """Set an account balance to the signed sum of its movements.

        The account row is locked while the sums are read and the balance is
        written. Returns the new balance.
        """
        pass

    # Business record operations
    @abstractmethod
    def create_sale(
        self,
        invoice_number: str,
        total: Decimal,
        payment_method: str,
        payment_account_id: Optional[int] = None,
        is_credit: Optional[bool] = False,
        status: str = "paid",
        created_by: Optional[str] = None,
    ) -> int:
        """Create a sale record. Returns sale ID."""
        pass

    @abstractmethod
    def get_sale(self, sale_id: int) -> Optional[Sale]:
        """Get sale by ID."""
        pass

    @abstractmethod
    def list_paid_cash_sales(self) -> list[Sale]:
        """List paid sales that were not sold on credit."""
        pass

    @abstractmethod
    def create_payment_record(
        self,
        type: PaymentRecordType,
        amount: Decimal,
        payment_method: str,
        payment_account_id: Optional[int] = None,
        notes: Optional[str] = None,
        registered_by: Optional[str] = None,
    ) -> int:
        """Create a payment record. Returns payment record ID."""
        pass

    @abstractmethod
    def get_payment_record(self, payment_id: int) -> Optional[PaymentRecord]:
        """Get payment record by ID."""
        pass

    @abstractmethod
    def list_payment_records(self, type: PaymentRecordType) -> list[PaymentRecord]:
        """List payment records of one type."""
        pass

    @abstractmethod
    def create_expense(
        self,
        amount: Decimal,
        payment_method: str,
        concept: str,
        payment_account_id: Optional[int] = None,
        registered_by: Optional[str] = None,
    ) -> int:
        """Create an expense record. Returns expense ID."""
        pass

    @abstractmethod
    def get_expense(self, expense_id: int) -> Optional[Expense]:
        """Get expense by ID."""
        pass

    @abstractmethod
    def list_expenses_without_payable(self) -> list[Expense]:
        """List expenses not referenced by any account payable."""
        pass

    @abstractmethod
    def create_account_payable(self, amount: Decimal, expense_id: Optional[int] = None) -> int:
        """Create an account payable, optionally tied to an expense."""
        pass

    @abstractmethod
    def create_partner_withdrawal(
        self,
        partner_name: str,
        amount: Decimal,
        method: str,
        notes: Optional[str] = None,
        approved_by: Optional[str] = None,
    ) -> int:
        """Create a partner withdrawal record. Returns withdrawal ID."""
        pass

    @abstractmethod
    def get_partner_withdrawal(self, withdrawal_id: int) -> Optional[PartnerWithdrawal]:
        """Get partner withdrawal by ID."""
        pass

    @abstractmethod
    def update_partner_withdrawal(
        self,
        withdrawal_id: int,
        partner_name: Optional[str] = None,
        amount: Optional[Decimal] = None,
        method: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> None:
        """Update partner withdrawal fields."""
        pass

    @abstractmethod
    def rebook_partner_withdrawal(
        self,
        withdrawal_id: int,
        account_id: int,
        concept: str,
        partner_name: Optional[str] = None,
        amount: Optional[Decimal] = None,
        method: Optional[str] = None,
        notes: Optional[str] = None,
        created_by: Optional[str] = None,
    ) -> Movement:
        """Update a withdrawal and replace its movement atomically.

        The old movement (if any) is reversed and an ``out`` movement for the
        updated amount is posted on ``account_id``. Nothing is written if any
        step fails.
        """
        pass

    @abstractmethod
    def delete_partner_withdrawal(self, withdrawal_id: int) -> None:
        """Delete a partner withdrawal record."""
        pass
