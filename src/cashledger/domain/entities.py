"""Domain model entities for cashledger.

These are pure data classes representing ledger concepts, independent of the
database schema. Mappers in ``cashledger.database.mappers`` convert ORM rows
into these objects, so nothing above the database layer holds a live ORM
instance (and therefore nothing above it can hold a stale balance).
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from cashledger.domain.references import Reference


class AccountKind(str, Enum):
    """Kind of financial holding point."""

    CASH = "cash"
    BANK = "bank"
    DIGITAL = "digital"


class Direction(str, Enum):
    """Direction of a movement relative to its account."""

    IN = "in"
    OUT = "out"

    def signed(self, amount: Decimal) -> Decimal:
        """Return the balance delta this direction applies for ``amount``."""
        return amount if self is Direction.IN else -amount


class PaymentRecordType(str, Enum):
    """Kind of recorded payment."""

    RECEIVABLE = "receivable"
    PAYABLE = "payable"


@dataclass(frozen=True)
class Account:
    """Financial account (cash drawer, bank account or digital wallet)."""

    id: int
    name: str
    kind: AccountKind
    balance: Decimal
    is_active: bool
    created_at: datetime
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class Movement:
    """Immutable record of one balance change."""

    id: int
    account_id: int
    direction: Direction
    amount: Decimal
    previous_balance: Decimal
    new_balance: Decimal
    concept: str
    reference: Optional[Reference]
    created_by: Optional[str]
    created_at: datetime
    transfer_to_account_id: Optional[int] = None

    @property
    def signed_amount(self) -> Decimal:
        return self.direction.signed(self.amount)


@dataclass(frozen=True)
class Sale:
    """Sale as recorded by the sales module."""

    id: int
    invoice_number: str
    total: Decimal
    payment_method: str
    payment_account_id: Optional[int]
    is_credit: Optional[bool]
    status: str
    created_by: Optional[str]


@dataclass(frozen=True)
class PaymentRecord:
    """Payment against an account receivable or payable."""

    id: int
    type: PaymentRecordType
    amount: Decimal
    payment_method: str
    payment_account_id: Optional[int]
    notes: Optional[str]
    registered_by: Optional[str]


@dataclass(frozen=True)
class Expense:
    """Expense as recorded by the expenses module."""

    id: int
    amount: Decimal
    payment_method: str
    payment_account_id: Optional[int]
    concept: str
    registered_by: Optional[str]


@dataclass(frozen=True)
class PartnerWithdrawal:
    """Money taken out of the business by a partner."""

    id: int
    partner_name: str
    amount: Decimal
    method: str
    notes: Optional[str]
    approved_by: Optional[str]


@dataclass(frozen=True)
class BalanceDiscrepancy:
    """Stored balance that disagrees with the sum of the account's movements."""

    account_id: int
    account_name: str
    stored_balance: Decimal
    computed_balance: Decimal

    @property
    def difference(self) -> Decimal:
        return self.stored_balance - self.computed_balance


@dataclass
class ReconciliationResult:
    """Outcome of a historical reconciliation run.

    ``created`` counts movements synthesized across all backfill passes;
    ``errors`` holds one message per source record that could not be posted.
    """

    created: int = 0
    errors: list[str] = field(default_factory=list)
    created_by_pass: dict[str, int] = field(default_factory=dict)
    balances: dict[int, Decimal] = field(default_factory=dict)

    @property
    def partial_failure(self) -> bool:
        return bool(self.errors)

    def summary(self) -> str:
        noun = "movement" if self.created == 1 else "movements"
        return f"Created {self.created} {noun}, {len(self.errors)} errors"
