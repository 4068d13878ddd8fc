"""Typed links from a movement to the business event that produced it.

Inside the domain a reference is one of the frozen dataclasses below. The
database only ever sees the flattened ``(reference_type, reference_id)`` pair,
which is also the deduplication key used by the historical reconciler.
"""

from dataclasses import dataclass, field
from typing import Optional, Union


@dataclass(frozen=True)
class SaleRef:
    sale_id: int

    reference_type = "sale"

    @property
    def reference_id(self) -> str:
        return str(self.sale_id)


@dataclass(frozen=True)
class ExpenseRef:
    expense_id: int

    reference_type = "expense"

    @property
    def reference_id(self) -> str:
        return str(self.expense_id)


@dataclass(frozen=True)
class PaymentRecordRef:
    """Payment record reference.

    ``kind`` ("receivable" or "payable") is not part of the stored pair, so a
    reference decoded from storage carries ``kind=None``.
    """

    payment_id: int
    kind: Optional[str] = field(default=None, compare=False)

    reference_type = "payment_record"

    @property
    def reference_id(self) -> str:
        return str(self.payment_id)


@dataclass(frozen=True)
class PartnerWithdrawalRef:
    withdrawal_id: int

    reference_type = "partner_withdrawal"

    @property
    def reference_id(self) -> str:
        return str(self.withdrawal_id)


@dataclass(frozen=True)
class OpeningBalanceRef:
    account_id: int

    reference_type = "opening_balance"

    @property
    def reference_id(self) -> str:
        return str(self.account_id)


@dataclass(frozen=True)
class TransferRef:
    """One leg of a transfer between two accounts.

    Both legs share ``transfer_id``; ``leg`` is "out" for the source account
    and "in" for the destination.
    """

    transfer_id: str
    leg: str

    @property
    def reference_type(self) -> str:
        return f"transfer_{self.leg}"

    @property
    def reference_id(self) -> str:
        return self.transfer_id


Reference = Union[
    SaleRef,
    ExpenseRef,
    PaymentRecordRef,
    PartnerWithdrawalRef,
    OpeningBalanceRef,
    TransferRef,
]

ReferenceKey = tuple[str, str]


def to_storage(reference: Optional[Reference]) -> tuple[Optional[str], Optional[str]]:
    """Flatten a reference into its stored ``(reference_type, reference_id)`` pair."""
    if reference is None:
        return None, None
    return reference.reference_type, reference.reference_id


def reference_key(reference: Reference) -> ReferenceKey:
    """Return the deduplication key for a reference."""
    return reference.reference_type, reference.reference_id


def from_storage(
    reference_type: Optional[str], reference_id: Optional[str]
) -> Optional[Reference]:
    """Rebuild a typed reference from its stored pair.

    Pairs written by older versions of the application may use types this
    module does not know; those, and half-filled pairs, decode to None.
    """
    if not reference_type or not reference_id:
        return None

    if reference_type in ("transfer_in", "transfer_out"):
        return TransferRef(transfer_id=reference_id, leg=reference_type.split("_", 1)[1])

    try:
        numeric_id = int(reference_id)
    except ValueError:
        return None

    if reference_type == "sale":
        return SaleRef(numeric_id)
    if reference_type == "expense":
        return ExpenseRef(numeric_id)
    if reference_type == "payment_record":
        return PaymentRecordRef(numeric_id)
    if reference_type == "partner_withdrawal":
        return PartnerWithdrawalRef(numeric_id)
    if reference_type == "opening_balance":
        return OpeningBalanceRef(numeric_id)
    return None
