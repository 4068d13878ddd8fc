"""Business actions that move money.

Each action records its business record and posts the matching movement,
resolving the account from the payment method. If no account can be resolved
the action is refused by default; with ``require_ledger=False`` the record is
kept and the outcome carries a warning for the operator instead. A record
whose posting fails after it was stored has no movement yet; the next
``reconcile`` run picks it up.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from cashledger.database.base import Database
from cashledger.domain.entities import Direction, Movement, PaymentRecordType
from cashledger.domain.errors import (
    AccountNotFound,
    RecordNotFound,
    ValidationError,
    record_not_found,
)
from cashledger.domain.movement import MovementService, coerce_amount
from cashledger.domain.references import (
    ExpenseRef,
    PartnerWithdrawalRef,
    PaymentRecordRef,
    Reference,
    SaleRef,
)
from cashledger.domain.resolver import MethodResolver

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EventOutcome:
    """Result of a business action."""

    record_id: int
    movement: Optional[Movement] = None
    warning: Optional[str] = None


class BusinessEventService:
    """Records sales, expenses, payments and partner withdrawals in the ledger."""

    def __init__(
        self,
        db: Database,
        resolver: Optional[MethodResolver] = None,
        movement_service: Optional[MovementService] = None,
    ):
        self.db = db
        self.resolver = resolver or MethodResolver(db)
        self.movements = movement_service or MovementService(db)

    def _resolve(
        self, method: str, preferred_account_id: Optional[int], require_ledger: bool
    ) -> Optional[int]:
        try:
            return self.resolver.resolve_account_for_method(method, preferred_account_id)
        except AccountNotFound:
            if require_ledger:
                raise
            return None

    def _post(
        self,
        record_id: int,
        account_id: Optional[int],
        direction: Direction,
        amount: Decimal,
        concept: str,
        reference: Reference,
        created_by: Optional[str],
    ) -> EventOutcome:
        if account_id is None:
            warning = f"{concept}: no active account, recorded without a ledger movement"
            logger.warning("ledger_entry_skipped record=%s:%s", reference.reference_type, record_id)
            return EventOutcome(record_id=record_id, warning=warning)

        movement = self.movements.post_movement(
            account_id=account_id,
            direction=direction,
            amount=amount,
            concept=concept,
            reference=reference,
            created_by=created_by,
        )
        return EventOutcome(record_id=record_id, movement=movement)

    def record_sale(
        self,
        invoice_number: str,
        total: Decimal,
        payment_method: str,
        payment_account_id: Optional[int] = None,
        is_credit: bool = False,
        status: str = "paid",
        created_by: Optional[str] = None,
        require_ledger: bool = True,
    ) -> EventOutcome:
        """Record a sale; paid non-credit sales post an ``in`` movement for the total."""
        total = coerce_amount(total)
        posts = not is_credit and status == "paid"
        account_id = (
            self._resolve(payment_method, payment_account_id, require_ledger) if posts else None
        )

        sale_id = self.db.create_sale(
            invoice_number=invoice_number,
            total=total,
            payment_method=payment_method,
            payment_account_id=payment_account_id,
            is_credit=is_credit,
            status=status,
            created_by=created_by,
        )
        if not posts:
            return EventOutcome(record_id=sale_id)

        return self._post(
            sale_id,
            account_id,
            Direction.IN,
            total,
            f"Venta {invoice_number}",
            SaleRef(sale_id),
            created_by,
        )

    def record_expense(
        self,
        amount: Decimal,
        payment_method: str,
        concept: str,
        payment_account_id: Optional[int] = None,
        registered_by: Optional[str] = None,
        on_credit: bool = False,
        require_ledger: bool = True,
    ) -> EventOutcome:
        """Record an expense.

        An expense bought on credit gets an account payable instead of a
        movement; the money leaves when the payable is paid.
        """
        amount = coerce_amount(amount)
        concept = concept.strip()
        if not concept:
            raise ValidationError("Expense concept is required")

        account_id = None
        if not on_credit:
            account_id = self._resolve(payment_method, payment_account_id, require_ledger)

        expense_id = self.db.create_expense(
            amount=amount,
            payment_method=payment_method,
            concept=concept,
            payment_account_id=payment_account_id,
            registered_by=registered_by,
        )
        if on_credit:
            self.db.create_account_payable(amount=amount, expense_id=expense_id)
            return EventOutcome(record_id=expense_id)

        return self._post(
            expense_id,
            account_id,
            Direction.OUT,
            amount,
            f"Gasto: {concept}",
            ExpenseRef(expense_id),
            registered_by,
        )

    def record_payment(
        self,
        type: PaymentRecordType,
        amount: Decimal,
        payment_method: str,
        payment_account_id: Optional[int] = None,
        notes: Optional[str] = None,
        registered_by: Optional[str] = None,
        require_ledger: bool = True,
    ) -> EventOutcome:
        """Record a receivable (``in``) or payable (``out``) payment."""
        amount = coerce_amount(amount)
        account_id = self._resolve(payment_method, payment_account_id, require_ledger)

        payment_id = self.db.create_payment_record(
            type=type,
            amount=amount,
            payment_method=payment_method,
            payment_account_id=payment_account_id,
            notes=notes,
            registered_by=registered_by,
        )
        if type is PaymentRecordType.RECEIVABLE:
            direction, default_concept = Direction.IN, "Abono CxC"
        else:
            direction, default_concept = Direction.OUT, "Pago CxP"

        return self._post(
            payment_id,
            account_id,
            direction,
            amount,
            notes or default_concept,
            PaymentRecordRef(payment_id, kind=type.value),
            registered_by,
        )

    def record_partner_withdrawal(
        self,
        partner_name: str,
        amount: Decimal,
        method: str,
        notes: Optional[str] = None,
        approved_by: Optional[str] = None,
        require_ledger: bool = True,
    ) -> EventOutcome:
        """Record a partner withdrawal and post the ``out`` movement."""
        amount = coerce_amount(amount)
        partner_name = partner_name.strip()
        if not partner_name:
            raise ValidationError("Partner name is required")
        account_id = self._resolve(method, None, require_ledger)

        withdrawal_id = self.db.create_partner_withdrawal(
            partner_name=partner_name,
            amount=amount,
            method=method,
            notes=notes,
            approved_by=approved_by,
        )
        return self._post(
            withdrawal_id,
            account_id,
            Direction.OUT,
            amount,
            f"Retiro socio: {partner_name}",
            PartnerWithdrawalRef(withdrawal_id),
            approved_by,
        )

    def update_partner_withdrawal(
        self,
        withdrawal_id: int,
        partner_name: Optional[str] = None,
        amount: Optional[Decimal] = None,
        method: Optional[str] = None,
        notes: Optional[str] = None,
        updated_by: Optional[str] = None,
    ) -> EventOutcome:
        """Edit a withdrawal; a new amount, method or partner replaces its movement.

        The account for the method is resolved before anything is written.
        The record update, the reversal of the old movement and the posting of
        the replacement then happen in a single transaction.

        Raises:
            RecordNotFound: If the withdrawal does not exist
            InvalidMovement: If the new amount is unusable
            AccountNotFound: If no active account can take the movement
        """
        current = self.db.get_partner_withdrawal(withdrawal_id)
        if current is None:
            raise RecordNotFound(record_not_found("withdrawal", withdrawal_id))
        if amount is not None:
            amount = coerce_amount(amount)
        if partner_name is not None:
            partner_name = partner_name.strip()
            if not partner_name:
                raise ValidationError("Partner name is required")

        new_amount = amount if amount is not None else current.amount
        new_method = method if method is not None else current.method
        new_partner = partner_name if partner_name is not None else current.partner_name

        existing = self.movements.find_by_reference(PartnerWithdrawalRef(withdrawal_id))
        ledger_changed = (
            new_amount != current.amount
            or new_method != current.method
            or new_partner != current.partner_name
        )
        if existing is not None and not ledger_changed:
            self.db.update_partner_withdrawal(withdrawal_id, notes=notes)
            return EventOutcome(record_id=withdrawal_id, movement=existing)

        account_id = self.resolver.resolve_account_for_method(new_method)
        movement = self.db.rebook_partner_withdrawal(
            withdrawal_id,
            account_id=account_id,
            concept=f"Retiro socio: {new_partner}",
            partner_name=partner_name,
            amount=amount,
            method=method,
            notes=notes,
            created_by=updated_by or (existing.created_by if existing is not None else None),
        )
        logger.info(
            "withdrawal_rebooked withdrawal_id=%s movement_id=%s account_id=%s amount=%s",
            withdrawal_id,
            movement.id,
            account_id,
            movement.amount,
        )
        return EventOutcome(record_id=withdrawal_id, movement=movement)

    def delete_partner_withdrawal(self, withdrawal_id: int) -> Optional[Movement]:
        """Delete a withdrawal, returning its money to the account it came from.

        Returns:
            The reversed movement, or None if the withdrawal had none
        """
        if self.db.get_partner_withdrawal(withdrawal_id) is None:
            raise RecordNotFound(record_not_found("withdrawal", withdrawal_id))

        reversed_movement = None
        existing = self.movements.find_by_reference(PartnerWithdrawalRef(withdrawal_id))
        if existing is not None:
            reversed_movement = self.movements.reverse_movement(existing.id)

        self.db.delete_partner_withdrawal(withdrawal_id)
        return reversed_movement
