"""Historical reconciliation of the movement log against business records.

Older data (sales, payments and expenses recorded before they were linked to
the ledger) has no movements. ``ReconciliationService.reconcile_history``
synthesizes the missing ones and then recomputes every balance from the log.

The run is two-phase. Backfilled movements carry zero balance snapshots,
because source records are not processed in chronological order and a
running snapshot would be meaningless; the recompute pass that follows is
what makes balances correct. Both phases are safe to repeat: backfill skips
any record whose ``(reference_type, reference_id)`` pair is already in the
log, and recompute is a pure function of the log.
"""

import logging
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from cashledger.database.base import Database
from cashledger.domain.entities import (
    Account,
    BalanceDiscrepancy,
    Direction,
    PaymentRecordType,
    ReconciliationResult,
)
from cashledger.domain.errors import DomainError, no_active_accounts
from cashledger.domain.references import (
    ExpenseRef,
    PaymentRecordRef,
    Reference,
    ReferenceKey,
    SaleRef,
    reference_key,
    to_storage,
)
from cashledger.domain.resolver import MethodResolver, pick_account

logger = logging.getLogger(__name__)

SALES_PASS = "sales"
RECEIVABLES_PASS = "receivable_payments"
EXPENSES_PASS = "expenses"
PAYABLES_PASS = "payable_payments"


@dataclass(frozen=True)
class BackfillCandidate:
    """A business record that should have exactly one movement."""

    label: str
    reference: Reference
    direction: Direction
    amount: Decimal
    concept: str
    payment_method: Optional[str]
    payment_account_id: Optional[int]
    created_by: Optional[str]


class ReconciliationService:
    """Backfills missing movements and recomputes account balances."""

    def __init__(self, db: Database, resolver: Optional[MethodResolver] = None):
        """Initialize reconciliation service.

        Args:
            db: Database instance
            resolver: Method resolver whose mapping picks accounts for records
                without a usable recorded account
        """
        self.db = db
        self.resolver = resolver or MethodResolver(db)

    # Source scans
    def _sale_candidates(self) -> Iterator[BackfillCandidate]:
        for sale in self.db.list_paid_cash_sales():
            yield BackfillCandidate(
                label=f"Venta {sale.invoice_number}",
                reference=SaleRef(sale.id),
                direction=Direction.IN,
                amount=sale.total,
                concept=f"Venta {sale.invoice_number}",
                payment_method=sale.payment_method,
                payment_account_id=sale.payment_account_id,
                created_by=sale.created_by,
            )

    def _receivable_candidates(self) -> Iterator[BackfillCandidate]:
        for payment in self.db.list_payment_records(PaymentRecordType.RECEIVABLE):
            yield BackfillCandidate(
                label=f"Abono CxC {payment.id}",
                reference=PaymentRecordRef(payment.id, kind=PaymentRecordType.RECEIVABLE.value),
                direction=Direction.IN,
                amount=payment.amount,
                concept=payment.notes or "Abono CxC",
                payment_method=payment.payment_method,
                payment_account_id=payment.payment_account_id,
                created_by=payment.registered_by,
            )

    def _expense_candidates(self) -> Iterator[BackfillCandidate]:
        # Expenses tied to a payable hit the ledger when the payable is paid
        for expense in self.db.list_expenses_without_payable():
            yield BackfillCandidate(
                label=f"Gasto {expense.concept}",
                reference=ExpenseRef(expense.id),
                direction=Direction.OUT,
                amount=expense.amount,
                concept=f"Gasto: {expense.concept}",
                payment_method=expense.payment_method,
                payment_account_id=expense.payment_account_id,
                created_by=expense.registered_by,
            )

    def _payable_candidates(self) -> Iterator[BackfillCandidate]:
        for payment in self.db.list_payment_records(PaymentRecordType.PAYABLE):
            yield BackfillCandidate(
                label=f"Pago CxP {payment.id}",
                reference=PaymentRecordRef(payment.id, kind=PaymentRecordType.PAYABLE.value),
                direction=Direction.OUT,
                amount=payment.amount,
                concept=payment.notes or "Pago CxP",
                payment_method=payment.payment_method,
                payment_account_id=payment.payment_account_id,
                created_by=payment.registered_by,
            )

    def _passes(self) -> list[tuple[str, Callable[[], Iterator[BackfillCandidate]]]]:
        return [
            (SALES_PASS, self._sale_candidates),
            (RECEIVABLES_PASS, self._receivable_candidates),
            (EXPENSES_PASS, self._expense_candidates),
            (PAYABLES_PASS, self._payable_candidates),
        ]

    def _backfill(
        self,
        pass_name: str,
        candidates: Callable[[], Iterator[BackfillCandidate]],
        accounts: list[Account],
        existing: set[ReferenceKey],
        default_creator: Optional[str],
        result: ReconciliationResult,
    ) -> None:
        created = 0
        try:
            for candidate in candidates():
                key = reference_key(candidate.reference)
                if key in existing:
                    continue

                if candidate.amount is None or candidate.amount <= 0:
                    result.errors.append(f"{candidate.label}: amount must be greater than 0")
                    continue

                account_id = pick_account(
                    accounts,
                    candidate.payment_method,
                    self.resolver.method_accounts,
                    candidate.payment_account_id,
                )
                if account_id is None:
                    continue

                reference_type, reference_id = to_storage(candidate.reference)
                try:
                    self.db.insert_backfill_movement(
                        account_id=account_id,
                        direction=candidate.direction,
                        amount=candidate.amount,
                        concept=candidate.concept,
                        reference_type=reference_type,
                        reference_id=reference_id,
                        created_by=candidate.created_by or default_creator,
                    )
                except DomainError as exc:
                    logger.warning(
                        "backfill_failed pass=%s record=%s error=%s", pass_name, candidate.label, exc
                    )
                    result.errors.append(f"{candidate.label}: {exc}")
                    continue

                existing.add(key)
                created += 1
        except DomainError as exc:
            # The source scan itself failed; later passes still run
            logger.warning("backfill_scan_failed pass=%s error=%s", pass_name, exc)
            result.errors.append(f"{pass_name}: {exc}")

        result.created_by_pass[pass_name] = created
        result.created += created
        logger.info("backfill_pass_done pass=%s created=%d", pass_name, created)

    def _recompute(self, accounts: list[Account], result: ReconciliationResult) -> None:
        for account in accounts:
            try:
                result.balances[account.id] = self.db.recompute_account_balance(account.id)
            except DomainError as exc:
                logger.warning("recompute_failed account_id=%s error=%s", account.id, exc)
                result.errors.append(f"Recompute {account.name}: {exc}")

    def reconcile_history(self, default_creator: Optional[str] = None) -> ReconciliationResult:
        """Backfill every unlinked business record, then recompute all balances.

        Per-record failures are collected on the result and do not stop the run;
        re-running retries exactly the records that are still unlinked.

        Args:
            default_creator: Creator recorded on synthesized movements whose
                source record has none

        Returns:
            ReconciliationResult with the number of movements created and the
            per-record error messages
        """
        result = ReconciliationResult()

        accounts = self.db.list_accounts(active_only=True)
        if not accounts:
            logger.warning("reconcile_aborted reason=no_active_accounts")
            result.errors.append(no_active_accounts())
            return result

        # Computed once per run; updated locally as movements are created
        existing = self.db.list_reference_keys()

        for pass_name, candidates in self._passes():
            self._backfill(pass_name, candidates, accounts, existing, default_creator, result)

        self._recompute(accounts, result)

        logger.info(
            "reconcile_done created=%d errors=%d accounts=%d",
            result.created,
            len(result.errors),
            len(accounts),
        )
        return result

    def recompute_balances(self) -> ReconciliationResult:
        """Run only the recompute pass over every active account."""
        result = ReconciliationResult()
        accounts = self.db.list_accounts(active_only=True)
        if not accounts:
            result.errors.append(no_active_accounts())
            return result
        self._recompute(accounts, result)
        return result

    def find_discrepancies(self) -> list[BalanceDiscrepancy]:
        """Report accounts whose stored balance differs from their movement sum.

        Read-only; covers inactive accounts too.
        """
        discrepancies = []
        for account in self.db.list_accounts():
            total_in, total_out = self.db.sum_movements(account.id)
            computed = total_in - total_out
            if computed != account.balance:
                discrepancies.append(
                    BalanceDiscrepancy(
                        account_id=account.id,
                        account_name=account.name,
                        stored_balance=account.balance,
                        computed_balance=computed,
                    )
                )
        return discrepancies
