"""Mapper functions to convert between domain models and SQLAlchemy models.

This layer isolates the conversion logic, including the flattening of typed
movement references into their stored ``(reference_type, reference_id)`` pair.
"""

from decimal import Decimal

from cashledger.domain import entities as domain
from cashledger.domain.references import from_storage
from cashledger.database.models import (
    Account as ORMAccount,
    Movement as ORMMovement,
    Sale as ORMSale,
    PaymentRecord as ORMPaymentRecord,
    Expense as ORMExpense,
    PartnerWithdrawal as ORMPartnerWithdrawal,
)


def _money(value) -> Decimal:
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def account_to_domain(orm_account: ORMAccount) -> domain.Account:
    """Convert SQLAlchemy Account model to domain Account entity."""
    return domain.Account(
        id=orm_account.id,
        name=orm_account.name,
        kind=domain.AccountKind(orm_account.kind),
        balance=_money(orm_account.balance),
        is_active=bool(orm_account.is_active),
        created_at=orm_account.created_at,
        updated_at=orm_account.updated_at,
    )


def movement_to_domain(orm_movement: ORMMovement) -> domain.Movement:
    """Convert SQLAlchemy Movement model to domain Movement entity."""
    return domain.Movement(
        id=orm_movement.id,
        account_id=orm_movement.account_id,
        direction=domain.Direction(orm_movement.direction),
        amount=_money(orm_movement.amount),
        previous_balance=_money(orm_movement.previous_balance),
        new_balance=_money(orm_movement.new_balance),
        concept=orm_movement.concept,
        reference=from_storage(orm_movement.reference_type, orm_movement.reference_id),
        created_by=orm_movement.created_by,
        created_at=orm_movement.created_at,
        transfer_to_account_id=orm_movement.transfer_to_account_id,
    )


def sale_to_domain(orm_sale: ORMSale) -> domain.Sale:
    """Convert SQLAlchemy Sale model to domain Sale entity."""
    return domain.Sale(
        id=orm_sale.id,
        invoice_number=orm_sale.invoice_number,
        total=_money(orm_sale.total),
        payment_method=orm_sale.payment_method,
        payment_account_id=orm_sale.payment_account_id,
        is_credit=orm_sale.is_credit,
        status=orm_sale.status,
        created_by=orm_sale.created_by,
    )


def payment_record_to_domain(orm_payment: ORMPaymentRecord) -> domain.PaymentRecord:
    """Convert SQLAlchemy PaymentRecord model to domain PaymentRecord entity."""
    return domain.PaymentRecord(
        id=orm_payment.id,
        type=domain.PaymentRecordType(orm_payment.type),
        amount=_money(orm_payment.amount),
        payment_method=orm_payment.payment_method,
        payment_account_id=orm_payment.payment_account_id,
        notes=orm_payment.notes,
        registered_by=orm_payment.registered_by,
    )


def expense_to_domain(orm_expense: ORMExpense) -> domain.Expense:
    """Convert SQLAlchemy Expense model to domain Expense entity."""
    return domain.Expense(
        id=orm_expense.id,
        amount=_money(orm_expense.amount),
        payment_method=orm_expense.payment_method,
        payment_account_id=orm_expense.payment_account_id,
        concept=orm_expense.concept,
        registered_by=orm_expense.registered_by,
    )


def partner_withdrawal_to_domain(
    orm_withdrawal: ORMPartnerWithdrawal,
) -> domain.PartnerWithdrawal:
    """Convert SQLAlchemy PartnerWithdrawal model to domain PartnerWithdrawal entity."""
    return domain.PartnerWithdrawal(
        id=orm_withdrawal.id,
        partner_name=orm_withdrawal.partner_name,
        amount=_money(orm_withdrawal.amount),
        method=orm_withdrawal.method,
        notes=orm_withdrawal.notes,
        approved_by=orm_withdrawal.approved_by,
    )
