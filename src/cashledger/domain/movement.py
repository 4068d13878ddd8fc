"""Movement posting service."""

import logging
import uuid
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Optional

from cashledger.database.base import Database
from cashledger.domain.entities import Direction, Movement
from cashledger.domain.errors import (
    AccountNotFound,
    InvalidMovement,
    MovementNotFound,
    account_not_found,
    amount_out_of_range,
    movement_not_found,
    non_positive_amount,
)
from cashledger.domain.references import Reference, to_storage

logger = logging.getLogger(__name__)

# Stored money columns hold 14 digits with a scale of 2
CENT = Decimal("0.01")
MAX_AMOUNT = Decimal("999999999999.99")


@dataclass(frozen=True)
class FundsCheck:
    """Advisory comparison of an account balance against a planned outflow."""

    account_id: int
    balance: Decimal
    amount: Decimal

    @property
    def sufficient(self) -> bool:
        return self.balance >= self.amount

    @property
    def shortfall(self) -> Decimal:
        return max(self.amount - self.balance, Decimal("0"))


def coerce_amount(amount) -> Decimal:
    """Convert ``amount`` to a Decimal, rejecting values the ledger cannot hold.

    Zero, negative and non-finite amounts are refused, as are amounts with
    fractions of a cent or too many digits for the balance column.

    Raises:
        InvalidMovement: If the amount cannot be used for a movement
    """
    if isinstance(amount, Decimal):
        value = amount
    else:
        try:
            value = Decimal(str(amount))
        except (InvalidOperation, ValueError) as exc:
            raise InvalidMovement(f"Invalid movement amount '{amount}'") from exc
    if not value.is_finite() or value <= 0:
        raise InvalidMovement(non_positive_amount(value))
    if value > MAX_AMOUNT or value != value.quantize(CENT):
        raise InvalidMovement(amount_out_of_range(value))
    return value.quantize(CENT)


def _coerce_direction(direction) -> Direction:
    try:
        return Direction(direction)
    except ValueError as exc:
        raise InvalidMovement(f"Invalid movement direction '{direction}'") from exc


class MovementService:
    """Service for posting and correcting movements.

    Every posting goes through the database layer's atomic operations; this
    service validates requests and never computes a balance itself.
    """

    def __init__(self, db: Database):
        """Initialize movement service.

        Args:
            db: Database instance
        """
        self.db = db

    def post_movement(
        self,
        account_id: int,
        direction: Direction | str,
        amount: Decimal,
        concept: str,
        reference: Optional[Reference] = None,
        created_by: Optional[str] = None,
    ) -> Movement:
        """Append a movement and update the owning account balance atomically.

        Negative resulting balances are allowed and recorded as they are.

        Args:
            account_id: Account to post against
            direction: ``in`` adds to the balance, ``out`` subtracts
            amount: Positive amount in home currency
            concept: Free-text description
            reference: Business record that originated the movement
            created_by: Operator identity

        Returns:
            The posted movement, with its balance snapshots

        Raises:
            InvalidMovement: Non-positive amount, bad direction or empty concept
            AccountNotFound: If the account does not exist
            DuplicateReference: If the reference already has a movement
            PersistenceFailure: If the store rejects the write
        """
        if account_id is None:
            raise InvalidMovement("Account is required")
        direction = _coerce_direction(direction)
        amount = coerce_amount(amount)
        concept = (concept or "").strip()
        if not concept:
            raise InvalidMovement("Movement concept is required")

        if self.db.get_account(account_id) is None:
            raise AccountNotFound(account_not_found(account_id))

        reference_type, reference_id = to_storage(reference)
        movement = self.db.apply_movement(
            account_id=account_id,
            direction=direction,
            amount=amount,
            concept=concept,
            reference_type=reference_type,
            reference_id=reference_id,
            created_by=created_by,
        )
        logger.info(
            "movement_posted movement_id=%s account_id=%s direction=%s amount=%s "
            "previous_balance=%s new_balance=%s reference=%s:%s",
            movement.id,
            account_id,
            direction.value,
            amount,
            movement.previous_balance,
            movement.new_balance,
            reference_type,
            reference_id,
        )
        return movement

    def check_funds(self, account_id: int, amount: Decimal) -> FundsCheck:
        """Compare a planned outflow against the current balance.

        The result is advisory: callers warn the operator but may still post.
        """
        amount = coerce_amount(amount)
        account = self.db.get_account(account_id)
        if account is None:
            raise AccountNotFound(account_not_found(account_id))
        return FundsCheck(account_id=account_id, balance=account.balance, amount=amount)

    def transfer(
        self,
        source_account_id: int,
        destination_account_id: int,
        amount: Decimal,
        concept: str,
        created_by: Optional[str] = None,
    ) -> tuple[Movement, Movement]:
        """Move funds between two accounts as one out leg and one in leg.

        Returns:
            (out movement on source, in movement on destination)

        Raises:
            InvalidMovement: Same source and destination, bad amount or concept
            AccountNotFound: If either account does not exist
        """
        if source_account_id == destination_account_id:
            raise InvalidMovement("Source and destination accounts must differ")
        amount = coerce_amount(amount)
        concept = (concept or "").strip()
        if not concept:
            raise InvalidMovement("Movement concept is required")

        source = self.db.get_account(source_account_id)
        if source is None:
            raise AccountNotFound(account_not_found(source_account_id))
        destination = self.db.get_account(destination_account_id)
        if destination is None:
            raise AccountNotFound(account_not_found(destination_account_id))

        transfer_id = uuid.uuid4().hex
        out_leg, in_leg = self.db.apply_transfer(
            source_account_id=source_account_id,
            destination_account_id=destination_account_id,
            amount=amount,
            out_concept=f"Transferencia a {destination.name}: {concept}",
            in_concept=f"Transferencia desde {source.name}: {concept}",
            transfer_id=transfer_id,
            created_by=created_by,
        )
        logger.info(
            "transfer_posted transfer_id=%s source=%s destination=%s amount=%s",
            transfer_id,
            source_account_id,
            destination_account_id,
            amount,
        )
        return out_leg, in_leg

    def reverse_movement(self, movement_id: int) -> Movement:
        """Delete a movement and revert its balance effect.

        Reversing either leg of a transfer reverses the whole transfer.

        Returns:
            The movement that was removed
        """
        movement = self.db.reverse_movement(movement_id)
        logger.info(
            "movement_reversed movement_id=%s account_id=%s direction=%s amount=%s",
            movement.id,
            movement.account_id,
            movement.direction.value,
            movement.amount,
        )
        return movement

    def replace_movement(
        self,
        movement_id: int,
        account_id: int,
        direction: Direction | str,
        amount: Decimal,
        concept: str,
        reference: Optional[Reference] = None,
        created_by: Optional[str] = None,
    ) -> Movement:
        """Correct a movement: reverse it and post a replacement in one step."""
        direction = _coerce_direction(direction)
        amount = coerce_amount(amount)
        concept = (concept or "").strip()
        if not concept:
            raise InvalidMovement("Movement concept is required")
        if self.db.get_account(account_id) is None:
            raise AccountNotFound(account_not_found(account_id))

        reference_type, reference_id = to_storage(reference)
        replacement = self.db.replace_movement(
            movement_id=movement_id,
            account_id=account_id,
            direction=direction,
            amount=amount,
            concept=concept,
            reference_type=reference_type,
            reference_id=reference_id,
            created_by=created_by,
        )
        logger.info(
            "movement_replaced old_movement_id=%s new_movement_id=%s account_id=%s amount=%s",
            movement_id,
            replacement.id,
            account_id,
            amount,
        )
        return replacement

    def get_movement(self, movement_id: int) -> Optional[Movement]:
        """Get movement by ID."""
        return self.db.get_movement(movement_id)

    def require_movement(self, movement_id: int) -> Movement:
        """Get movement by ID or raise MovementNotFound."""
        movement = self.db.get_movement(movement_id)
        if movement is None:
            raise MovementNotFound(movement_not_found(movement_id))
        return movement

    def find_by_reference(self, reference: Reference) -> Optional[Movement]:
        """Get the movement linked to a business record, if any."""
        reference_type, reference_id = to_storage(reference)
        return self.db.find_movement_by_reference(reference_type, reference_id)

    def list_movements(
        self,
        account_id: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[Movement]:
        """List movements, newest first.

        Raises:
            ValueError: If start_date is after end_date
        """
        if start_date is not None and end_date is not None and start_date > end_date:
            raise ValueError("Start date must be on or before end date")
        return self.db.list_movements(account_id=account_id, start_date=start_date, end_date=end_date)
