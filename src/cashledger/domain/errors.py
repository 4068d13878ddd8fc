"""Ledger error types and shared error messages."""

from decimal import Decimal


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for callers that only care that an operation was refused.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class ConflictError(DomainError):
    """Domain conflict, such as uniqueness violations."""


class DependencyError(DomainError):
    """Operation blocked due to dependent domain data."""


class InvalidMovement(ValidationError):
    """Movement request with an unusable amount or missing required fields."""


class AccountNotFound(NotFoundError):
    """No usable account: unknown id, or no active account to resolve to."""


class MovementNotFound(NotFoundError):
    """Requested movement does not exist."""


class RecordNotFound(NotFoundError):
    """Requested business record (sale, expense, payment, withdrawal) does not exist."""


class DuplicateReference(ConflictError):
    """A movement already exists for this business record."""


class ConcurrentUpdateError(ConflictError):
    """Account balance kept changing underneath a posting; retries exhausted."""


class PersistenceFailure(DomainError):
    """The store rejected a read or write."""


class ReconciliationPartialFailure(DomainError):
    """One or more records could not be backfilled during reconciliation.

    The reconciler itself never raises this; it reports errors on its result.
    Callers that want a hard failure (``reconcile --strict``) raise it.
    """

    def __init__(self, errors: list[str]):
        self.errors = list(errors)
        super().__init__(
            f"Reconciliation finished with {len(self.errors)} "
            f"error{'s' if len(self.errors) != 1 else ''}"
        )


def account_not_found(account_id: int) -> str:
    """Return message for missing account."""
    return f"Account {account_id} not found"


def no_active_accounts() -> str:
    """Return message when there is no active account at all."""
    return "No active accounts found"


def movement_not_found(movement_id: int) -> str:
    """Return message for missing movement."""
    return f"Movement {movement_id} not found"


def record_not_found(kind: str, record_id: int) -> str:
    """Return message for a missing business record."""
    return f"{kind.capitalize()} {record_id} not found"


def non_positive_amount(amount: Decimal) -> str:
    """Return message for a movement amount that is zero or negative."""
    return f"Movement amount must be greater than 0 (got {amount})"


def duplicate_reference(reference_type: str, reference_id: str) -> str:
    """Return message for a reference pair that already has a movement."""
    return f"A movement for {reference_type} {reference_id} already exists"


def account_delete_blocked(account_id: int, movement_count: int) -> str:
    """Return message when an account has movements and cannot be hard-deleted."""
    return (
        f"Cannot delete account {account_id}: it has {movement_count} "
        f"movement{'s' if movement_count != 1 else ''}. "
        "Deactivate it instead."
    )


def amount_out_of_range(amount: Decimal) -> str:
    """Return message for an amount the ledger cannot store exactly."""
    return f"Movement amount must have at most 2 decimals and 12 integer digits (got {amount})"
