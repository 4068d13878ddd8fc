"""Payment method to account resolution."""

import logging
from collections.abc import Mapping
from typing import Optional

from cashledger.database.base import Database
from cashledger.domain.entities import Account
from cashledger.domain.errors import AccountNotFound, no_active_accounts

logger = logging.getLogger(__name__)

# Payment method identifier -> canonical account display name
DEFAULT_METHOD_ACCOUNTS: dict[str, str] = {
    "efectivo": "Efectivo",
    "bancolombia": "Bancolombia",
    "nequi": "Nequi",
    "daviplata": "Daviplata",
}


def pick_account(
    accounts: list[Account],
    method: Optional[str],
    method_accounts: Mapping[str, str],
    preferred_account_id: Optional[int] = None,
) -> Optional[int]:
    """Choose an account ID from an already-loaded list of active accounts.

    Preference order: ``preferred_account_id`` if it is in the list, then the
    account named by the method mapping, then the lowest ID. Returns None only
    when ``accounts`` is empty.
    """
    if not accounts:
        return None

    if preferred_account_id is not None:
        for account in accounts:
            if account.id == preferred_account_id:
                return account.id

    canonical = method_accounts.get((method or "").strip().lower())
    if canonical is not None:
        wanted = canonical.lower()
        for account in accounts:
            if account.name.lower() == wanted:
                return account.id

    return min(accounts, key=lambda acc: acc.id).id


class MethodResolver:
    """Resolves payment methods to the account that receives or releases the funds.

    The fallback to the first active account when a method has no mapping (or
    its account is missing or inactive) is business policy; pass
    ``method_accounts`` to change the mapping.
    """

    def __init__(self, db: Database, method_accounts: Optional[Mapping[str, str]] = None):
        self.db = db
        self.method_accounts = {
            method.lower(): name
            for method, name in (method_accounts or DEFAULT_METHOD_ACCOUNTS).items()
        }

    def resolve_account_for_method(
        self, method: Optional[str], preferred_account_id: Optional[int] = None
    ) -> int:
        """Return the account ID for a payment method.

        Args:
            method: Payment method identifier (e.g. "efectivo", "nequi")
            preferred_account_id: Account explicitly recorded on the business
                record; used when it is still active

        Returns:
            Account ID

        Raises:
            AccountNotFound: If there are no active accounts at all
        """
        accounts = self.db.list_accounts(active_only=True)
        account_id = pick_account(accounts, method, self.method_accounts, preferred_account_id)
        if account_id is None:
            raise AccountNotFound(no_active_accounts())

        logger.debug("method_resolved method=%s account_id=%s", method, account_id)
        return account_id
