"""Utility for resolving account names to IDs."""

from cashledger.domain.account import AccountService
from cashledger.domain.errors import AccountNotFound


def resolve_account(account_service: AccountService, account: str | int) -> int:
    """Resolve account name or ID to account ID.

    Names are matched case-insensitively, like the method resolver does.

    Args:
        account_service: AccountService instance
        account: Account name (str) or ID (int or string representation of int)

    Returns:
        Account ID

    Raises:
        AccountNotFound: If account is not found
    """
    if isinstance(account, int):
        if account_service.get_account(account) is None:
            raise AccountNotFound(f"Account ID {account} not found")
        return account

    # Try to parse as integer (handles string IDs like "1")
    try:
        account_id = int(account)
    except (ValueError, TypeError):
        account_id = None

    if account_id is not None:
        if account_service.get_account(account_id) is None:
            raise AccountNotFound(f"Account ID {account_id} not found")
        return account_id

    found = account_service.get_account_by_name(account)
    if found is None:
        raise AccountNotFound(f"Account '{account}' not found")
    return found.id
