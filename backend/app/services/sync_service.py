from __future__ import annotations

from typing import Any

from app.core.exceptions import InvalidInputError
from app.core.logging import LogContext, get_logger
from app.core.utils import parse_timestamp, utc_now_iso
from app.repositories.base import AccountRepository
from app.schemas.models import Account, Transaction
from app.services.transaction_service import (
    dedupe_transactions,
    merge_transactions,
    sanitize_transactions,
)

logger = get_logger("sakura.services.sync")


def _require_list(incoming: Any) -> list[Any]:
    if not isinstance(incoming, list):
        raise InvalidInputError("transactions must be an array")
    return incoming


def _touched(account: Account, transactions: list[Transaction]) -> Account:
    """Copy of ``account`` with new transactions and a refreshed updatedAt."""
    now = utc_now_iso()
    created = parse_timestamp(account.created_at)
    current = parse_timestamp(now)
    # Never let a clock step backwards put updatedAt before createdAt
    if created is not None and current is not None and current < created:
        now = account.created_at
    return account.model_copy(update={"transactions": transactions, "updated_at": now})


class SyncService:
    """Download, replace and merge an account's transaction list."""

    def __init__(self, repository: AccountRepository) -> None:
        self.repository = repository

    def download(self, account: Account) -> list[Transaction]:
        return list(account.transactions)

    def upload_replace(self, account: Account, incoming: Any) -> Account:
        """Replace the stored list with the sanitized incoming list.

        Duplicate ids in ``incoming`` collapse to their last occurrence.

        Raises:
            InvalidInputError: If ``incoming`` is not a list
        """
        items = _require_list(incoming)
        transactions = dedupe_transactions(sanitize_transactions(items))
        updated = _touched(account, transactions)

        with LogContext(logger, "upload", account=account.id[:12], count=len(transactions)):
            self.repository.save(updated)
        return updated

    def upload_merge(self, account: Account, incoming: Any) -> list[Transaction]:
        """Merge the incoming list into the stored one and persist the result.

        Returns:
            The merged list, newest first, so the client can reconcile without
            downloading again

        Raises:
            InvalidInputError: If ``incoming`` is not a list
        """
        items = _require_list(incoming)
        merged = merge_transactions(account.transactions, items)
        updated = _touched(account, merged)

        with LogContext(logger, "merge", account=account.id[:12], incoming=len(items), total=len(merged)):
            self.repository.save(updated)
        return merged

    def delete_account(self, account: Account, confirm: Any) -> None:
        """Irreversibly delete the account record.

        Raises:
            InvalidInputError: Unless ``confirm`` is exactly ``True``
            AccountNotFoundError: If the record is already gone
        """
        if confirm is not True:
            raise InvalidInputError("Missing confirm flag")

        with LogContext(logger, "account deletion", account=account.id[:12]):
            self.repository.delete(account.id)
