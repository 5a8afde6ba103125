"""
Transaction sanitizing and merging.

Everything here is pure: no storage, no clock except for defaulting a missing
date, and no exceptions for malformed input.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from app.core.utils import parse_timestamp, utc_now_iso
from app.schemas.models import Transaction

DEFAULT_TITLE = "Untitled"
DEFAULT_TYPE = "purchase"

# Sorts unparsable dates after every real one when ordering newest first.
_UNPARSABLE_DATE = datetime.min.replace(tzinfo=timezone.utc)


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


def _coerce_amount(value: Any) -> float:
    if isinstance(value, bool):
        return 0.0
    if not isinstance(value, (int, float, str)):
        return 0.0
    try:
        number = float(value.strip() if isinstance(value, str) else value)
    except (ValueError, OverflowError):
        # OverflowError: a JSON integer too large for a float
        return 0.0
    return number if math.isfinite(number) else 0.0


def sanitize_transaction(raw: Any) -> Transaction:
    """Coerce one transaction-like value into a well-formed Transaction.

    Non-mapping values are treated as an empty mapping, so every field falls
    back to its default.
    """
    data: Mapping[str, Any] = raw if isinstance(raw, Mapping) else {}

    txn_id = data.get("id")
    title = data.get("title")
    description = data.get("description")
    txn_type = data.get("type")
    date = data.get("date")

    return Transaction(
        id=str(uuid4()) if _is_blank(txn_id) else str(txn_id),
        title=DEFAULT_TITLE if _is_blank(title) else str(title),
        description="" if description is None else str(description),
        type=DEFAULT_TYPE if _is_blank(txn_type) else str(txn_type),
        amount=_coerce_amount(data.get("amount")),
        date=utc_now_iso() if _is_blank(date) else str(date),
    )


def sanitize_transactions(value: Any) -> list[Transaction]:
    """Sanitize a list of transaction-like values.

    Args:
        value: Anything; only a list is treated as transactions

    Returns:
        Sanitized transactions in input order, or an empty list when ``value``
        is not a list. Duplicate ids are kept.
    """
    if not isinstance(value, list):
        return []
    return [sanitize_transaction(item) for item in value]


def transaction_sort_key(txn: Transaction) -> datetime:
    return parse_timestamp(txn.date) or _UNPARSABLE_DATE


def sort_transactions(transactions: Iterable[Transaction]) -> list[Transaction]:
    """Order transactions newest first, breaking date ties by ascending id."""
    by_id = sorted(transactions, key=lambda txn: txn.id)
    # sorted() is stable, so the id order survives among equal dates
    return sorted(by_id, key=transaction_sort_key, reverse=True)


def dedupe_transactions(transactions: Iterable[Transaction]) -> list[Transaction]:
    """Collapse duplicate ids, keeping the last occurrence at the first position."""
    by_id: dict[str, Transaction] = {}
    for txn in transactions:
        by_id[txn.id] = txn
    return list(by_id.values())


def merge_transactions(current: Iterable[Transaction], incoming: Any) -> list[Transaction]:
    """Merge an incoming list into the stored one by id.

    An incoming transaction replaces a stored transaction with the same id
    as a whole; fields are never combined.

    Args:
        current: Stored, already sanitized transactions
        incoming: Raw client list, sanitized here

    Returns:
        The union of both lists ordered by date descending, then id ascending
    """
    by_id: dict[str, Transaction] = {txn.id: txn for txn in current}
    for txn in sanitize_transactions(incoming):
        by_id[txn.id] = txn
    return sort_transactions(by_id.values())
