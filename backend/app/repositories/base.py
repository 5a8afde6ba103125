"""
Account repository interface.

Every backend stores one self-contained record per account, keyed by the
account id, and must keep each single write atomic: a crash or a racing
writer may lose an update but never leaves a partial record behind.
"""

from abc import ABC, abstractmethod
from typing import Optional

from app.schemas.models import Account


class AccountRepository(ABC):
    """Abstract record store for accounts."""

    @abstractmethod
    def ensure_ready(self) -> None:
        """
        Prepare the storage root.

        Raises:
            StorageError: If storage is unavailable
        """

    @abstractmethod
    def load(self, account_id: str) -> Optional[Account]:
        """
        Load an account record.

        Returns:
            The account, or None if no record exists

        Raises:
            CorruptRecordError: If a record exists but cannot be parsed
            StorageError: If storage is unavailable
        """

    @abstractmethod
    def create(self, account: Account) -> None:
        """
        Persist a new account record, failing if one already exists.

        Raises:
            AccountExistsError: If a record with the same id exists
            StorageError: If storage is unavailable
        """

    @abstractmethod
    def save(self, account: Account) -> None:
        """
        Persist the full account record, replacing any previous version.

        Raises:
            StorageError: If storage is unavailable
        """

    @abstractmethod
    def delete(self, account_id: str) -> None:
        """
        Remove an account record.

        Raises:
            AccountNotFoundError: If no record exists
            StorageError: If storage is unavailable
        """
