"""
Firestore Repository

Account record store backed by Firestore. Each account is a single document,
so every write is atomic on the server side.

Data Structure:
    accounts/{account_id}   - Account record (email, passwordHash, transactions, meta, ...)
"""

from typing import Any, Optional

import firebase_admin
from firebase_admin import firestore
from google.api_core import exceptions as google_exceptions
from pydantic import ValidationError

from app.core.exceptions import (
    AccountExistsError,
    AccountNotFoundError,
    CorruptRecordError,
    StorageError,
)
from app.core.logging import get_logger
from app.repositories.base import AccountRepository
from app.schemas.models import Account

logger = get_logger("sakura.repositories.firestore")


class FirestoreAccountRepository(AccountRepository):
    """Repository using Firestore for account persistence."""

    def __init__(
        self,
        collection: str = "accounts",
        timeout: float = 5.0,
        client: Any = None,
    ) -> None:
        if client is None:
            # Initialize Firebase Admin SDK with Application Default Credentials
            if not firebase_admin._apps:
                firebase_admin.initialize_app()
            client = firestore.client()

        self.db = client
        self.collection = collection
        self.timeout = timeout

    def _doc(self, account_id: str):
        return self.db.collection(self.collection).document(account_id)

    def ensure_ready(self) -> None:
        # Collections are created on first write; nothing to prepare.
        logger.info(f"Using Firestore collection: {self.collection}")

    def load(self, account_id: str) -> Optional[Account]:
        try:
            doc = self._doc(account_id).get(timeout=self.timeout)
        except (google_exceptions.GoogleAPICallError, google_exceptions.RetryError) as e:
            raise StorageError(f"Firestore read failed: {e}", {"account_id": account_id}) from e

        if not doc.exists:
            return None

        try:
            return Account.from_record(doc.to_dict())
        except ValidationError as e:
            logger.error(f"Corrupt account document {account_id}: {e}")
            raise CorruptRecordError("Account record is corrupt", {"account_id": account_id}) from e

    def create(self, account: Account) -> None:
        try:
            self._doc(account.id).create(account.to_record(), timeout=self.timeout)
        except google_exceptions.AlreadyExists as e:
            raise AccountExistsError("Account already exists", {"account_id": account.id}) from e
        except (google_exceptions.GoogleAPICallError, google_exceptions.RetryError) as e:
            raise StorageError(f"Firestore create failed: {e}", {"account_id": account.id}) from e

    def save(self, account: Account) -> None:
        try:
            self._doc(account.id).set(account.to_record(), timeout=self.timeout)
        except (google_exceptions.GoogleAPICallError, google_exceptions.RetryError) as e:
            raise StorageError(f"Firestore write failed: {e}", {"account_id": account.id}) from e

    def delete(self, account_id: str) -> None:
        try:
            self._doc(account_id).delete(
                option=self.db.write_option(exists=True),
                timeout=self.timeout,
            )
        except google_exceptions.NotFound as e:
            raise AccountNotFoundError("Account not found", {"account_id": account_id}) from e
        except (google_exceptions.GoogleAPICallError, google_exceptions.RetryError) as e:
            raise StorageError(f"Firestore delete failed: {e}", {"account_id": account_id}) from e
