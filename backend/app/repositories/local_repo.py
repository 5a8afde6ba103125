import json
import os
import tempfile
from pathlib import Path
from typing import Any, Optional

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

logger = get_logger("sakura.repositories.local")


class LocalAccountRepository(AccountRepository):
    """File-based record store: one JSON document per account.

    Layout: ``<users_dir>/<account id>.json``. Writes go to a temporary file in
    the same directory which is then renamed over the record, so readers only
    ever see a complete document.
    """

    def __init__(self, users_dir: Path) -> None:
        self.users_dir = Path(users_dir)

    def ensure_ready(self) -> None:
        try:
            self.users_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Cannot create data directory {self.users_dir}: {e}") from e
        logger.info(f"Data dir ready: {self.users_dir}")

    def _path(self, account_id: str) -> Path:
        # Ids are sha256 hex digests; anything else could escape users_dir.
        if not account_id or not all(c in "0123456789abcdef" for c in account_id):
            raise AccountNotFoundError("Unknown account id", {"account_id": account_id})
        return self.users_dir / f"{account_id}.json"

    def load(self, account_id: str) -> Optional[Account]:
        try:
            path = self._path(account_id)
        except AccountNotFoundError:
            return None
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageError(f"Cannot read account record: {e}", {"account_id": account_id}) from e

        try:
            return Account.from_record(json.loads(raw))
        except (json.JSONDecodeError, ValidationError) as e:
            logger.error(f"Corrupt account record {path.name}: {e}")
            raise CorruptRecordError("Account record is corrupt", {"account_id": account_id}) from e

    def _write_temp(self, record: dict[str, Any]) -> Path:
        """Write a record to a fresh temporary file next to the records."""
        fd, temp_name = tempfile.mkstemp(dir=self.users_dir, prefix=".", suffix=".tmp")
        temp_path = Path(temp_name)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(record, f, ensure_ascii=False, indent=2)
                f.flush()
                os.fsync(f.fileno())
        except BaseException:
            temp_path.unlink(missing_ok=True)
            raise
        return temp_path

    def create(self, account: Account) -> None:
        path = self._path(account.id)
        try:
            temp_path = self._write_temp(account.to_record())
            try:
                # link() fails if the target exists, making create-if-absent atomic
                os.link(temp_path, path)
            finally:
                temp_path.unlink(missing_ok=True)
        except FileExistsError as e:
            raise AccountExistsError("Account already exists", {"account_id": account.id}) from e
        except OSError as e:
            raise StorageError(f"Cannot create account record: {e}", {"account_id": account.id}) from e

    def save(self, account: Account) -> None:
        path = self._path(account.id)
        try:
            temp_path = self._write_temp(account.to_record())
            try:
                os.replace(temp_path, path)
            except BaseException:
                temp_path.unlink(missing_ok=True)
                raise
        except OSError as e:
            raise StorageError(f"Cannot save account record: {e}", {"account_id": account.id}) from e

    def delete(self, account_id: str) -> None:
        path = self._path(account_id)
        try:
            path.unlink()
        except FileNotFoundError as e:
            raise AccountNotFoundError("Account not found", {"account_id": account_id}) from e
        except OSError as e:
            raise StorageError(f"Cannot delete account record: {e}", {"account_id": account_id}) from e
