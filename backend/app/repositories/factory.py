from app.core.config import Settings
from app.repositories.base import AccountRepository
from app.repositories.local_repo import LocalAccountRepository


def build_account_repository(settings: Settings) -> AccountRepository:
    """Create the record store selected by ``settings.storage_backend``."""
    if settings.storage_backend == "firestore":
        # Imported lazily so the local backend never touches Firebase.
        from app.repositories.firestore_repo import FirestoreAccountRepository

        return FirestoreAccountRepository(
            collection=settings.firestore_collection,
            timeout=settings.storage_timeout_seconds,
        )
    return LocalAccountRepository(settings.users_dir)
