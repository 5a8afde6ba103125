"""Custom exceptions for the Sakura sync backend."""

from __future__ import annotations


class SakuraError(Exception):
    """Base exception for all Sakura errors."""

    def __init__(self, message: str, details: dict | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class InvalidInputError(SakuraError):
    """Raised when a request is missing fields or carries malformed values."""

    pass


class AccountExistsError(SakuraError):
    """Raised when registering an email that already resolves to an account."""

    pass


class InvalidCredentialsError(SakuraError):
    """Raised when login fails.

    The same error is used for an unknown email and a wrong password so that
    responses do not reveal which accounts exist.
    """

    def __init__(self, message: str = "Invalid login", details: dict | None = None) -> None:
        super().__init__(message, details)


class UnauthorizedError(SakuraError):
    """Raised when a bearer credential is missing, invalid or expired."""

    pass


class AccountNotFoundError(SakuraError):
    """Raised when an operation targets an account record that does not exist."""

    pass


class StorageError(SakuraError):
    """Raised when the record store is unavailable."""

    pass


class CorruptRecordError(StorageError):
    """Raised when a stored record exists but cannot be parsed."""

    pass
