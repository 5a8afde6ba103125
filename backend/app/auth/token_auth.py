"""
Token Authentication

Registers accounts, checks passwords at login, issues signed bearer tokens and
resolves them back to stored accounts on every authenticated request.
"""

from datetime import datetime, timedelta
from typing import Any, Optional

import bcrypt
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import ExpiredSignatureError, JWTError, jwt

from app.core.config import Settings
from app.core.exceptions import (
    InvalidCredentialsError,
    InvalidInputError,
    StorageError,
    UnauthorizedError,
)
from app.core.logging import get_logger
from app.core.utils import account_id_from_email, normalize_email, utc_now
from app.repositories.base import AccountRepository
from app.schemas.models import Account

logger = get_logger("sakura.auth")

# HTTP Bearer scheme for Authorization header
security = HTTPBearer(auto_error=False)

# bcrypt only looks at the first 72 bytes of a password.
BCRYPT_MAX_BYTES = 72


def _password_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def hash_password(password: str, rounds: int = 12) -> str:
    return bcrypt.hashpw(_password_bytes(password), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(_password_bytes(password), password_hash.encode("utf-8"))
    except ValueError:
        # Stored hash is not a bcrypt hash
        return False


def _require_credentials(email: Any, password: Any) -> tuple[str, str]:
    email_text = "" if email is None else normalize_email(email)
    password_text = "" if password is None else str(password)
    if not email_text or not password_text:
        raise InvalidInputError("Email and password required")
    return email_text, password_text


class AuthService:
    """Account registration, login and bearer token verification."""

    def __init__(self, repository: AccountRepository, settings: Settings) -> None:
        self.repository = repository
        self.settings = settings
        # Compared against when the account does not exist, so an unknown
        # email costs the same bcrypt work as a wrong password.
        self._dummy_hash = hash_password("sakura-dummy-password", settings.bcrypt_rounds)

    def register(self, email: Any, password: Any) -> Account:
        """
        Create a new account with an empty transaction list.

        Raises:
            InvalidInputError: If email or password is blank
            AccountExistsError: If the normalized email is already registered
        """
        email_text, password_text = _require_credentials(email, password)
        now = utc_now().isoformat()
        account = Account(
            id=account_id_from_email(email_text),
            email=email_text,
            credential_hash=hash_password(password_text, self.settings.bcrypt_rounds),
            created_at=now,
            updated_at=now,
            transactions=[],
            meta={},
        )
        self.repository.create(account)
        logger.info(f"Registered account {account.id[:12]}")
        return account

    def login(self, email: Any, password: Any) -> str:
        """
        Check credentials and issue a bearer token.

        An unknown email and a wrong password raise the same error so that
        login responses never reveal whether an account exists.

        Raises:
            InvalidInputError: If email or password is blank
            InvalidCredentialsError: If the credentials do not match an account
        """
        email_text, password_text = _require_credentials(email, password)
        account = self.repository.load(account_id_from_email(email_text))

        if account is None:
            verify_password(password_text, self._dummy_hash)
            raise InvalidCredentialsError()
        if not verify_password(password_text, account.credential_hash):
            raise InvalidCredentialsError()

        logger.info(f"Login for account {account.id[:12]}")
        return self.create_token(account)

    def create_token(self, account: Account, now: Optional[datetime] = None) -> str:
        issued_at = now or utc_now()
        claims = {
            "id": account.id,
            "email": account.email,
            "iat": issued_at,
            "exp": issued_at + timedelta(days=self.settings.token_ttl_days),
        }
        return jwt.encode(claims, self.settings.jwt_secret, algorithm=self.settings.jwt_algorithm)

    def authenticate(self, token: str) -> Account:
        """
        Resolve a bearer token to the stored account.

        The account is always reloaded from the repository; nothing embedded
        in the token is trusted beyond the identity claims.

        Raises:
            UnauthorizedError: If the token is malformed, expired or tampered,
                the account no longer exists, or the account cannot be loaded
        """
        try:
            claims = jwt.decode(
                token,
                self.settings.jwt_secret,
                algorithms=[self.settings.jwt_algorithm],
            )
        except ExpiredSignatureError as e:
            raise UnauthorizedError("Token expired") from e
        except JWTError as e:
            raise UnauthorizedError("Auth failed") from e

        account_id = claims.get("id")
        email = claims.get("email")
        if not isinstance(account_id, str) or not isinstance(email, str):
            raise UnauthorizedError("Auth failed")
        if account_id != account_id_from_email(email):
            raise UnauthorizedError("Auth failed")

        try:
            account = self.repository.load(account_id)
        except StorageError as e:
            logger.error(f"Account lookup failed during authentication: {e}", exc_info=True)
            raise UnauthorizedError("Auth failed") from e

        if account is None:
            raise UnauthorizedError("Invalid token (user not found)")
        return account


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service


def get_current_account(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    auth_service: AuthService = Depends(get_auth_service),
) -> Account:
    """
    Dependency that verifies the bearer token and returns the stored account.

    Usage:
        @router.get("/protected")
        def protected_route(account: Account = Depends(get_current_account)):
            return {"email": account.email}
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        return auth_service.authenticate(credentials.credentials)
    except UnauthorizedError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=e.message,
            headers={"WWW-Authenticate": "Bearer"},
        ) from e
