from typing import Optional

from fastapi import APIRouter, Depends

from app.auth.token_auth import AuthService, get_auth_service
from app.core.utils import utc_now_iso
from app.schemas.models import (
    CredentialsRequest,
    HealthResponse,
    SuccessResponse,
    TokenResponse,
)

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
def health() -> HealthResponse:
    return HealthResponse(ok=True, now=utc_now_iso())


@router.post("/register", response_model=SuccessResponse)
def register(
    payload: Optional[CredentialsRequest] = None,
    auth_service: AuthService = Depends(get_auth_service),
) -> SuccessResponse:
    """Create an account for an email and password.

    Returns 400 when either field is missing or the email is already taken.
    """
    payload = payload or CredentialsRequest()
    auth_service.register(payload.email, payload.password)
    return SuccessResponse()


@router.post("/login", response_model=TokenResponse)
def login(
    payload: Optional[CredentialsRequest] = None,
    auth_service: AuthService = Depends(get_auth_service),
) -> TokenResponse:
    """Exchange an email and password for a bearer token valid for 30 days by default."""
    payload = payload or CredentialsRequest()
    token = auth_service.login(payload.email, payload.password)
    return TokenResponse(token=token)
