"""
Sync API Routes

Authenticated endpoints for pulling, replacing and merging an account's
transaction list, and for deleting the account.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Request

from app.auth.token_auth import get_current_account
from app.schemas.models import (
    Account,
    DeleteAccountRequest,
    MergeResponse,
    SuccessResponse,
    SyncRequest,
    TransactionsResponse,
)
from app.services.sync_service import SyncService

router = APIRouter(tags=["sync"])


def get_sync_service(request: Request) -> SyncService:
    return request.app.state.sync_service


@router.get("/sync/download", response_model=TransactionsResponse)
def download(
    account: Account = Depends(get_current_account),
    sync_service: SyncService = Depends(get_sync_service),
) -> TransactionsResponse:
    """Return the stored transaction list."""
    return TransactionsResponse(transactions=sync_service.download(account))


@router.post("/sync/upload", response_model=SuccessResponse)
def upload(
    payload: Optional[SyncRequest] = None,
    account: Account = Depends(get_current_account),
    sync_service: SyncService = Depends(get_sync_service),
) -> SuccessResponse:
    """Replace the stored transaction list with the uploaded one."""
    payload = payload or SyncRequest()
    sync_service.upload_replace(account, payload.transactions)
    return SuccessResponse()


@router.post("/sync/merge", response_model=MergeResponse)
def merge(
    payload: Optional[SyncRequest] = None,
    account: Account = Depends(get_current_account),
    sync_service: SyncService = Depends(get_sync_service),
) -> MergeResponse:
    """Merge uploaded transactions into the stored list by id, uploaded wins.

    The merged list is returned so the client can update local state directly.
    """
    payload = payload or SyncRequest()
    merged = sync_service.upload_merge(account, payload.transactions)
    return MergeResponse(transactions=merged)


@router.post("/account/delete", response_model=SuccessResponse)
def delete_account(
    payload: Optional[DeleteAccountRequest] = None,
    account: Account = Depends(get_current_account),
    sync_service: SyncService = Depends(get_sync_service),
) -> SuccessResponse:
    """Delete the account and its data. Requires ``{"confirm": true}``."""
    payload = payload or DeleteAccountRequest()
    sync_service.delete_account(account, payload.confirm)
    return SuccessResponse()
