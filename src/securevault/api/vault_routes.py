# Vault API - RESTful endpoints for sealed vault items
#
# The server stores ciphertext and IV only. It never sees the master key or
# any plaintext field; every query is scoped to the caller's account.

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from ..core.audit_log import EventType
from .security import AccountContext, get_current_account, get_services

router = APIRouter(prefix="/api/vault", tags=["vault"])


# Request/Response Models
class SealedItemRequest(BaseModel):
    ciphertext: str = Field(..., min_length=1)
    iv: str = Field(..., min_length=1, max_length=64)


class VaultRecordResponse(BaseModel):
    id: str
    ciphertext: str
    iv: str
    created_at: str
    updated_at: str


def _response(record) -> VaultRecordResponse:
    return VaultRecordResponse(
        id=record.id,
        ciphertext=record.ciphertext,
        iv=record.iv,
        created_at=record.created_at,
        updated_at=record.updated_at,
    )


def _not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Vault item not found")


# Endpoints

@router.get("", response_model=List[VaultRecordResponse])
def list_items(
    account: AccountContext = Depends(get_current_account),
    services=Depends(get_services),
):
    """List the caller's items, most recently updated first."""
    return [_response(r) for r in services.records.list(account.account_id)]


@router.post("", response_model=VaultRecordResponse, status_code=status.HTTP_201_CREATED)
def create_item(
    body: SealedItemRequest,
    account: AccountContext = Depends(get_current_account),
    services=Depends(get_services),
):
    record = services.records.create(account.account_id, body.ciphertext, body.iv)
    services.audit.log_vault_event(
        EventType.VAULT_ITEM_CREATED, account.account_id, record.id, "item created",
    )
    return _response(record)


@router.put("/{record_id}", response_model=VaultRecordResponse)
def update_item(
    record_id: str,
    body: SealedItemRequest,
    account: AccountContext = Depends(get_current_account),
    services=Depends(get_services),
):
    """Replace an item's ciphertext and IV."""
    record = services.records.update(record_id, account.account_id, body.ciphertext, body.iv)
    if record is None:
        raise _not_found()
    services.audit.log_vault_event(
        EventType.VAULT_ITEM_UPDATED, account.account_id, record.id, "item updated",
    )
    return _response(record)


@router.delete("/{record_id}")
def delete_item(
    record_id: str,
    account: AccountContext = Depends(get_current_account),
    services=Depends(get_services),
):
    if not services.records.delete(record_id, account.account_id):
        raise _not_found()
    services.audit.log_vault_event(
        EventType.VAULT_ITEM_DELETED, account.account_id, record_id, "item deleted",
    )
    return {"message": "Vault item deleted successfully"}
