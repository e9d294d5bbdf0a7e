"""
Transaction routes.
"""
from fastapi import APIRouter, Depends, Query, status
from typing import List, Optional
from costventures.db.session import get_store
from costventures.db.store import LedgerStore
from costventures.schemas.transaction import TransactionCreate, TransactionResponse
from costventures.services import transaction_service
from costventures.api.dependencies import get_current_user_id

router = APIRouter(tags=["transactions"])


@router.post("/trips/{trip_id}/transactions", response_model=TransactionResponse, status_code=status.HTTP_201_CREATED)
def create_transaction(
    trip_id: int,
    data: TransactionCreate,
    current_user_id: int = Depends(get_current_user_id),
    store: LedgerStore = Depends(get_store)
):
    """The current user paid `amount` for `debtor_id`."""
    return transaction_service.create_transaction(store, current_user_id, trip_id, data)


@router.get("/trips/{trip_id}/transactions", response_model=List[TransactionResponse])
def list_transactions(
    trip_id: int,
    is_confirmed: Optional[bool] = Query(None),
    current_user_id: int = Depends(get_current_user_id),
    store: LedgerStore = Depends(get_store)
):
    return transaction_service.list_transactions(store, current_user_id, trip_id, is_confirmed)


@router.get("/transactions/{transaction_id}", response_model=TransactionResponse)
def get_transaction(
    transaction_id: int,
    current_user_id: int = Depends(get_current_user_id),
    store: LedgerStore = Depends(get_store)
):
    return transaction_service.get_transaction(store, current_user_id, transaction_id)


@router.post("/transactions/{transaction_id}/confirm", response_model=TransactionResponse)
def confirm_transaction(
    transaction_id: int,
    current_user_id: int = Depends(get_current_user_id),
    store: LedgerStore = Depends(get_store)
):
    """Debtor acknowledges the transaction."""
    return transaction_service.confirm_transaction(store, current_user_id, transaction_id)


@router.delete("/transactions/{transaction_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_transaction(
    transaction_id: int,
    current_user_id: int = Depends(get_current_user_id),
    store: LedgerStore = Depends(get_store)
):
    transaction_service.delete_transaction(store, current_user_id, transaction_id)
