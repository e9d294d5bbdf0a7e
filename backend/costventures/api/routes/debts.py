"""
Debt overview routes.
"""
from fastapi import APIRouter, Depends
from typing import List
from costventures.db.session import get_store
from costventures.db.store import LedgerStore
from costventures.schemas.debt import DebtResponse
from costventures.services import debt_service, trip_service
from costventures.api.dependencies import get_current_user_id

router = APIRouter(tags=["debts"])


@router.get("/debts", response_model=List[DebtResponse])
def list_debts(
    current_user_id: int = Depends(get_current_user_id),
    store: LedgerStore = Depends(get_store)
):
    """All debts of the current user across trips."""
    return debt_service.list_debts(store, current_user_id)


@router.get("/trips/{trip_id}/debts", response_model=List[DebtResponse])
def list_trip_debts(
    trip_id: int,
    current_user_id: int = Depends(get_current_user_id),
    store: LedgerStore = Depends(get_store)
):
    trip_service.require_participant(store, trip_id, current_user_id)
    return debt_service.list_debts(store, current_user_id, trip_id)


@router.get("/debts/{debt_id}", response_model=DebtResponse)
def get_debt(
    debt_id: int,
    current_user_id: int = Depends(get_current_user_id),
    store: LedgerStore = Depends(get_store)
):
    """One debt seen from the current user, who must be one of its two users."""
    return debt_service.get_debt(store, current_user_id, debt_id)
