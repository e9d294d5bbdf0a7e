"""
Cost management routes.
"""
from fastapi import APIRouter, Depends, Query, status
from typing import List, Optional
from costventures.db.session import get_store
from costventures.db.store import LedgerStore
from costventures.schemas.cost import CostCreate, CostResponse, CostUpdate
from costventures.services import cost_service
from costventures.api.dependencies import get_current_user_id

router = APIRouter(prefix="/trips/{trip_id}/costs", tags=["costs"])


@router.post("", response_model=CostResponse, status_code=status.HTTP_201_CREATED)
def create_cost(
    trip_id: int,
    data: CostCreate,
    current_user_id: int = Depends(get_current_user_id),
    store: LedgerStore = Depends(get_store)
):
    """Create a cost and split it across its contributors."""
    return cost_service.create_cost(store, current_user_id, trip_id, data)


@router.get("", response_model=List[CostResponse])
def list_costs(
    trip_id: int,
    cost_category_id: Optional[int] = Query(None),
    user_id: Optional[int] = Query(None),
    current_user_id: int = Depends(get_current_user_id),
    store: LedgerStore = Depends(get_store)
):
    return cost_service.list_costs(store, current_user_id, trip_id, cost_category_id, user_id)


@router.get("/{cost_id}", response_model=CostResponse)
def get_cost(
    trip_id: int,
    cost_id: int,
    current_user_id: int = Depends(get_current_user_id),
    store: LedgerStore = Depends(get_store)
):
    return cost_service.get_cost(store, current_user_id, trip_id, cost_id)


@router.patch("/{cost_id}", response_model=CostResponse)
def update_cost(
    trip_id: int,
    cost_id: int,
    data: CostUpdate,
    current_user_id: int = Depends(get_current_user_id),
    store: LedgerStore = Depends(get_store)
):
    return cost_service.update_cost(store, current_user_id, trip_id, cost_id, data)


@router.delete("/{cost_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_cost(
    trip_id: int,
    cost_id: int,
    current_user_id: int = Depends(get_current_user_id),
    store: LedgerStore = Depends(get_store)
):
    cost_service.delete_cost(store, current_user_id, trip_id, cost_id)
