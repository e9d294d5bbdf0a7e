"""
Cost category routes.
"""
from fastapi import APIRouter, Depends, status
from typing import List
from costventures.db.session import get_store
from costventures.db.store import LedgerStore
from costventures.schemas.cost_category import CostCategoryCreate, CostCategoryResponse, CostCategoryUpdate
from costventures.services import cost_category_service
from costventures.api.dependencies import get_current_user_id

router = APIRouter(prefix="/trips/{trip_id}/cost-categories", tags=["cost-categories"])


@router.post("", response_model=CostCategoryResponse, status_code=status.HTTP_201_CREATED)
def create_category(
    trip_id: int,
    data: CostCategoryCreate,
    current_user_id: int = Depends(get_current_user_id),
    store: LedgerStore = Depends(get_store)
):
    return cost_category_service.create_category(store, current_user_id, trip_id, data)


@router.get("", response_model=List[CostCategoryResponse])
def list_categories(
    trip_id: int,
    current_user_id: int = Depends(get_current_user_id),
    store: LedgerStore = Depends(get_store)
):
    return cost_category_service.list_categories(store, current_user_id, trip_id)


@router.get("/{category_id}", response_model=CostCategoryResponse)
def get_category(
    trip_id: int,
    category_id: int,
    current_user_id: int = Depends(get_current_user_id),
    store: LedgerStore = Depends(get_store)
):
    return cost_category_service.get_category(store, current_user_id, trip_id, category_id)


@router.patch("/{category_id}", response_model=CostCategoryResponse)
def update_category(
    trip_id: int,
    category_id: int,
    data: CostCategoryUpdate,
    current_user_id: int = Depends(get_current_user_id),
    store: LedgerStore = Depends(get_store)
):
    return cost_category_service.update_category(store, current_user_id, trip_id, category_id, data)


@router.delete("/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_category(
    trip_id: int,
    category_id: int,
    current_user_id: int = Depends(get_current_user_id),
    store: LedgerStore = Depends(get_store)
):
    """Delete a category; 409 while it still has costs."""
    cost_category_service.delete_category(store, current_user_id, trip_id, category_id)
