"""
User profile routes.
"""
from fastapi import APIRouter, Depends, status
from typing import List
from costventures.db.session import get_store
from costventures.db.store import LedgerStore
from costventures.schemas.user import UserDetails, UserResponse, UserSuggestion, UserSummary, UserUpdate
from costventures.services import user_service
from costventures.api.dependencies import get_current_user_id

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=UserDetails)
def get_me(
    current_user_id: int = Depends(get_current_user_id),
    store: LedgerStore = Depends(get_store)
):
    """Get the current user's profile."""
    return user_service.get_user_details(store, current_user_id)


@router.patch("/me", response_model=UserResponse)
def update_me(
    user_data: UserUpdate,
    current_user_id: int = Depends(get_current_user_id),
    store: LedgerStore = Depends(get_store)
):
    return user_service.update_user(store, current_user_id, user_data)


@router.delete("/me", status_code=status.HTTP_204_NO_CONTENT)
def delete_me(
    current_user_id: int = Depends(get_current_user_id),
    store: LedgerStore = Depends(get_store)
):
    """Delete the current user; 409 while debts, transactions or costs reference them."""
    user_service.delete_user(store, current_user_id)


@router.get("/suggest", response_model=List[UserSuggestion])
def suggest(
    q: str = "",
    current_user_id: int = Depends(get_current_user_id),
    store: LedgerStore = Depends(get_store)
):
    """Usernames starting with `q`, e.g. for the invite dialog."""
    return user_service.suggest_users(store, current_user_id, q)


@router.get("/{user_id}", response_model=UserSummary)
def get_user(
    user_id: int,
    current_user_id: int = Depends(get_current_user_id),
    store: LedgerStore = Depends(get_store)
):
    return user_service.get_user(store, user_id)
