"""
Trip management routes.
"""
from fastapi import APIRouter, Depends, status
from typing import List
from costventures.db.session import get_store
from costventures.db.store import LedgerStore
from costventures.schemas.trip import (
    TripCreate, TripUpdate, TripResponse, TripDetailResponse,
    ParticipantInvite, ParticipantResponse, PresenceUpdate
)
from costventures.services import trip_service
from costventures.api.dependencies import get_current_user_id

router = APIRouter(prefix="/trips", tags=["trips"])


@router.post("", response_model=TripResponse, status_code=status.HTTP_201_CREATED)
def create_trip(
    trip_data: TripCreate,
    current_user_id: int = Depends(get_current_user_id),
    store: LedgerStore = Depends(get_store)
):
    """Create a new trip."""
    return trip_service.create_trip(store, current_user_id, trip_data)


@router.get("", response_model=List[TripResponse])
def list_trips(
    current_user_id: int = Depends(get_current_user_id),
    store: LedgerStore = Depends(get_store)
):
    """List all trips for current user."""
    return trip_service.list_trips(store, current_user_id)


@router.get("/{trip_id}", response_model=TripDetailResponse)
def get_trip(
    trip_id: int,
    current_user_id: int = Depends(get_current_user_id),
    store: LedgerStore = Depends(get_store)
):
    """Get trip details."""
    return trip_service.get_trip_details(store, current_user_id, trip_id)


@router.patch("/{trip_id}", response_model=TripResponse)
def update_trip(
    trip_id: int,
    trip_data: TripUpdate,
    current_user_id: int = Depends(get_current_user_id),
    store: LedgerStore = Depends(get_store)
):
    return trip_service.update_trip(store, current_user_id, trip_id, trip_data)


@router.delete("/{trip_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_trip(
    trip_id: int,
    current_user_id: int = Depends(get_current_user_id),
    store: LedgerStore = Depends(get_store)
):
    trip_service.delete_trip(store, current_user_id, trip_id)


@router.post("/{trip_id}/invite", response_model=ParticipantResponse, status_code=status.HTTP_201_CREATED)
def invite_participant(
    trip_id: int,
    invite: ParticipantInvite,
    current_user_id: int = Depends(get_current_user_id),
    store: LedgerStore = Depends(get_store)
):
    """Invite a participant to the trip."""
    return trip_service.invite_user(store, current_user_id, trip_id, invite.user_id)


@router.post("/{trip_id}/accept", response_model=ParticipantResponse)
def accept_invite(
    trip_id: int,
    current_user_id: int = Depends(get_current_user_id),
    store: LedgerStore = Depends(get_store)
):
    return trip_service.accept_invite(store, current_user_id, trip_id)


@router.post("/{trip_id}/decline", status_code=status.HTTP_204_NO_CONTENT)
def decline_invite(
    trip_id: int,
    current_user_id: int = Depends(get_current_user_id),
    store: LedgerStore = Depends(get_store)
):
    trip_service.decline_invite(store, current_user_id, trip_id)


@router.put("/{trip_id}/presence", response_model=ParticipantResponse)
def update_presence(
    trip_id: int,
    presence: PresenceUpdate,
    current_user_id: int = Depends(get_current_user_id),
    store: LedgerStore = Depends(get_store)
):
    return trip_service.update_presence(
        store, current_user_id, trip_id,
        presence.presence_start_date, presence.presence_end_date
    )


@router.get("/{trip_id}/participants", response_model=List[ParticipantResponse])
def list_participants(
    trip_id: int,
    current_user_id: int = Depends(get_current_user_id),
    store: LedgerStore = Depends(get_store)
):
    return trip_service.list_participants(store, current_user_id, trip_id)
