"""
Trip service: trips, participants and the aggregated trip view.
"""
import logging
from datetime import date
from typing import Dict, List, Optional

from costventures.core.config import settings
from costventures.core.errors import (
    AlreadyAcceptedError,
    BadRequestError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    TripNotFoundError,
    UserNotFoundError,
)
from costventures.core.money import Money, normalize_currency, sum_money
from costventures.core.utils import contains_empty_string, first_non_empty
from costventures.db.store import LedgerStore
from costventures.models.cost import Cost, CostCategory
from costventures.models.trip import Trip, TripParticipant
from costventures.models.user import User
from costventures.schemas.trip import (
    CategoryCost,
    ParticipantResponse,
    TripCreate,
    TripDetailResponse,
    TripResponse,
    TripUpdate,
)
from costventures.schemas.user import UserSummary
from costventures.services import debt_service

logger = logging.getLogger(__name__)


def _get_participant(store: LedgerStore, trip_id: int, user_id: int) -> Optional[TripParticipant]:
    return store.session.query(TripParticipant).filter(
        TripParticipant.trip_id == trip_id,
        TripParticipant.user_id == user_id
    ).first()


def require_participant(store: LedgerStore, trip_id: int, user_id: int) -> TripParticipant:
    """Trip must exist and the user must be invited or accepted."""
    with store.reading():
        store.get(Trip, trip_id, TripNotFoundError)
        participant = _get_participant(store, trip_id, user_id)
    if participant is None:
        raise ForbiddenError("Access denied to this trip")
    return participant


def require_accepted(store: LedgerStore, trip_id: int, user_id: int) -> TripParticipant:
    """Trip must exist and the user must have accepted its invitation."""
    participant = require_participant(store, trip_id, user_id)
    if not participant.is_accepted:
        raise ForbiddenError("Trip invitation has not been accepted")
    return participant


def is_accepted_participant(store: LedgerStore, trip_id: int, user_id: int) -> bool:
    with store.reading():
        participant = _get_participant(store, trip_id, user_id)
    return participant is not None and participant.is_accepted


def _validate_range(start_date: date, end_date: date):
    if start_date > end_date:
        raise BadRequestError("Start date must not be after end date")


def cost_totals_by_category(store: LedgerStore, trip: Trip) -> Dict[int, Money]:
    """Sum of costs per category of a trip; categories without costs map to zero."""
    with store.reading():
        categories = store.session.query(CostCategory.id).filter(CostCategory.trip_id == trip.id).all()
        totals = {category_id: Money.zero(trip.currency_code) for (category_id,) in categories}
        rows = store.session.query(Cost.cost_category_id, Cost.amount, Cost.currency_code).join(
            CostCategory
        ).filter(CostCategory.trip_id == trip.id).all()
    for category_id, amount, currency_code in rows:
        totals[category_id] = totals[category_id] + Money.from_db(amount, currency_code)
    return totals


def participant_view(participant: TripParticipant) -> ParticipantResponse:
    return ParticipantResponse(
        user=UserSummary.model_validate(participant.user),
        is_accepted=participant.is_accepted,
        presence_start_date=participant.presence_start_date,
        presence_end_date=participant.presence_end_date,
    )


def create_trip(store: LedgerStore, actor_id: int, trip_data: TripCreate) -> TripResponse:
    """Create a trip; the creator is its first, already accepted participant."""
    if contains_empty_string(trip_data.name, trip_data.location):
        raise BadRequestError("Trip name and location are required")
    _validate_range(trip_data.start_date, trip_data.end_date)
    currency_code = normalize_currency(trip_data.currency_code or settings.DEFAULT_CURRENCY)

    with store.transaction() as db:
        new_trip = Trip(
            name=trip_data.name.strip(),
            description=trip_data.description,
            location=trip_data.location.strip(),
            start_date=trip_data.start_date,
            end_date=trip_data.end_date,
            currency_code=currency_code,
        )
        db.add(new_trip)
        db.flush()

        db.add(TripParticipant(
            trip_id=new_trip.id,
            user_id=actor_id,
            is_accepted=True,
            presence_start_date=new_trip.start_date,
            presence_end_date=new_trip.end_date,
        ))

    with store.reading():
        logger.info("User %s created trip %s", actor_id, new_trip.id)
        return TripResponse.model_validate(new_trip)


def list_trips(store: LedgerStore, actor_id: int) -> List[TripResponse]:
    """List all trips the actor is invited to or participates in."""
    with store.reading():
        trips = store.session.query(Trip).join(TripParticipant).filter(
            TripParticipant.user_id == actor_id
        ).order_by(Trip.start_date, Trip.id).all()
        return [TripResponse.model_validate(trip) for trip in trips]


def get_trip_details(store: LedgerStore, actor_id: int, trip_id: int) -> TripDetailResponse:
    """Trip with participants, cost rollups and the actor's live debt and credit."""
    require_participant(store, trip_id, actor_id)

    with store.reading():
        trip = store.get(Trip, trip_id, TripNotFoundError)
        participants = [participant_view(p) for p in sorted(trip.participants, key=lambda p: p.id)]
        totals = cost_totals_by_category(store, trip)
        category_costs = [
            CategoryCost(cost_category_id=category.id, name=category.name,
                         total_cost=totals[category.id].to_string())
            for category in sorted(trip.cost_categories, key=lambda c: c.id)
        ]
        total_cost = sum_money(totals.values(), trip.currency_code)
        position = debt_service.get_net_position(store, actor_id, trip_id)

        return TripDetailResponse(
            **TripResponse.model_validate(trip).model_dump(),
            participants=participants,
            total_cost=total_cost.to_string(),
            category_costs=category_costs,
            user_debt=position.debt.to_string(),
            user_credit=position.credit.to_string(),
        )


def update_trip(store: LedgerStore, actor_id: int, trip_id: int, trip_data: TripUpdate) -> TripResponse:
    """Patch a trip; presence ranges are clipped to the new trip range."""
    require_accepted(store, trip_id, actor_id)

    with store.transaction() as db:
        trip = store.get(Trip, trip_id, TripNotFoundError)
        start_date = trip_data.start_date or trip.start_date
        end_date = trip_data.end_date or trip.end_date
        _validate_range(start_date, end_date)

        trip.name = first_non_empty(trip_data.name, trip.name)
        trip.description = first_non_empty(trip_data.description, trip.description)
        trip.location = first_non_empty(trip_data.location, trip.location)
        trip.start_date = start_date
        trip.end_date = end_date

        for participant in trip.participants:
            presence_start = max(participant.presence_start_date or start_date, start_date)
            presence_end = min(participant.presence_end_date or end_date, end_date)
            if presence_start > presence_end:
                presence_start, presence_end = start_date, end_date
            participant.presence_start_date = presence_start
            participant.presence_end_date = presence_end
        db.flush()

    with store.reading():
        return TripResponse.model_validate(trip)


def delete_trip(store: LedgerStore, actor_id: int, trip_id: int):
    """Delete a trip with its participants, categories, costs, transactions and debts."""
    require_accepted(store, trip_id, actor_id)

    with store.transaction() as db:
        trip = store.get(Trip, trip_id, TripNotFoundError)
        db.delete(trip)

    logger.info("User %s deleted trip %s", actor_id, trip_id)


def invite_user(store: LedgerStore, actor_id: int, trip_id: int, user_id: int) -> ParticipantResponse:
    """Invite a user; presence defaults to the whole trip."""
    require_accepted(store, trip_id, actor_id)

    with store.reading():
        trip = store.get(Trip, trip_id, TripNotFoundError)
        store.get(User, user_id, UserNotFoundError)
        if _get_participant(store, trip_id, user_id) is not None:
            raise ConflictError("User is already invited to this trip")

    with store.transaction() as db:
        participant = TripParticipant(
            trip_id=trip_id,
            user_id=user_id,
            is_accepted=False,
            presence_start_date=trip.start_date,
            presence_end_date=trip.end_date,
        )
        db.add(participant)
        db.flush()

    with store.reading():
        return participant_view(participant)


def _get_invitation(store: LedgerStore, trip_id: int, user_id: int) -> TripParticipant:
    with store.reading():
        store.get(Trip, trip_id, TripNotFoundError)
        participant = _get_participant(store, trip_id, user_id)
    if participant is None:
        raise NotFoundError("Invitation not found")
    if participant.is_accepted:
        raise AlreadyAcceptedError()
    return participant


def accept_invite(store: LedgerStore, actor_id: int, trip_id: int) -> ParticipantResponse:
    participant = _get_invitation(store, trip_id, actor_id)
    with store.transaction():
        participant.is_accepted = True
    with store.reading():
        return participant_view(participant)


def decline_invite(store: LedgerStore, actor_id: int, trip_id: int):
    participant = _get_invitation(store, trip_id, actor_id)
    with store.transaction() as db:
        db.delete(participant)


def update_presence(
    store: LedgerStore,
    actor_id: int,
    trip_id: int,
    presence_start_date: date,
    presence_end_date: date
) -> ParticipantResponse:
    """Set the actor's presence range; it must lie within the trip."""
    participant = require_accepted(store, trip_id, actor_id)
    trip = participant.trip
    _validate_range(presence_start_date, presence_end_date)
    if presence_start_date < trip.start_date or presence_end_date > trip.end_date:
        raise BadRequestError("Presence must lie within the trip dates")

    with store.transaction():
        participant.presence_start_date = presence_start_date
        participant.presence_end_date = presence_end_date
    with store.reading():
        return participant_view(participant)


def list_participants(store: LedgerStore, actor_id: int, trip_id: int) -> List[ParticipantResponse]:
    require_participant(store, trip_id, actor_id)
    with store.reading():
        participants = store.session.query(TripParticipant).filter(
            TripParticipant.trip_id == trip_id
        ).order_by(TripParticipant.id).all()
        return [participant_view(p) for p in participants]
