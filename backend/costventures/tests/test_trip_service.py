"""
Tests for trips, invitations, presence and the trip view.
"""
from datetime import date, datetime

import pytest

from costventures.core.errors import (
    AlreadyAcceptedError,
    BadRequestError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    TripNotFoundError,
    UserNotFoundError,
)
from costventures.models.debt import Debt
from costventures.models.transaction import Transaction
from costventures.models.trip import Trip, TripParticipant
from costventures.schemas.cost import ContributorRequest, CostCreate
from costventures.schemas.cost_category import CostCategoryCreate
from costventures.schemas.transaction import TransactionCreate
from costventures.schemas.trip import TripCreate, TripUpdate
from costventures.services import cost_category_service, cost_service, transaction_service, trip_service


def test_create_trip_adds_accepted_creator(store, alice):
    trip = trip_service.create_trip(store, alice.id, TripCreate(
        name="Lisbon", location="Lisbon", start_date=date(2024, 3, 1), end_date=date(2024, 3, 5)
    ))
    assert trip.currency_code == "EUR"

    [participant] = trip_service.list_participants(store, alice.id, trip.id)
    assert participant.user.id == alice.id
    assert participant.is_accepted
    assert participant.presence_start_date == date(2024, 3, 1)
    assert participant.presence_end_date == date(2024, 3, 5)


def test_create_trip_validates_range_and_currency(store, alice):
    with pytest.raises(BadRequestError):
        trip_service.create_trip(store, alice.id, TripCreate(
            name="Backwards", location="X", start_date=date(2024, 3, 5), end_date=date(2024, 3, 1)
        ))
    with pytest.raises(BadRequestError):
        trip_service.create_trip(store, alice.id, TripCreate(
            name="Money", location="X", start_date=date(2024, 3, 1), end_date=date(2024, 3, 1),
            currency_code="EURO"
        ))
    trip = trip_service.create_trip(store, alice.id, TripCreate(
        name="Zurich", location="Zurich", start_date=date(2024, 3, 1), end_date=date(2024, 3, 1),
        currency_code="chf"
    ))
    assert trip.currency_code == "CHF"
    assert store.session.query(Trip).count() == 1


def test_invitation_lifecycle(store, alice, bob, carol, make_user):
    trip = trip_service.create_trip(store, alice.id, TripCreate(
        name="Oslo", location="Oslo", start_date=date(2024, 1, 1), end_date=date(2024, 1, 3)
    ))
    invited = trip_service.invite_user(store, alice.id, trip.id, bob.id)
    assert not invited.is_accepted

    with pytest.raises(ConflictError):
        trip_service.invite_user(store, alice.id, trip.id, bob.id)
    with pytest.raises(UserNotFoundError):
        trip_service.invite_user(store, alice.id, trip.id, 9999)
    # an invited but not accepted user may not invite others
    with pytest.raises(ForbiddenError):
        trip_service.invite_user(store, bob.id, trip.id, carol.id)

    accepted = trip_service.accept_invite(store, bob.id, trip.id)
    assert accepted.is_accepted
    with pytest.raises(AlreadyAcceptedError) as exc:
        trip_service.accept_invite(store, bob.id, trip.id)
    assert isinstance(exc.value, ConflictError)
    with pytest.raises(ConflictError):
        trip_service.decline_invite(store, bob.id, trip.id)

    trip_service.invite_user(store, bob.id, trip.id, carol.id)
    trip_service.decline_invite(store, carol.id, trip.id)
    assert store.session.query(TripParticipant).filter(TripParticipant.user_id == carol.id).count() == 0
    with pytest.raises(NotFoundError):
        trip_service.accept_invite(store, carol.id, trip.id)


def test_access_checks(store, trip, make_user):
    outsider = make_user("outsider")
    with pytest.raises(ForbiddenError):
        trip_service.get_trip_details(store, outsider.id, trip.id)
    with pytest.raises(TripNotFoundError):
        trip_service.get_trip_details(store, outsider.id, 9999)
    assert trip_service.list_trips(store, outsider.id) == []


def test_update_presence(store, trip, bob):
    updated = trip_service.update_presence(store, bob.id, trip.id, date(2024, 7, 3), date(2024, 7, 5))
    assert updated.presence_start_date == date(2024, 7, 3)
    assert updated.presence_end_date == date(2024, 7, 5)

    with pytest.raises(BadRequestError):
        trip_service.update_presence(store, bob.id, trip.id, date(2024, 6, 30), date(2024, 7, 5))
    with pytest.raises(BadRequestError):
        trip_service.update_presence(store, bob.id, trip.id, date(2024, 7, 10), date(2024, 7, 15))
    with pytest.raises(BadRequestError):
        trip_service.update_presence(store, bob.id, trip.id, date(2024, 7, 6), date(2024, 7, 5))


def test_update_trip_patch_semantics(store, trip, alice, bob):
    trip_service.update_presence(store, bob.id, trip.id, date(2024, 7, 10), date(2024, 7, 14))

    updated = trip_service.update_trip(store, alice.id, trip.id, TripUpdate(
        name="  ", location="Salzburg", end_date=date(2024, 7, 12)
    ))
    assert updated.name == "Alps"
    assert updated.location == "Salzburg"
    assert updated.end_date == date(2024, 7, 12)

    bob_view = next(p for p in trip_service.list_participants(store, alice.id, trip.id) if p.user.id == bob.id)
    assert bob_view.presence_start_date == date(2024, 7, 10)
    assert bob_view.presence_end_date == date(2024, 7, 12)

    with pytest.raises(BadRequestError):
        trip_service.update_trip(store, alice.id, trip.id, TripUpdate(start_date=date(2024, 7, 13)))


def test_trip_details_reflect_ledger(store, trip, alice, bob, carol):
    food = cost_category_service.create_category(store, alice.id, trip.id, CostCategoryCreate(name="Food"))
    cost_category_service.create_category(store, alice.id, trip.id, CostCategoryCreate(name="Fuel"))
    cost_service.create_cost(store, alice.id, trip.id, CostCreate(
        cost_category_id=food.id, amount="90.00", deducted_at=datetime(2024, 7, 2, 19, 0),
        creditor=alice.id,
        contributors=[ContributorRequest(user_id=alice.id), ContributorRequest(user_id=bob.id),
                      ContributorRequest(user_id=carol.id)],
    ))
    transaction_service.create_transaction(
        store, carol.id, trip.id, TransactionCreate(debtor_id=alice.id, amount="5.00")
    )

    details = trip_service.get_trip_details(store, alice.id, trip.id)
    assert details.total_cost == "90.00"
    assert {c.name: c.total_cost for c in details.category_costs} == {"Food": "90.00", "Fuel": "0.00"}
    assert len(details.participants) == 3
    # bob owes 30, carol owes 30 - 5
    assert details.user_credit == "55.00"
    assert details.user_debt == "0.00"

    bob_details = trip_service.get_trip_details(store, bob.id, trip.id)
    assert bob_details.user_debt == "30.00"
    assert bob_details.user_credit == "0.00"


def test_delete_trip_cascades(store, trip, alice, bob, carol):
    transaction_service.create_transaction(
        store, alice.id, trip.id, TransactionCreate(debtor_id=bob.id, amount="5.00")
    )
    with pytest.raises(ForbiddenError):
        trip_service.delete_trip(store, 9999, trip.id)

    trip_service.delete_trip(store, bob.id, trip.id)

    assert store.session.query(Trip).count() == 0
    assert store.session.query(TripParticipant).count() == 0
    assert store.session.query(Transaction).count() == 0
    assert store.session.query(Debt).count() == 0
