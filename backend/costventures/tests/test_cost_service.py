"""
Tests for cost categories, cost distribution and the ledger effects of costs.
"""
from datetime import datetime

import pytest

from costventures.core.errors import BadRequestError, ConflictError, CostCategoryNotFoundError, CostNotFoundError, ForbiddenError
from costventures.core.money import Money
from costventures.models.cost import Cost, CostContribution
from costventures.schemas.cost import ContributorRequest, CostCreate, CostUpdate
from costventures.schemas.cost_category import CostCategoryCreate, CostCategoryUpdate
from costventures.services import cost_category_service, cost_service, debt_service
from costventures.tests.conftest import add_user, new_trip


def eur(text):
    return Money.parse(text, "EUR")


def contributors(*user_ids, **amounts):
    return [ContributorRequest(user_id=user_id, amount=amounts.get(f"u{user_id}")) for user_id in user_ids]


def shares_by_user(shares):
    return {share.user_id: share.amount.to_string() for share in shares}


class TestDistributeCosts:

    def test_even_split_remainder_goes_to_creditor(self):
        shares = cost_service.distribute_costs(eur("100.00"), 2, contributors(1, 2, 3))
        assert shares_by_user(shares) == {1: "33.33", 2: "33.34", 3: "33.33"}
        assert [s.is_creditor for s in shares] == [False, True, False]

    def test_explicit_amounts_and_open_rest(self):
        shares = cost_service.distribute_costs(eur("50.00"), 1, contributors(1, 2, 3, u2="20.00"))
        assert shares_by_user(shares) == {1: "15.00", 2: "20.00", 3: "15.00"}

    def test_remainder_goes_to_first_open_contributor_when_creditor_is_explicit(self):
        shares = cost_service.distribute_costs(eur("10.00"), 1, contributors(1, 2, 3, u1="0.01"))
        assert shares_by_user(shares) == {1: "0.01", 2: "5.00", 3: "4.99"}

    def test_all_explicit_must_add_up(self):
        shares = cost_service.distribute_costs(eur("10.00"), 1, contributors(1, 2, u1="4.00", u2="6.00"))
        assert shares_by_user(shares) == {1: "4.00", 2: "6.00"}
        with pytest.raises(BadRequestError):
            cost_service.distribute_costs(eur("10.00"), 1, contributors(1, 2, u1="4.00", u2="5.00"))

    def test_explicit_amounts_may_not_exceed_total(self):
        with pytest.raises(BadRequestError):
            cost_service.distribute_costs(eur("10.00"), 1, contributors(1, 2, u2="10.01"))

    def test_creditor_must_contribute(self):
        with pytest.raises(BadRequestError):
            cost_service.distribute_costs(eur("10.00"), 4, contributors(1, 2))

    def test_rejects_duplicates_and_bad_amounts(self):
        with pytest.raises(BadRequestError):
            cost_service.distribute_costs(eur("10.00"), 1, contributors(1, 1))
        with pytest.raises(BadRequestError):
            cost_service.distribute_costs(eur("10.00"), 1, contributors(1, 2, u2="abc"))
        with pytest.raises(BadRequestError):
            cost_service.distribute_costs(eur("0.00"), 1, contributors(1, 2))
        with pytest.raises(BadRequestError):
            cost_service.distribute_costs(eur("10.00"), 1, [])


@pytest.fixture
def food(store, trip, alice):
    return cost_category_service.create_category(store, alice.id, trip.id, CostCategoryCreate(name="Food", icon="pizza"))


def dinner(category, creditor, *users, amount="100.00"):
    return CostCreate(
        cost_category_id=category.id,
        amount=amount,
        description="Dinner",
        deducted_at=datetime(2024, 7, 3, 20, 30),
        creditor=creditor.id,
        contributors=[ContributorRequest(user_id=u.id) for u in users],
    )


def test_create_cost_books_shares(store, trip, food, alice, bob, carol):
    cost = cost_service.create_cost(store, bob.id, trip.id, dinner(food, alice, alice, bob, carol))

    assert cost.amount == "100.00"
    assert cost.creditor.id == alice.id
    assert {c.user.id: c.amount for c in cost.contributions} == {alice.id: "33.34", bob.id: "33.33", carol.id: "33.33"}
    assert debt_service.get_balance(store, alice.id, bob.id, trip.id) == eur("33.33")
    assert debt_service.get_balance(store, alice.id, carol.id, trip.id) == eur("33.33")
    assert debt_service.get_balance(store, bob.id, carol.id, trip.id) == eur("0.00")

    category = cost_category_service.get_category(store, alice.id, trip.id, food.id)
    assert category.total_cost == "100.00"


def test_delete_cost_restores_balances(store, trip, food, alice, bob, carol):
    lunch = cost_service.create_cost(store, alice.id, trip.id, dinner(food, bob, alice, bob, amount="7.00"))
    before = debt_service.get_balance(store, alice.id, bob.id, trip.id)

    cost = cost_service.create_cost(store, alice.id, trip.id, dinner(food, alice, alice, bob, carol))
    cost_service.delete_cost(store, alice.id, trip.id, cost.id)

    assert debt_service.get_balance(store, alice.id, bob.id, trip.id) == before
    assert debt_service.get_balance(store, alice.id, carol.id, trip.id) == eur("0.00")
    assert store.session.query(Cost).count() == 1
    assert store.session.query(CostContribution).filter(CostContribution.cost_id == cost.id).count() == 0
    assert lunch.amount == "7.00"


def test_update_cost_rebooks(store, trip, food, alice, bob, carol):
    cost = cost_service.create_cost(store, alice.id, trip.id, dinner(food, alice, alice, bob, carol, amount="90.00"))

    updated = cost_service.update_cost(store, alice.id, trip.id, cost.id, CostUpdate(
        amount="60.00",
        contributors=[ContributorRequest(user_id=alice.id), ContributorRequest(user_id=bob.id)],
        description="Cheaper dinner",
    ))

    assert updated.amount == "60.00"
    assert updated.description == "Cheaper dinner"
    assert len(updated.contributions) == 2
    assert debt_service.get_balance(store, alice.id, bob.id, trip.id) == eur("30.00")
    assert debt_service.get_balance(store, alice.id, carol.id, trip.id) == eur("0.00")

    renamed = cost_service.update_cost(store, alice.id, trip.id, cost.id, CostUpdate(description="Pizza"))
    assert renamed.description == "Pizza"
    assert debt_service.get_balance(store, alice.id, bob.id, trip.id) == eur("30.00")


def test_contributors_must_be_accepted(store, trip, food, alice, make_user):
    outsider = make_user("outsider")
    with pytest.raises(BadRequestError):
        cost_service.create_cost(store, alice.id, trip.id, dinner(food, alice, alice, outsider))
    assert store.session.query(Cost).count() == 0


def test_cost_currency_must_match_trip(store, trip, food, alice, bob):
    request = dinner(food, alice, alice, bob)
    request.currency_code = "USD"
    with pytest.raises(BadRequestError):
        cost_service.create_cost(store, alice.id, trip.id, request)


def test_list_costs_filters(store, trip, food, alice, bob, carol):
    fuel = cost_category_service.create_category(store, alice.id, trip.id, CostCategoryCreate(name="Fuel"))
    cost_service.create_cost(store, alice.id, trip.id, dinner(food, alice, alice, bob))
    cost_service.create_cost(store, alice.id, trip.id, dinner(fuel, carol, carol, alice, amount="40.00"))

    assert len(cost_service.list_costs(store, alice.id, trip.id)) == 2
    assert [c.amount for c in cost_service.list_costs(store, alice.id, trip.id, cost_category_id=fuel.id)] == ["40.00"]
    assert [c.amount for c in cost_service.list_costs(store, alice.id, trip.id, user_id=bob.id)] == ["100.00"]


def test_cost_from_other_trip_is_not_found(store, trip, food, alice, bob):
    other = new_trip(store, alice.id, bob.id, name="Other")
    with pytest.raises(CostCategoryNotFoundError):
        cost_service.create_cost(store, alice.id, other.id, dinner(food, alice, alice, bob))


def test_category_rules(store, trip, food, alice, bob, make_user):
    with pytest.raises(ConflictError):
        cost_category_service.create_category(store, bob.id, trip.id, CostCategoryCreate(name="Food"))
    with pytest.raises(ForbiddenError):
        cost_category_service.create_category(store, make_user("outsider").id, trip.id, CostCategoryCreate(name="X"))

    updated = cost_category_service.update_category(
        store, alice.id, trip.id, food.id, CostCategoryUpdate(name="", color="#ff0000")
    )
    assert updated.name == "Food"
    assert updated.color == "#ff0000"
    assert updated.icon == "pizza"

    cost_service.create_cost(store, alice.id, trip.id, dinner(food, alice, alice, bob))
    with pytest.raises(ConflictError):
        cost_category_service.delete_category(store, alice.id, trip.id, food.id)

    empty = cost_category_service.create_category(store, alice.id, trip.id, CostCategoryCreate(name="Misc"))
    cost_category_service.delete_category(store, alice.id, trip.id, empty.id)
    assert [c.name for c in cost_category_service.list_categories(store, alice.id, trip.id)] == ["Food"]


@pytest.fixture
def dinner_on_file(two_stores):
    """A 90.00 dinner paid by alice for alice, bob and carol in a file-backed database."""
    first, _ = two_stores
    alice, bob, carol = (add_user(first, name) for name in ("alice", "bob", "carol"))
    trip = new_trip(first, alice.id, bob.id, carol.id)
    category = cost_category_service.create_category(first, alice.id, trip.id, CostCategoryCreate(name="Food"))
    cost = cost_service.create_cost(first, alice.id, trip.id, dinner(category, alice, alice, bob, carol, amount="90.00"))
    return alice.id, bob.id, carol.id, trip.id, cost.id


def test_interleaved_cost_deletes_reverse_once(two_stores, dinner_on_file):
    first, second = two_stores
    alice_id, bob_id, carol_id, trip_id, cost_id = dinner_on_file

    cost_service.get_cost(first, alice_id, trip_id, cost_id)
    cost_service.delete_cost(second, bob_id, trip_id, cost_id)

    with pytest.raises(CostNotFoundError):
        cost_service.delete_cost(first, alice_id, trip_id, cost_id)
    with pytest.raises(CostNotFoundError):
        cost_service.update_cost(first, alice_id, trip_id, cost_id, CostUpdate(amount="30.00"))

    assert debt_service.get_balance(first, alice_id, bob_id, trip_id) == eur("0.00")
    assert debt_service.get_balance(first, alice_id, carol_id, trip_id) == eur("0.00")


def test_update_rebooks_from_concurrently_changed_shares(two_stores, dinner_on_file):
    first, second = two_stores
    alice_id, bob_id, carol_id, trip_id, cost_id = dinner_on_file

    # loads the three-way split into the first store
    cost_service.get_cost(first, alice_id, trip_id, cost_id)
    cost_service.update_cost(second, bob_id, trip_id, cost_id, CostUpdate(
        amount="60.00",
        contributors=[ContributorRequest(user_id=alice_id), ContributorRequest(user_id=bob_id)],
    ))

    updated = cost_service.update_cost(first, alice_id, trip_id, cost_id, CostUpdate(amount="90.00"))

    assert {c.user.id: c.amount for c in updated.contributions} == {alice_id: "45.00", bob_id: "45.00"}
    assert debt_service.get_balance(first, alice_id, bob_id, trip_id) == eur("45.00")
    assert debt_service.get_balance(first, alice_id, carol_id, trip_id) == eur("0.00")
