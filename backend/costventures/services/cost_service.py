"""
Cost service: costs split across contributors.

The creditor paid the whole cost; every other contributor's share is
booked on the debt ledger as owed to the creditor.
"""
import logging
from typing import List, NamedTuple, Optional

from sqlalchemy.orm import selectinload

from costventures.core.errors import BadRequestError, CostNotFoundError, TripNotFoundError
from costventures.core.money import Money, normalize_currency, sum_money
from costventures.db.store import LedgerStore
from costventures.models.cost import Cost, CostCategory, CostContribution
from costventures.models.trip import Trip
from costventures.schemas.cost import ContributionResponse, ContributorRequest, CostCreate, CostResponse, CostUpdate
from costventures.schemas.user import UserSummary
from costventures.services import debt_service
from costventures.services.cost_category_service import get_trip_category
from costventures.services.trip_service import is_accepted_participant, require_accepted

logger = logging.getLogger(__name__)


class Share(NamedTuple):
    user_id: int
    amount: Money
    is_creditor: bool


def distribute_costs(total: Money, creditor_id: int, contributors: List[ContributorRequest]) -> List[Share]:
    """
    Split `total` over the contributors.

    Explicit amounts are kept; the remainder is split evenly (rounded down to
    cents) over contributors without one. The rounding leftover goes to the
    creditor when the creditor has no explicit amount, otherwise to the
    first such contributor.
    """
    total.require_positive()
    if not contributors:
        raise BadRequestError("A cost needs at least one contributor")

    user_ids = [c.user_id for c in contributors]
    if len(set(user_ids)) != len(user_ids):
        raise BadRequestError("Contributors must be unique")
    if creditor_id not in user_ids:
        raise BadRequestError("The creditor must be one of the contributors")

    explicit = {}
    open_ids = []
    for contributor in contributors:
        if contributor.amount is None or not contributor.amount.strip():
            open_ids.append(contributor.user_id)
        else:
            explicit[contributor.user_id] = Money.parse(contributor.amount, total.currency).require_positive()

    assigned = sum_money(explicit.values(), total.currency)
    if assigned > total:
        raise BadRequestError("Contributions exceed the cost amount")

    remainder = total - assigned
    shares = dict(explicit)
    if open_ids:
        even = Money(remainder.amount / len(open_ids), total.currency)
        for user_id in open_ids:
            shares[user_id] = even
        leftover = remainder - Money(even.amount * len(open_ids), total.currency)
        receiver = creditor_id if creditor_id in open_ids else open_ids[0]
        shares[receiver] = shares[receiver] + leftover

    if sum_money(shares.values(), total.currency) != total:
        raise BadRequestError("Contributions do not add up to the cost amount")

    return [Share(user_id, shares[user_id], user_id == creditor_id) for user_id in user_ids]


def _book(store: LedgerStore, trip_id: int, cost: Cost, reverse: bool = False):
    """Apply (or reverse) every non-creditor contribution of a cost on the ledger."""
    creditor = next(c for c in cost.contributions if c.is_creditor)
    for contribution in cost.contributions:
        if contribution.is_creditor:
            continue
        amount = Money.from_db(contribution.amount, cost.currency_code)
        if amount.is_zero:
            continue
        debt_service.apply_delta(
            store, creditor.user_id, contribution.user_id, trip_id,
            amount.negate() if reverse else amount,
        )


def _check_contributors(store: LedgerStore, trip_id: int, shares: List[Share]):
    for share in shares:
        if not is_accepted_participant(store, trip_id, share.user_id):
            raise BadRequestError(f"User {share.user_id} is not an accepted participant of this trip")


def _cost_amount(trip: Trip, amount: str, currency_code: Optional[str]) -> Money:
    if currency_code and normalize_currency(currency_code) != trip.currency_code:
        raise BadRequestError(f"Costs of this trip must be in {trip.currency_code}")
    return Money.parse(amount, trip.currency_code).require_positive()


def _to_response(cost: Cost) -> CostResponse:
    creditor = next(c for c in cost.contributions if c.is_creditor)
    return CostResponse(
        id=cost.id,
        cost_category_id=cost.cost_category_id,
        amount=Money.from_db(cost.amount, cost.currency_code).to_string(),
        currency_code=cost.currency_code,
        description=cost.description,
        deducted_at=cost.deducted_at,
        end_date=cost.end_date,
        creditor=UserSummary.model_validate(creditor.user),
        contributions=[
            ContributionResponse(
                user=UserSummary.model_validate(c.user),
                amount=Money.from_db(c.amount, cost.currency_code).to_string(),
                is_creditor=c.is_creditor,
            )
            for c in cost.contributions
        ],
        created_at=cost.created_at,
    )


def _get_trip_cost(store: LedgerStore, trip_id: int, cost_id: int) -> Cost:
    with store.reading():
        cost = store.get(Cost, cost_id, CostNotFoundError)
        if cost.cost_category.trip_id != trip_id:
            raise CostNotFoundError()
    return cost


def _lock_trip_cost(store: LedgerStore, trip_id: int, cost_id: int) -> Cost:
    """Cost locked inside a write scope, with its contributions re-read."""
    cost = store.lock(Cost, cost_id, CostNotFoundError, selectinload(Cost.contributions))
    if cost.cost_category.trip_id != trip_id:
        raise CostNotFoundError()
    return cost


def create_cost(store: LedgerStore, actor_id: int, trip_id: int, data: CostCreate) -> CostResponse:
    """Create a cost with its contributions and book the shares on the ledger."""
    require_accepted(store, trip_id, actor_id)
    trip = store.get(Trip, trip_id, TripNotFoundError)
    category = get_trip_category(store, trip_id, data.cost_category_id)
    total = _cost_amount(trip, data.amount, data.currency_code)
    shares = distribute_costs(total, data.creditor, data.contributors)
    _check_contributors(store, trip_id, shares)

    with store.transaction() as db:
        cost = Cost(
            cost_category_id=category.id,
            amount=total.amount,
            currency_code=total.currency,
            description=data.description,
            deducted_at=data.deducted_at,
            end_date=data.end_date,
        )
        cost.contributions = [
            CostContribution(user_id=share.user_id, amount=share.amount.amount, is_creditor=share.is_creditor)
            for share in shares
        ]
        db.add(cost)
        db.flush()
        _book(store, trip_id, cost)
        logger.info("User %s created cost %s in trip %s", actor_id, cost.id, trip_id)

    with store.reading():
        return _to_response(cost)


def get_cost(store: LedgerStore, actor_id: int, trip_id: int, cost_id: int) -> CostResponse:
    require_accepted(store, trip_id, actor_id)
    with store.reading():
        return _to_response(_get_trip_cost(store, trip_id, cost_id))


def list_costs(
    store: LedgerStore,
    actor_id: int,
    trip_id: int,
    cost_category_id: Optional[int] = None,
    user_id: Optional[int] = None
) -> List[CostResponse]:
    """Costs of a trip, optionally filtered by category or by a contributing user."""
    require_accepted(store, trip_id, actor_id)
    with store.reading():
        query = store.session.query(Cost).join(CostCategory).filter(CostCategory.trip_id == trip_id)
        if cost_category_id is not None:
            query = query.filter(Cost.cost_category_id == cost_category_id)
        if user_id is not None:
            query = query.filter(Cost.contributions.any(CostContribution.user_id == user_id))
        costs = query.order_by(Cost.deducted_at, Cost.id).all()
        return [_to_response(cost) for cost in costs]


def update_cost(store: LedgerStore, actor_id: int, trip_id: int, cost_id: int, data: CostUpdate) -> CostResponse:
    """
    Patch a cost.

    When the amount, creditor or contributors change, the old shares are
    reversed on the ledger and the cost is split again. Contributors that are
    not re-sent keep their membership but get an even share.
    """
    require_accepted(store, trip_id, actor_id)
    trip = store.get(Trip, trip_id, TripNotFoundError)
    total = None
    if data.amount is not None:
        total = _cost_amount(trip, data.amount, data.currency_code)
    category = None
    if data.cost_category_id is not None:
        category = get_trip_category(store, trip_id, data.cost_category_id)
    redistribute = data.amount is not None or data.creditor is not None or data.contributors is not None

    with store.transaction() as db:
        cost = _lock_trip_cost(store, trip_id, cost_id)
        if redistribute:
            if total is None:
                total = Money.from_db(cost.amount, cost.currency_code)
            old_creditor = next(c for c in cost.contributions if c.is_creditor)
            creditor_id = data.creditor if data.creditor is not None else old_creditor.user_id
            contributors = data.contributors
            if contributors is None:
                contributors = [ContributorRequest(user_id=c.user_id) for c in cost.contributions]
            shares = distribute_costs(total, creditor_id, contributors)
            _check_contributors(store, trip_id, shares)

            _book(store, trip_id, cost, reverse=True)
            cost.contributions.clear()
            db.flush()
            cost.contributions.extend(
                CostContribution(user_id=share.user_id, amount=share.amount.amount, is_creditor=share.is_creditor)
                for share in shares
            )
            cost.amount = total.amount
            db.flush()
            _book(store, trip_id, cost)

        if category is not None:
            cost.cost_category_id = category.id
        if data.description is not None:
            cost.description = data.description
        if data.deducted_at is not None:
            cost.deducted_at = data.deducted_at
        if data.end_date is not None:
            cost.end_date = data.end_date

    with store.reading():
        return _to_response(cost)


def delete_cost(store: LedgerStore, actor_id: int, trip_id: int, cost_id: int):
    """Reverse the cost's shares on the ledger and delete it."""
    require_accepted(store, trip_id, actor_id)

    with store.transaction() as db:
        cost = _lock_trip_cost(store, trip_id, cost_id)
        _book(store, trip_id, cost, reverse=True)
        db.delete(cost)

    logger.info("User %s deleted cost %s in trip %s", actor_id, cost_id, trip_id)
