"""
Cost category service.
"""
from typing import List

from costventures.core.errors import BadRequestError, ConflictError, CostCategoryNotFoundError, TripNotFoundError
from costventures.core.money import Money
from costventures.core.utils import contains_empty_string, first_non_empty
from costventures.db.store import LedgerStore
from costventures.models.cost import Cost, CostCategory
from costventures.models.trip import Trip
from costventures.schemas.cost_category import CostCategoryCreate, CostCategoryResponse, CostCategoryUpdate
from costventures.services.trip_service import cost_totals_by_category, require_accepted


def _to_response(category: CostCategory, total: Money) -> CostCategoryResponse:
    return CostCategoryResponse(
        id=category.id,
        trip_id=category.trip_id,
        name=category.name,
        description=category.description,
        icon=category.icon,
        color=category.color,
        total_cost=total.to_string(),
        created_at=category.created_at,
    )


def _category_view(store: LedgerStore, category: CostCategory) -> CostCategoryResponse:
    trip = category.trip
    totals = cost_totals_by_category(store, trip)
    return _to_response(category, totals.get(category.id, Money.zero(trip.currency_code)))


def get_trip_category(store: LedgerStore, trip_id: int, category_id: int) -> CostCategory:
    """Category by id, which must belong to the given trip."""
    with store.reading():
        category = store.get(CostCategory, category_id, CostCategoryNotFoundError)
    if category.trip_id != trip_id:
        raise CostCategoryNotFoundError()
    return category


def _name_taken(store: LedgerStore, trip_id: int, name: str) -> bool:
    return store.exists(store.session.query(CostCategory).filter(
        CostCategory.trip_id == trip_id,
        CostCategory.name == name
    ))


def create_category(store: LedgerStore, actor_id: int, trip_id: int, data: CostCategoryCreate) -> CostCategoryResponse:
    require_accepted(store, trip_id, actor_id)
    if contains_empty_string(data.name):
        raise BadRequestError("Category name is required")
    name = data.name.strip()
    if _name_taken(store, trip_id, name):
        raise ConflictError("Cost category already exists in this trip")

    with store.transaction() as db:
        category = CostCategory(
            trip_id=trip_id,
            name=name,
            description=data.description,
            icon=data.icon,
            color=data.color,
        )
        db.add(category)
        db.flush()

    return _category_view(store, category)


def get_category(store: LedgerStore, actor_id: int, trip_id: int, category_id: int) -> CostCategoryResponse:
    require_accepted(store, trip_id, actor_id)
    category = get_trip_category(store, trip_id, category_id)
    return _category_view(store, category)


def list_categories(store: LedgerStore, actor_id: int, trip_id: int) -> List[CostCategoryResponse]:
    require_accepted(store, trip_id, actor_id)
    with store.reading():
        trip = store.get(Trip, trip_id, TripNotFoundError)
        totals = cost_totals_by_category(store, trip)
        categories = store.session.query(CostCategory).filter(
            CostCategory.trip_id == trip_id
        ).order_by(CostCategory.id).all()
        return [_to_response(category, totals[category.id]) for category in categories]


def update_category(
    store: LedgerStore,
    actor_id: int,
    trip_id: int,
    category_id: int,
    data: CostCategoryUpdate
) -> CostCategoryResponse:
    """Patch a category; only non-empty fields overwrite."""
    require_accepted(store, trip_id, actor_id)
    category = get_trip_category(store, trip_id, category_id)

    name = first_non_empty(data.name, category.name).strip()
    if name != category.name and _name_taken(store, trip_id, name):
        raise ConflictError("Cost category already exists in this trip")

    with store.transaction():
        category.name = name
        category.description = first_non_empty(data.description, category.description)
        category.icon = first_non_empty(data.icon, category.icon)
        category.color = first_non_empty(data.color, category.color)

    return _category_view(store, category)


def delete_category(store: LedgerStore, actor_id: int, trip_id: int, category_id: int):
    """Delete a category that has no costs."""
    require_accepted(store, trip_id, actor_id)
    get_trip_category(store, trip_id, category_id)

    with store.transaction() as db:
        # the lock keeps new costs out of the category until it is gone
        category = store.lock(CostCategory, category_id, CostCategoryNotFoundError)
        if store.exists(store.session.query(Cost).filter(Cost.cost_category_id == category.id)):
            raise ConflictError("Cost category still has costs")
        db.delete(category)
