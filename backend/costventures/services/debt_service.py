"""
Debt ledger engine.

Keeps one net-balance row per unordered user pair and trip. Every cost and
transaction mutation goes through `apply_delta` inside the caller's open
store transaction, so the ledger and the rows that caused the change commit
or roll back together.
"""
import logging
from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy import or_, and_
from sqlalchemy.dialects import mysql, postgresql, sqlite

from costventures.core.errors import (
    BadRequestError,
    CurrencyMismatchError,
    DebtNotFoundError,
    ForbiddenError,
    ForeignKeyMissingError,
    TripNotFoundError,
)
from costventures.core.money import Money
from costventures.core.utils import utcnow
from costventures.db.store import LedgerStore
from costventures.models.debt import Debt
from costventures.models.trip import Trip
from costventures.models.user import User
from costventures.schemas.debt import DebtResponse
from costventures.schemas.user import UserSummary

logger = logging.getLogger(__name__)

PAIR_COLUMNS = ["trip_id", "creditor_id", "debtor_id"]


@dataclass(frozen=True)
class NetPosition:
    """A user's balances within one trip."""
    credit: Money  # what others owe the user
    debt: Money  # what the user owes others

    @property
    def net(self) -> Money:
        return self.credit - self.debt


def canonical_pair(creditor_id: int, debtor_id: int, amount: Money):
    """
    Order a pair so the lower user id is the stored creditor.

    The amount is negated when the call's direction is the reverse of the
    stored one.
    """
    if creditor_id < debtor_id:
        return creditor_id, debtor_id, amount
    return debtor_id, creditor_id, amount.negate()


def _insert_ignore(store: LedgerStore, values: dict):
    """Create the pair row unless it already exists, without failing on a concurrent insert."""
    table = Debt.__table__
    dialect = store.dialect
    if dialect == "postgresql":
        stmt = postgresql.insert(table).values(**values).on_conflict_do_nothing(index_elements=PAIR_COLUMNS)
    elif dialect == "sqlite":
        stmt = sqlite.insert(table).values(**values).on_conflict_do_nothing(index_elements=PAIR_COLUMNS)
    elif dialect in ("mysql", "mariadb"):
        stmt = mysql.insert(table).values(**values).prefix_with("IGNORE")
    else:
        raise NotImplementedError(f"Unsupported database dialect '{dialect}'")
    store.session.execute(stmt)


def _lock_pair(store: LedgerStore, trip_id: int, low: int, high: int) -> Optional[Debt]:
    return (
        store.session.query(Debt)
        .filter(Debt.trip_id == trip_id, Debt.creditor_id == low, Debt.debtor_id == high)
        .with_for_update()
        .populate_existing()
        .one_or_none()
    )


def apply_delta(store: LedgerStore, creditor_id: int, debtor_id: int, trip_id: int, amount: Money) -> Debt:
    """
    Record that `debtor_id` owes `creditor_id` an additional `amount` in a trip.

    A negative amount reduces the debt (or shifts it to the other side).
    Must be called inside `store.transaction()`; the row is locked until the
    caller commits.
    """
    if creditor_id == debtor_id:
        raise BadRequestError("Creditor and debtor must be different users")

    low, high, delta = canonical_pair(creditor_id, debtor_id, amount)
    now = utcnow()
    _insert_ignore(store, {
        "trip_id": trip_id,
        "creditor_id": low,
        "debtor_id": high,
        "amount": Money.zero(delta.currency).amount,
        "currency_code": delta.currency,
        "created_at": now,
        "updated_at": now,
    })

    debt = _lock_pair(store, trip_id, low, high)
    if debt is None:
        # MySQL turns a foreign-key failure under INSERT IGNORE into a warning
        raise ForeignKeyMissingError("Trip or user of the debt does not exist")
    if debt.currency_code != delta.currency:
        raise CurrencyMismatchError(
            f"Debt is kept in {debt.currency_code}, got {delta.currency}"
        )

    balance = Money.from_db(debt.amount, debt.currency_code) + delta
    debt.amount = balance.amount
    debt.updated_at = now
    store.session.flush()

    logger.debug(
        "Debt %s/%s in trip %s changed by %s to %s",
        low, high, trip_id, delta, balance,
    )
    return debt


def _trip_currency(store: LedgerStore, trip_id: int) -> str:
    return store.get(Trip, trip_id, TripNotFoundError).currency_code


def _perspective(debt: Debt, user_id: int) -> Money:
    """Signed balance seen from `user_id`: positive means the other user owes them."""
    amount = Money.from_db(debt.amount, debt.currency_code)
    return amount if debt.creditor_id == user_id else amount.negate()


def _user_debts(store: LedgerStore, user_id: int, trip_id: Optional[int] = None):
    query = store.session.query(Debt).filter(
        or_(Debt.creditor_id == user_id, Debt.debtor_id == user_id)
    )
    if trip_id is not None:
        query = query.filter(Debt.trip_id == trip_id)
    return query.order_by(Debt.trip_id, Debt.creditor_id, Debt.debtor_id).all()


def get_balance(store: LedgerStore, user_id: int, other_id: int, trip_id: int) -> Money:
    """Balance between two users from `user_id`'s side; zero when no row exists."""
    with store.reading():
        currency = _trip_currency(store, trip_id)
        if user_id == other_id:
            return Money.zero(currency)
        low, high = sorted((user_id, other_id))
        debt = store.session.query(Debt).filter(
            Debt.trip_id == trip_id, Debt.creditor_id == low, Debt.debtor_id == high
        ).one_or_none()
        if debt is None:
            return Money.zero(currency)
        return _perspective(debt, user_id)


def get_net_position(store: LedgerStore, user_id: int, trip_id: int) -> NetPosition:
    """Sum of what others owe `user_id` and of what `user_id` owes in a trip."""
    with store.reading():
        currency = _trip_currency(store, trip_id)
        credit = Money.zero(currency)
        debt = Money.zero(currency)
        for row in _user_debts(store, user_id, trip_id):
            balance = _perspective(row, user_id)
            if balance.is_positive:
                credit = credit + balance
            elif balance.is_negative:
                debt = debt + balance.abs()
    return NetPosition(credit=credit, debt=debt)


def _project(row: Debt, user_id: int, users: dict) -> DebtResponse:
    other_id = row.debtor_id if row.creditor_id == user_id else row.creditor_id
    return DebtResponse(
        id=row.id,
        trip_id=row.trip_id,
        creditor=UserSummary.model_validate(users[user_id]),
        debtor=UserSummary.model_validate(users[other_id]),
        amount=_perspective(row, user_id).to_string(),
        currency_code=row.currency_code,
        updated_at=row.updated_at,
    )


def list_debts(store: LedgerStore, user_id: int, trip_id: Optional[int] = None) -> List[DebtResponse]:
    """Debts involving `user_id`, each projected so the user is the creditor side."""
    with store.reading():
        rows = _user_debts(store, user_id, trip_id)
        if not rows:
            return []
        user_ids = {row.creditor_id for row in rows} | {row.debtor_id for row in rows}
        users = {user.id: user for user in store.session.query(User).filter(User.id.in_(user_ids)).all()}
        return [_project(row, user_id, users) for row in rows]


def get_debt(store: LedgerStore, actor_id: int, debt_id: int) -> DebtResponse:
    """One debt, projected onto the actor; only the two users of the pair may see it."""
    with store.reading():
        row = store.get(Debt, debt_id, DebtNotFoundError)
        if actor_id not in (row.creditor_id, row.debtor_id):
            raise ForbiddenError("Only the users of a debt may access it")
        users = {row.creditor.id: row.creditor, row.debtor.id: row.debtor}
        return _project(row, actor_id, users)


def count_open_debts(store: LedgerStore, user_id: int) -> int:
    """Number of pairs in which `user_id` currently owes money."""
    with store.reading():
        return store.session.query(Debt).filter(
            or_(
                and_(Debt.creditor_id == user_id, Debt.amount < 0),
                and_(Debt.debtor_id == user_id, Debt.amount > 0),
            )
        ).count()
