"""
Transaction service: direct payments between two trip participants.

A transaction's amount is booked on the debt ledger when it is created and
reversed when it is deleted. Confirmation is an acknowledgment by the
debtor and never touches the ledger.
"""
import logging
from typing import List, Optional

from costventures.core.errors import (
    AlreadyConfirmedError,
    BadRequestError,
    ForbiddenError,
    TransactionNotFoundError,
    TripNotFoundError,
)
from costventures.core.money import Money, normalize_currency
from costventures.db.store import LedgerStore
from costventures.models.transaction import Transaction
from costventures.models.trip import Trip
from costventures.schemas.transaction import TransactionCreate, TransactionResponse
from costventures.schemas.trip import TripSummary
from costventures.schemas.user import UserSummary
from costventures.services import debt_service
from costventures.services.trip_service import is_accepted_participant, require_accepted

logger = logging.getLogger(__name__)


def _to_response(transaction: Transaction) -> TransactionResponse:
    return TransactionResponse(
        id=transaction.id,
        trip=TripSummary.model_validate(transaction.trip),
        creditor=UserSummary.model_validate(transaction.creditor),
        debtor=UserSummary.model_validate(transaction.debtor),
        amount=Money.from_db(transaction.amount, transaction.currency_code).to_string(),
        currency_code=transaction.currency_code,
        is_confirmed=transaction.is_confirmed,
        created_at=transaction.created_at,
    )


def _get_party_transaction(store: LedgerStore, actor_id: int, transaction_id: int) -> Transaction:
    """Transaction by id; only its creditor and debtor may see it."""
    with store.reading():
        transaction = store.get(Transaction, transaction_id, TransactionNotFoundError)
    if actor_id not in (transaction.creditor_id, transaction.debtor_id):
        raise ForbiddenError("Only the creditor or the debtor may access this transaction")
    return transaction


def _lock_party_transaction(store: LedgerStore, actor_id: int, transaction_id: int) -> Transaction:
    """Locked transaction by id inside a write scope; only its parties may change it."""
    transaction = store.lock(Transaction, transaction_id, TransactionNotFoundError)
    if actor_id not in (transaction.creditor_id, transaction.debtor_id):
        raise ForbiddenError("Only the creditor or the debtor may access this transaction")
    return transaction


def create_transaction(store: LedgerStore, actor_id: int, trip_id: int, data: TransactionCreate) -> TransactionResponse:
    """The actor paid `data.amount` for `data.debtor_id`; the debtor now owes the actor."""
    if data.debtor_id == actor_id:
        raise BadRequestError("Creditor and debtor must be different users")
    with store.reading():
        trip = store.get(Trip, trip_id, TripNotFoundError)
    if data.currency_code and normalize_currency(data.currency_code) != trip.currency_code:
        raise BadRequestError(f"Transactions of this trip must be in {trip.currency_code}")
    amount = Money.parse(data.amount, trip.currency_code).require_positive()

    require_accepted(store, trip_id, actor_id)
    if not is_accepted_participant(store, trip_id, data.debtor_id):
        raise BadRequestError("The debtor is not an accepted participant of this trip")

    with store.transaction() as db:
        transaction = Transaction(
            trip_id=trip_id,
            creditor_id=actor_id,
            debtor_id=data.debtor_id,
            amount=amount.amount,
            currency_code=amount.currency,
            is_confirmed=False,
        )
        db.add(transaction)
        db.flush()
        debt_service.apply_delta(store, actor_id, data.debtor_id, trip_id, amount)
        logger.info(
            "Transaction %s: user %s paid %s %s for user %s in trip %s",
            transaction.id, actor_id, amount, amount.currency, data.debtor_id, trip_id,
        )

    with store.reading():
        return _to_response(transaction)


def confirm_transaction(store: LedgerStore, actor_id: int, transaction_id: int) -> TransactionResponse:
    """Acknowledge a transaction; only its debtor may do so, and only once."""
    with store.transaction():
        transaction = _lock_party_transaction(store, actor_id, transaction_id)
        if transaction.debtor_id != actor_id:
            raise ForbiddenError("Only the debtor may confirm a transaction")
        if transaction.is_confirmed:
            raise AlreadyConfirmedError()
        transaction.is_confirmed = True

    with store.reading():
        return _to_response(transaction)


def delete_transaction(store: LedgerStore, actor_id: int, transaction_id: int):
    """Delete a transaction and reverse its amount on the ledger."""
    with store.transaction() as db:
        transaction = _lock_party_transaction(store, actor_id, transaction_id)
        amount = Money.from_db(transaction.amount, transaction.currency_code)
        debt_service.apply_delta(
            store, transaction.creditor_id, transaction.debtor_id, transaction.trip_id, amount.negate()
        )
        db.delete(transaction)

    logger.info("User %s deleted transaction %s", actor_id, transaction_id)


def get_transaction(store: LedgerStore, actor_id: int, transaction_id: int) -> TransactionResponse:
    transaction = _get_party_transaction(store, actor_id, transaction_id)
    with store.reading():
        return _to_response(transaction)


def list_transactions(
    store: LedgerStore,
    actor_id: int,
    trip_id: int,
    is_confirmed: Optional[bool] = None
) -> List[TransactionResponse]:
    """Transactions of a trip in which the actor is creditor or debtor."""
    require_accepted(store, trip_id, actor_id)
    with store.reading():
        query = store.session.query(Transaction).filter(
            Transaction.trip_id == trip_id,
            (Transaction.creditor_id == actor_id) | (Transaction.debtor_id == actor_id)
        )
        if is_confirmed is not None:
            query = query.filter(Transaction.is_confirmed == is_confirmed)
        return [_to_response(t) for t in query.order_by(Transaction.created_at, Transaction.id).all()]
