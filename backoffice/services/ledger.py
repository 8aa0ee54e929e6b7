"""
Financial ledger: transactions that track amount owed against amount paid.

``Transaction.status`` is never stored from input. Every code path that
writes ``paid_amount`` or ``amount`` goes through ``derive_status`` in the
same flush.
"""

import logging
from typing import List, Optional

from sqlmodel import Session, select

from backoffice.db import lock_for_update, unit_of_work
from backoffice.errors import ConflictError, InvalidRequestError, NotFoundError
from backoffice.models import TRANSACTION_STATUSES, TRANSACTION_TYPES, Order, Transaction
from backoffice.schemas import TransactionCreate, TransactionUpdate

logger = logging.getLogger(__name__)

# Float money: tolerate representation error when comparing against limits.
_EPSILON = 1e-9


def derive_status(paid_amount: float, amount: float) -> str:
    if paid_amount >= amount:
        return "paid"
    if paid_amount <= 0:
        return "unpaid"
    return "partial"


def validate_paid_amount(paid_amount: float, amount: float) -> None:
    if paid_amount < 0 or paid_amount > amount + _EPSILON:
        raise InvalidRequestError(f"Paid amount must be between 0 and {amount:.2f}")


def apply_payment(
    transaction: Transaction,
    paid_amount: Optional[float] = None,
    payment: Optional[float] = None,
) -> Transaction:
    """Set ``paid_amount`` absolutely, or add ``payment`` to it, and re-derive status."""
    if paid_amount is not None and payment is not None:
        raise InvalidRequestError("Send either paid_amount or payment, not both")

    remaining = max(0.0, transaction.amount - transaction.paid_amount)
    if payment is not None:
        if payment < 0 or payment > remaining + _EPSILON:
            raise InvalidRequestError(
                f"Payment must be between 0 and the remaining amount owed ({remaining:.2f})"
            )
        new_paid = transaction.paid_amount + payment
    elif paid_amount is not None:
        if paid_amount < 0 or paid_amount > transaction.amount + _EPSILON:
            raise InvalidRequestError(
                f"Paid amount must be between 0 and {transaction.amount:.2f} "
                f"(remaining amount owed {remaining:.2f})"
            )
        new_paid = paid_amount
    else:
        return transaction

    transaction.paid_amount = new_paid
    transaction.status = derive_status(transaction.paid_amount, transaction.amount)
    return transaction


def new_order_transaction(order: Order, paid_amount: float = 0.0) -> Transaction:
    is_sale = order.type == "sale"
    return Transaction(
        owner_id=order.owner_id,
        order_id=order.id,
        description=f"Transaction for order #{order.id}",
        category="selling" if is_sale else "purchase",
        type="income" if is_sale else "expense",
        amount=order.total_amount,
        paid_amount=paid_amount,
        status=derive_status(paid_amount, order.total_amount),
    )


def get_order_transaction(
    session: Session, owner_id: int, order_id: int, for_update: bool = False
) -> Optional[Transaction]:
    statement = select(Transaction).where(
        Transaction.order_id == order_id, Transaction.owner_id == owner_id
    )
    if for_update:
        statement = lock_for_update(statement)
    return session.exec(statement).first()


def list_transactions(
    session: Session,
    owner_id: int,
    type: Optional[str] = None,
    status: Optional[str] = None,
) -> List[Transaction]:
    statement = select(Transaction).where(Transaction.owner_id == owner_id)
    if type:
        statement = statement.where(Transaction.type == type)
    if status:
        if status not in TRANSACTION_STATUSES:
            raise InvalidRequestError(f"Invalid transaction status '{status}'")
        statement = statement.where(Transaction.status == status)
    statement = statement.order_by(Transaction.created_at.desc(), Transaction.id.desc())
    return session.exec(statement).all()


def get_transaction(session: Session, owner_id: int, transaction_id: int, for_update: bool = False) -> Transaction:
    statement = select(Transaction).where(
        Transaction.id == transaction_id, Transaction.owner_id == owner_id
    )
    if for_update:
        statement = lock_for_update(statement)
    transaction = session.exec(statement).first()
    if not transaction:
        raise NotFoundError("Transaction", transaction_id)
    return transaction


def create_transaction(session: Session, owner_id: int, payload: TransactionCreate) -> Transaction:
    """Standalone cashier entry, not linked to any order."""
    if payload.type not in TRANSACTION_TYPES:
        raise InvalidRequestError("Transaction type must be 'income' or 'expense'")
    if payload.amount < 0:
        raise InvalidRequestError("Amount cannot be negative")
    validate_paid_amount(payload.paid_amount, payload.amount)

    transaction = Transaction(
        owner_id=owner_id,
        order_id=None,
        description=payload.description,
        category=payload.category,
        type=payload.type,
        amount=payload.amount,
        paid_amount=payload.paid_amount,
        status=derive_status(payload.paid_amount, payload.amount),
    )
    with unit_of_work(session):
        session.add(transaction)
    session.refresh(transaction)
    logger.info("transaction %s created (%s %.2f)", transaction.id, transaction.type, transaction.amount)
    return transaction


def update_transaction(
    session: Session, owner_id: int, transaction_id: int, payload: TransactionUpdate
) -> Transaction:
    transaction = get_transaction(session, owner_id, transaction_id, for_update=True)
    changes = payload.model_dump(exclude_unset=True)

    if transaction.order_id is not None:
        owned_by_order = [
            key for key in ("type", "amount")
            if key in changes and changes[key] != getattr(transaction, key)
        ]
        if owned_by_order:
            raise ConflictError(
                f"Transaction belongs to order #{transaction.order_id}; "
                "its type and amount follow the order"
            )

    if "type" in changes and changes["type"] not in TRANSACTION_TYPES:
        raise InvalidRequestError("Transaction type must be 'income' or 'expense'")
    if changes.get("amount") is not None and changes["amount"] < 0:
        raise InvalidRequestError("Amount cannot be negative")

    amount = changes["amount"] if changes.get("amount") is not None else transaction.amount
    paid_amount = (
        changes["paid_amount"] if changes.get("paid_amount") is not None else transaction.paid_amount
    )
    validate_paid_amount(paid_amount, amount)

    for key in ("description", "type"):
        if changes.get(key) is not None:
            setattr(transaction, key, changes[key])
    if "category" in changes:
        transaction.category = changes["category"]
    transaction.amount = amount
    transaction.paid_amount = paid_amount
    transaction.status = derive_status(transaction.paid_amount, transaction.amount)

    with unit_of_work(session):
        session.add(transaction)
    session.refresh(transaction)
    return transaction


def delete_transaction(session: Session, owner_id: int, transaction_id: int) -> None:
    transaction = get_transaction(session, owner_id, transaction_id)
    if transaction.order_id is not None:
        raise ConflictError(
            f"Transaction belongs to order #{transaction.order_id}; "
            "cancel or delete the order instead"
        )
    with unit_of_work(session):
        session.delete(transaction)
    logger.info("transaction %s deleted", transaction_id)
