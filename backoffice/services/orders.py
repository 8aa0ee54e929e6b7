"""
Order lifecycle: creation, status transitions, payments and deletion.

Every public operation runs as one unit of work. The order row, its items,
the stock counters with their movements and the paired transaction are
committed together or not at all.

Stock deltas by order type:

* sale      -> in_stock - quantity
* purchase  -> in_stock + quantity

Cancelling (or deleting) an active order reverses the delta; reactivating a
cancelled order applies it again.
"""

import logging
from typing import List, Optional, Tuple

from sqlmodel import Session, delete, select

from backoffice.db import lock_for_update, unit_of_work
from backoffice.errors import InvalidRequestError, NotFoundError
from backoffice.models import (
    ORDER_STATUSES,
    ORDER_TYPES,
    Account,
    Order,
    OrderItem,
    Product,
    Transaction,
)
from backoffice.schemas import (
    OrderCreate,
    OrderItemRead,
    OrderRead,
    TransactionSummary,
)
from backoffice.services import ledger, stock

logger = logging.getLogger(__name__)


def stock_delta(order_type: str, quantity: float) -> float:
    return -quantity if order_type == "sale" else quantity


def _get_order(session: Session, owner_id: int, order_id: int, for_update: bool = False) -> Order:
    statement = select(Order).where(Order.id == order_id, Order.owner_id == owner_id)
    if for_update:
        statement = lock_for_update(statement)
    order = session.exec(statement).first()
    if not order:
        raise NotFoundError("Order", order_id)
    return order


def _order_items(session: Session, order_id: int) -> List[OrderItem]:
    return session.exec(
        select(OrderItem).where(OrderItem.order_id == order_id).order_by(OrderItem.id)
    ).all()


def _shift_stock(
    session: Session, order: Order, sign: int, movement_type: str, description: str
) -> None:
    """Apply the order's delta once (sign=1) or reverse it (sign=-1)."""
    for item in _order_items(session, order.id):
        stock.adjust_stock(
            session,
            order.owner_id,
            item.product_id,
            sign * stock_delta(order.type, item.quantity),
            movement_type,
            order.id,
            description,
        )


def create_order(
    session: Session, owner_id: int, payload: OrderCreate
) -> Tuple[Order, List[OrderItem], Transaction]:
    if payload.type not in ORDER_TYPES:
        raise InvalidRequestError("Order type must be 'sale' or 'purchase'")
    if not payload.items:
        raise InvalidRequestError("At least one line item is required")
    for line in payload.items:
        if line.quantity <= 0:
            raise InvalidRequestError(f"Quantity for product {line.product_id} must be > 0")
        if line.price < 0:
            raise InvalidRequestError(f"Price for product {line.product_id} cannot be negative")

    account = session.exec(
        select(Account).where(Account.id == payload.account_id, Account.owner_id == owner_id)
    ).first()
    if not account:
        raise NotFoundError("Account", payload.account_id)

    products = stock.load_products(session, owner_id, [line.product_id for line in payload.items])
    if payload.type == "sale":
        stock.check_availability(
            products, [(line.product_id, line.quantity) for line in payload.items]
        )

    total_amount = payload.total_amount
    if total_amount is None:
        total_amount = sum(line.quantity * line.price for line in payload.items)
    if total_amount < 0:
        raise InvalidRequestError("Total amount cannot be negative")
    ledger.validate_paid_amount(payload.paid_amount, total_amount)

    with unit_of_work(session):
        order = Order(
            owner_id=owner_id,
            account_id=account.id,
            total_amount=total_amount,
            status="pending",
            type=payload.type,
        )
        session.add(order)
        session.flush()

        items = []
        for line in payload.items:
            item = OrderItem(
                order_id=order.id,
                product_id=line.product_id,
                quantity=line.quantity,
                price=line.price,
            )
            session.add(item)
            items.append(item)

            stock.adjust_stock(
                session,
                owner_id,
                line.product_id,
                stock_delta(payload.type, line.quantity),
                payload.type,
                order.id,
                f"{payload.type} order {order.id}",
            )

            # Purchasing sets the selling price going forward.
            product = products[line.product_id]
            if payload.type == "purchase" and line.sell_price is not None and line.sell_price != product.price:
                product.price = line.sell_price
                session.add(product)

        transaction = ledger.new_order_transaction(order, payload.paid_amount)
        session.add(transaction)

    session.refresh(order)
    session.refresh(transaction)
    for item in items:
        session.refresh(item)
    logger.info(
        "%s order %s created: %d line(s), total %.2f, transaction %s",
        order.type,
        order.id,
        len(items),
        order.total_amount,
        transaction.status,
    )
    return order, items, transaction


def update_order(
    session: Session,
    owner_id: int,
    order_id: int,
    status: Optional[str] = None,
    paid_amount: Optional[float] = None,
    payment: Optional[float] = None,
) -> Order:
    """Change status and/or record a payment.

    ``paid_amount`` sets the paid total; ``payment`` adds to it. Either one
    recomputes the transaction status in the same commit.
    """
    order = _get_order(session, owner_id, order_id, for_update=True)
    if status is not None and status not in ORDER_STATUSES:
        raise InvalidRequestError(
            f"Invalid status '{status}'; expected one of {', '.join(ORDER_STATUSES)}"
        )
    if paid_amount is not None and payment is not None:
        raise InvalidRequestError("Send either paid_amount or payment, not both")

    previous = order.status
    target = status or previous
    wants_payment = paid_amount is not None or payment is not None
    if wants_payment and target == "cancelled":
        raise InvalidRequestError("Cannot record a payment on a cancelled order")

    with unit_of_work(session):
        if previous != "cancelled" and target == "cancelled":
            _shift_stock(session, order, -1, "adjustment", f"Cancelled {order.type} order {order.id}")
            # The ledger entry goes away with the cancellation, it is not voided.
            session.exec(
                delete(Transaction).where(
                    Transaction.order_id == order.id, Transaction.owner_id == owner_id
                )
            )
        elif previous == "cancelled" and target != "cancelled":
            _shift_stock(session, order, 1, order.type, f"Reactivated {order.type} order {order.id}")
            session.add(ledger.new_order_transaction(order, 0.0))

        order.status = target
        session.add(order)

        if wants_payment:
            transaction = ledger.get_order_transaction(session, owner_id, order.id, for_update=True)
            if not transaction:
                raise NotFoundError("Transaction for order", order.id)
            ledger.apply_payment(transaction, paid_amount=paid_amount, payment=payment)
            session.add(transaction)

    session.refresh(order)
    if previous != target:
        logger.info("order %s status %s -> %s", order.id, previous, target)
    if wants_payment:
        logger.info("order %s payment recorded", order.id)
    return order


def delete_order(session: Session, owner_id: int, order_id: int) -> None:
    order = _get_order(session, owner_id, order_id, for_update=True)

    with unit_of_work(session):
        # A cancelled order already gave its stock back.
        if order.status != "cancelled":
            _shift_stock(session, order, -1, "adjustment", f"Deleted {order.type} order {order.id}")
        session.exec(
            delete(Transaction).where(
                Transaction.order_id == order.id, Transaction.owner_id == owner_id
            )
        )
        session.exec(delete(OrderItem).where(OrderItem.order_id == order.id))
        session.exec(delete(Order).where(Order.id == order.id, Order.owner_id == owner_id))

    logger.info("order %s deleted", order_id)


def account_has_orders(session: Session, owner_id: int, account_id: int) -> bool:
    return (
        session.exec(
            select(Order.id).where(Order.owner_id == owner_id, Order.account_id == account_id)
        ).first()
        is not None
    )


def to_order_read(
    order: Order, account: Optional[Account], transaction: Optional[Transaction]
) -> OrderRead:
    return OrderRead(
        id=order.id,
        account_id=order.account_id,
        account_name=account.name if account else None,
        total_amount=order.total_amount,
        status=order.status,
        type=order.type,
        created_at=order.created_at,
        transaction=(
            TransactionSummary(
                id=transaction.id,
                paid_amount=transaction.paid_amount,
                status=transaction.status,
            )
            if transaction
            else None
        ),
    )


def _order_rows(owner_id: int):
    return (
        select(Order, Account, Transaction)
        .join(Account, Account.id == Order.account_id, isouter=True)
        .join(Transaction, Transaction.order_id == Order.id, isouter=True)
        .where(Order.owner_id == owner_id)
    )


def list_orders(session: Session, owner_id: int) -> List[OrderRead]:
    rows = session.exec(
        _order_rows(owner_id).order_by(Order.created_at.desc(), Order.id.desc())
    ).all()
    return [to_order_read(order, account, transaction) for order, account, transaction in rows]


def get_order(session: Session, owner_id: int, order_id: int) -> OrderRead:
    row = session.exec(_order_rows(owner_id).where(Order.id == order_id)).first()
    if not row:
        raise NotFoundError("Order", order_id)
    order, account, transaction = row
    return to_order_read(order, account, transaction)


def list_order_items(session: Session, owner_id: int, order_id: int) -> List[OrderItemRead]:
    _get_order(session, owner_id, order_id)
    rows = session.exec(
        select(OrderItem, Product)
        .where(OrderItem.order_id == order_id)
        .where(OrderItem.product_id == Product.id)
        .order_by(OrderItem.id)
    ).all()
    return [to_item_read(item, product) for item, product in rows]


def to_item_read(item: OrderItem, product: Optional[Product]) -> OrderItemRead:
    return OrderItemRead(
        id=item.id,
        order_id=item.order_id,
        product_id=item.product_id,
        product_name=product.name if product else None,
        quantity=item.quantity,
        price=item.price,
    )
