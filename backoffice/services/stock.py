"""
Stock counter and movement log.

``Product.in_stock`` is a denormalised counter; ``StockMovement`` is the
append-only history behind it. ``adjust_stock`` changes both inside the
caller's unit of work, so the counter always equals the sum of the product's
movement quantities.
"""

import logging
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy import update
from sqlmodel import Session, select

from backoffice.errors import InvalidRequestError, NotFoundError
from backoffice.models import MOVEMENT_TYPES, Product, StockMovement

logger = logging.getLogger(__name__)


def record_movement(
    session: Session,
    owner_id: int,
    product_id: int,
    movement_type: str,
    quantity: float,
    reference_id: Optional[int] = None,
    description: str = "",
) -> StockMovement:
    if movement_type not in MOVEMENT_TYPES:
        raise InvalidRequestError(f"Invalid movement type '{movement_type}'")
    movement = StockMovement(
        owner_id=owner_id,
        product_id=product_id,
        type=movement_type,
        quantity=quantity,
        reference_id=reference_id,
        description=description,
    )
    session.add(movement)
    return movement


def adjust_stock(
    session: Session,
    owner_id: int,
    product_id: int,
    delta: float,
    movement_type: str,
    reference_id: Optional[int] = None,
    description: str = "",
) -> StockMovement:
    """Apply ``delta`` to the product's stock and log it.

    The read-modify-write happens in one conditional UPDATE; a decrement only
    matches while enough stock is on hand, so concurrent sales cannot push the
    counter below zero.
    """
    if movement_type not in MOVEMENT_TYPES:
        raise InvalidRequestError(f"Invalid movement type '{movement_type}'")

    statement = (
        update(Product)
        .where(Product.id == product_id, Product.owner_id == owner_id)
        .values(in_stock=Product.in_stock + delta)
        .execution_options(synchronize_session=False)
    )
    if delta < 0:
        statement = statement.where(Product.in_stock >= -delta)

    result = session.exec(statement)
    if result.rowcount == 0:
        product = session.exec(
            select(Product).where(Product.id == product_id, Product.owner_id == owner_id)
        ).first()
        if not product:
            raise NotFoundError("Product", product_id)
        logger.warning(
            "stock decrement rejected for product %s: requested %s, available %s",
            product_id,
            -delta,
            product.in_stock,
        )
        raise InvalidRequestError(
            f"Insufficient stock for {product.name}: requested {-delta:g}, available {product.in_stock:g}"
        )

    cached = session.identity_map.get(session.identity_key(Product, product_id))
    if cached is not None:
        session.expire(cached, ["in_stock"])

    return record_movement(
        session, owner_id, product_id, movement_type, delta, reference_id, description
    )


def load_products(session: Session, owner_id: int, product_ids: Iterable[int]) -> Dict[int, Product]:
    """Fetch the tenant's products by id; any id missing raises NotFoundError."""
    wanted = sorted(set(product_ids))
    if not wanted:
        return {}
    products = session.exec(
        select(Product).where(Product.owner_id == owner_id, Product.id.in_(wanted))
    ).all()
    by_id = {product.id: product for product in products}
    missing = [str(product_id) for product_id in wanted if product_id not in by_id]
    if missing:
        raise NotFoundError("Product", ", ".join(missing))
    return by_id


def check_availability(products: Dict[int, Product], lines: Iterable[Tuple[int, float]]) -> None:
    """Reject, itemised, any product whose summed requested quantity exceeds stock."""
    requested: Dict[int, float] = {}
    for product_id, quantity in lines:
        requested[product_id] = requested.get(product_id, 0) + quantity

    shortages: List[str] = []
    for product_id, quantity in requested.items():
        product = products[product_id]
        if quantity > product.in_stock:
            shortages.append(f"{product.name} available {product.in_stock:g}, requested {quantity:g}")
    if shortages:
        raise InvalidRequestError(f"Insufficient stock: {'; '.join(shortages)}")


def list_movements(session: Session, owner_id: int, product_id: int) -> List[StockMovement]:
    return session.exec(
        select(StockMovement)
        .where(StockMovement.owner_id == owner_id, StockMovement.product_id == product_id)
        .order_by(StockMovement.created_at.desc(), StockMovement.id.desc())
    ).all()
