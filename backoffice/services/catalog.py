import logging
from typing import List

from sqlmodel import Session, delete, select

from backoffice.db import unit_of_work
from backoffice.errors import ConflictError, InvalidRequestError, NotFoundError
from backoffice.models import OrderItem, Product, ProductionFinished, ProductionRaw, StockMovement
from backoffice.schemas import ProductCreate, ProductUpdate
from backoffice.services import stock

logger = logging.getLogger(__name__)


def list_products(session: Session, owner_id: int) -> List[Product]:
    return session.exec(
        select(Product).where(Product.owner_id == owner_id).order_by(Product.name)
    ).all()


def get_product(session: Session, owner_id: int, product_id: int) -> Product:
    product = session.exec(
        select(Product).where(Product.id == product_id, Product.owner_id == owner_id)
    ).first()
    if not product:
        raise NotFoundError("Product", product_id)
    return product


def _validate_prices(price, cost_price) -> None:
    if price is not None and price < 0:
        raise InvalidRequestError("Price cannot be negative")
    if cost_price is not None and cost_price < 0:
        raise InvalidRequestError("Cost price cannot be negative")


def create_product(session: Session, owner_id: int, payload: ProductCreate) -> Product:
    _validate_prices(payload.price, payload.cost_price)
    if payload.in_stock < 0:
        raise InvalidRequestError("Opening stock cannot be negative")

    with unit_of_work(session):
        product = Product(owner_id=owner_id, **payload.model_dump(exclude={"in_stock"}))
        session.add(product)
        session.flush()
        if payload.in_stock:
            stock.adjust_stock(
                session,
                owner_id,
                product.id,
                payload.in_stock,
                "adjustment",
                None,
                "Opening stock",
            )
    session.refresh(product)
    return product


def update_product(
    session: Session, owner_id: int, product_id: int, payload: ProductUpdate
) -> Product:
    product = get_product(session, owner_id, product_id)
    changes = payload.model_dump(exclude_unset=True)
    _validate_prices(changes.get("price"), changes.get("cost_price"))
    for key, value in changes.items():
        if key in ("name", "unit", "price", "cost_price") and value is None:
            continue
        setattr(product, key, value)
    with unit_of_work(session):
        session.add(product)
    session.refresh(product)
    return product


def delete_product(session: Session, owner_id: int, product_id: int) -> None:
    product = get_product(session, owner_id, product_id)
    in_orders = session.exec(
        select(OrderItem.id).where(OrderItem.product_id == product.id)
    ).first()
    if in_orders is not None:
        raise ConflictError("Cannot delete: product is associated with existing orders.")
    in_production = (
        session.exec(select(ProductionRaw.id).where(ProductionRaw.product_id == product.id)).first()
        or session.exec(
            select(ProductionFinished.id).where(ProductionFinished.product_id == product.id)
        ).first()
    )
    if in_production is not None:
        raise ConflictError("Cannot delete: product is used in production batches.")

    with unit_of_work(session):
        session.exec(delete(StockMovement).where(StockMovement.product_id == product.id))
        session.delete(product)
    logger.info("product %s deleted", product_id)
