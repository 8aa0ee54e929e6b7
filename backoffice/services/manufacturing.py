import logging
from typing import List

from sqlmodel import Session, select

from backoffice.db import unit_of_work
from backoffice.errors import InvalidRequestError, NotFoundError
from backoffice.models import Product, ProductionBatch, ProductionFinished, ProductionRaw
from backoffice.schemas import ManufactureRequest, ProductionBatchRead, ProductionLineRead
from backoffice.services import stock

logger = logging.getLogger(__name__)


def manufacture(session: Session, owner_id: int, payload: ManufactureRequest) -> ProductionBatch:
    """Convert raw-material stock into finished-good stock as one batch."""
    if not payload.raw_materials:
        raise InvalidRequestError("At least one raw material is required")
    if not payload.finished_products:
        raise InvalidRequestError("At least one finished product is required")
    for line in payload.raw_materials + payload.finished_products:
        if line.quantity <= 0:
            raise InvalidRequestError(f"Quantity for product {line.product_id} must be > 0")

    products = stock.load_products(
        session,
        owner_id,
        [line.product_id for line in payload.raw_materials + payload.finished_products],
    )
    stock.check_availability(
        products, [(line.product_id, line.quantity) for line in payload.raw_materials]
    )

    with unit_of_work(session):
        batch = ProductionBatch(owner_id=owner_id)
        session.add(batch)
        session.flush()

        for line in payload.raw_materials:
            session.add(
                ProductionRaw(batch_id=batch.id, product_id=line.product_id, quantity=line.quantity)
            )
            stock.adjust_stock(
                session,
                owner_id,
                line.product_id,
                -line.quantity,
                "manufacture",
                batch.id,
                f"Consumed in batch #{batch.id}",
            )

        for line in payload.finished_products:
            session.add(
                ProductionFinished(
                    batch_id=batch.id, product_id=line.product_id, quantity=line.quantity
                )
            )
            stock.adjust_stock(
                session,
                owner_id,
                line.product_id,
                line.quantity,
                "manufacture",
                batch.id,
                f"Produced in batch #{batch.id}",
            )

    session.refresh(batch)
    logger.info(
        "batch %s manufactured: %d raw line(s), %d finished line(s)",
        batch.id,
        len(payload.raw_materials),
        len(payload.finished_products),
    )
    return batch


def _lines(session: Session, model, batch_id: int) -> List[ProductionLineRead]:
    rows = session.exec(
        select(model, Product)
        .where(model.batch_id == batch_id)
        .where(model.product_id == Product.id)
        .order_by(model.id)
    ).all()
    return [
        ProductionLineRead(product_id=line.product_id, product_name=product.name, quantity=line.quantity)
        for line, product in rows
    ]


def to_batch_read(session: Session, batch: ProductionBatch) -> ProductionBatchRead:
    return ProductionBatchRead(
        id=batch.id,
        created_at=batch.created_at,
        raw_materials=_lines(session, ProductionRaw, batch.id),
        finished_products=_lines(session, ProductionFinished, batch.id),
    )


def list_batches(session: Session, owner_id: int) -> List[ProductionBatchRead]:
    batches = session.exec(
        select(ProductionBatch)
        .where(ProductionBatch.owner_id == owner_id)
        .order_by(ProductionBatch.created_at.desc(), ProductionBatch.id.desc())
    ).all()
    return [to_batch_read(session, batch) for batch in batches]


def get_batch(session: Session, owner_id: int, batch_id: int) -> ProductionBatchRead:
    batch = session.exec(
        select(ProductionBatch).where(
            ProductionBatch.id == batch_id, ProductionBatch.owner_id == owner_id
        )
    ).first()
    if not batch:
        raise NotFoundError("Production batch", batch_id)
    return to_batch_read(session, batch)
