import logging
from datetime import datetime
from typing import Optional

from sqlmodel import Session, select

from backoffice.models import (
    Account,
    Company,
    Order,
    OrderItem,
    Product,
    ProductionBatch,
    ProductionFinished,
    ProductionRaw,
    StockMovement,
    Transaction,
    User,
    utcnow,
)
from backoffice.s3_client import store_backup

logger = logging.getLogger(__name__)


def _dump(rows) -> list:
    return [row.model_dump(mode="json") for row in rows]


def build_backup_payload(
    session: Session, owner_id: int, taken_at: Optional[datetime] = None
) -> dict:
    order_ids = session.exec(select(Order.id).where(Order.owner_id == owner_id)).all()
    batch_ids = session.exec(
        select(ProductionBatch.id).where(ProductionBatch.owner_id == owner_id)
    ).all()
    return {
        "generated_at": (taken_at or utcnow()).isoformat(),
        "owner_id": owner_id,
        "company": _dump(session.exec(select(Company).where(Company.owner_id == owner_id)).all()),
        "accounts": _dump(session.exec(select(Account).where(Account.owner_id == owner_id)).all()),
        "products": _dump(session.exec(select(Product).where(Product.owner_id == owner_id)).all()),
        "orders": _dump(session.exec(select(Order).where(Order.owner_id == owner_id)).all()),
        "order_items": _dump(
            session.exec(select(OrderItem).where(OrderItem.order_id.in_(order_ids))).all()
            if order_ids
            else []
        ),
        "transactions": _dump(
            session.exec(select(Transaction).where(Transaction.owner_id == owner_id)).all()
        ),
        "stock_movements": _dump(
            session.exec(select(StockMovement).where(StockMovement.owner_id == owner_id)).all()
        ),
        "production_batches": _dump(
            session.exec(select(ProductionBatch).where(ProductionBatch.owner_id == owner_id)).all()
        ),
        "production_raw": _dump(
            session.exec(select(ProductionRaw).where(ProductionRaw.batch_id.in_(batch_ids))).all()
            if batch_ids
            else []
        ),
        "production_finished": _dump(
            session.exec(
                select(ProductionFinished).where(ProductionFinished.batch_id.in_(batch_ids))
            ).all()
            if batch_ids
            else []
        ),
    }


def run_backup(session: Session, owner_id: int) -> dict:
    taken_at = utcnow()
    payload = build_backup_payload(session, owner_id, taken_at)
    key, url = store_backup(owner_id, payload, taken_at)
    logger.info("backup for user %s uploaded to %s", owner_id, key)
    return {"key": key, "url": url, "created_at": taken_at.isoformat()}


def run_all_backups(session: Session) -> int:
    """Back up every tenant; one failure does not stop the rest."""
    done = 0
    for user_id in session.exec(select(User.id)).all():
        try:
            run_backup(session, user_id)
            done += 1
        except Exception:
            logger.exception("backup failed for user %s", user_id)
    return done
