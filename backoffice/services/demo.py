import logging

from sqlmodel import Session, delete, select

from backoffice.db import unit_of_work
from backoffice.models import (
    Account,
    Order,
    OrderItem,
    Product,
    ProductionBatch,
    ProductionFinished,
    ProductionRaw,
    StockMovement,
    Transaction,
)
from backoffice.schemas import OrderCreate, OrderLineCreate, ProductCreate
from backoffice.services import catalog, orders

logger = logging.getLogger(__name__)

DEMO_PRODUCTS = [
    ProductCreate(name="Almonds", description="Premium quality raw almonds", price=1200, cost_price=1000, in_stock=50, unit="kg", category="dry fruit"),
    ProductCreate(name="Cashews", description="Whole cashew nuts", price=1500, cost_price=1250, in_stock=40, unit="kg", category="dry fruit"),
    ProductCreate(name="Raisins", description="Golden raisins", price=800, cost_price=750, in_stock=60, unit="kg", category="dry fruit"),
    ProductCreate(name="Pistachios", description="Salted pistachios", price=1600, cost_price=1300, in_stock=30, unit="kg", category="dry fruit"),
]

DEMO_ACCOUNTS = [
    {"name": "Karachi Super Mart", "email": "karachi@supermart.com", "phone": "03001234567", "type": "customer"},
    {"name": "Baloch Dry Fruit Supplier", "email": "baloch@supplier.com", "phone": "03331234567", "type": "supplier"},
    {"name": "Walk In Customer", "type": "customer"},
    {"name": "Walk In Supplier", "type": "supplier"},
]


def generate_demo_data(session: Session, owner_id: int) -> dict:
    """Seed a tenant with sample products, accounts and two completed orders.

    Orders go through the order service so stock, movements and the ledger
    stay consistent with everything else. The whole seed is one commit.
    """
    with unit_of_work(session):
        products = {
            payload.name: catalog.create_product(session, owner_id, payload)
            for payload in DEMO_PRODUCTS
        }

        accounts = {}
        for data in DEMO_ACCOUNTS:
            account = Account(owner_id=owner_id, status="active", **data)
            session.add(account)
            accounts[account.name] = account
        session.flush()
        supplier = accounts["Baloch Dry Fruit Supplier"]
        customer = accounts["Karachi Super Mart"]

        purchase, _, _ = orders.create_order(
            session,
            owner_id,
            OrderCreate(
                account_id=supplier.id,
                type="purchase",
                items=[
                    OrderLineCreate(product_id=products["Almonds"].id, quantity=30, price=1000, sell_price=1200),
                    OrderLineCreate(product_id=products["Raisins"].id, quantity=20, price=750, sell_price=800),
                ],
                paid_amount=45000,
            ),
        )
        orders.update_order(session, owner_id, purchase.id, status="completed")

        sale, _, _ = orders.create_order(
            session,
            owner_id,
            OrderCreate(
                account_id=customer.id,
                type="sale",
                items=[
                    OrderLineCreate(product_id=products["Almonds"].id, quantity=10, price=1200),
                    OrderLineCreate(product_id=products["Pistachios"].id, quantity=10, price=1600),
                ],
                paid_amount=20000,
            ),
        )
        orders.update_order(session, owner_id, sale.id, status="completed")

    logger.info("demo data generated for user %s", owner_id)
    return {"message": "Demo data created successfully!"}


def delete_tenant_data(session: Session, owner_id: int) -> dict:
    """Remove every business row the tenant owns, in one unit of work."""
    batch_ids = session.exec(
        select(ProductionBatch.id).where(ProductionBatch.owner_id == owner_id)
    ).all()
    order_ids = session.exec(select(Order.id).where(Order.owner_id == owner_id)).all()

    with unit_of_work(session):
        session.exec(delete(StockMovement).where(StockMovement.owner_id == owner_id))
        if batch_ids:
            session.exec(delete(ProductionRaw).where(ProductionRaw.batch_id.in_(batch_ids)))
            session.exec(delete(ProductionFinished).where(ProductionFinished.batch_id.in_(batch_ids)))
        session.exec(delete(ProductionBatch).where(ProductionBatch.owner_id == owner_id))
        session.exec(delete(Transaction).where(Transaction.owner_id == owner_id))
        if order_ids:
            session.exec(delete(OrderItem).where(OrderItem.order_id.in_(order_ids)))
        session.exec(delete(Order).where(Order.owner_id == owner_id))
        session.exec(delete(Product).where(Product.owner_id == owner_id))
        session.exec(delete(Account).where(Account.owner_id == owner_id))

    logger.info("all data deleted for user %s", owner_id)
    return {"message": "All demo data deleted successfully!"}
