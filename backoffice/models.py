from datetime import datetime, timezone
from typing import Optional, List

from sqlmodel import SQLModel, Field, Relationship

ACCOUNT_TYPES = ("customer", "supplier")
ACCOUNT_STATUSES = ("active", "inactive")
ORDER_TYPES = ("sale", "purchase")
ORDER_STATUSES = ("pending", "completed", "cancelled")
TRANSACTION_TYPES = ("income", "expense")
TRANSACTION_STATUSES = ("paid", "unpaid", "partial")
MOVEMENT_TYPES = ("sale", "purchase", "manufacture", "adjustment")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to timestamps read back without an offset (SQLite drops it)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class User(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    username: str = Field(index=True, unique=True)
    password_hash: str
    created_at: datetime = Field(default_factory=utcnow)


class Account(SQLModel, table=True):
    __tablename__ = "accounts"

    id: Optional[int] = Field(default=None, primary_key=True)
    owner_id: int = Field(foreign_key="user.id", index=True)
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    status: str = "active"
    type: str  # customer / supplier

    orders: List["Order"] = Relationship(back_populates="account")


class Product(SQLModel, table=True):
    __tablename__ = "products"

    id: Optional[int] = Field(default=None, primary_key=True)
    owner_id: int = Field(foreign_key="user.id", index=True)
    name: str
    description: Optional[str] = None
    unit: str = "pcs"
    price: float = 0.0
    cost_price: float = 0.0
    in_stock: float = 0.0
    category: Optional[str] = None

    movements: List["StockMovement"] = Relationship(back_populates="product")


class Order(SQLModel, table=True):
    __tablename__ = "orders"

    id: Optional[int] = Field(default=None, primary_key=True)
    owner_id: int = Field(foreign_key="user.id", index=True)
    account_id: int = Field(foreign_key="accounts.id", index=True)
    total_amount: float = 0.0
    status: str = "pending"
    type: str  # sale / purchase
    created_at: datetime = Field(default_factory=utcnow)

    account: Optional["Account"] = Relationship(back_populates="orders")
    items: List["OrderItem"] = Relationship(back_populates="order")
    transaction: Optional["Transaction"] = Relationship(
        back_populates="order", sa_relationship_kwargs={"uselist": False}
    )


class OrderItem(SQLModel, table=True):
    __tablename__ = "order_items"

    id: Optional[int] = Field(default=None, primary_key=True)
    order_id: int = Field(foreign_key="orders.id", index=True)
    product_id: int = Field(foreign_key="products.id", index=True)
    quantity: float
    price: float

    order: Optional["Order"] = Relationship(back_populates="items")
    product: Optional["Product"] = Relationship()


class Transaction(SQLModel, table=True):
    __tablename__ = "transactions"

    id: Optional[int] = Field(default=None, primary_key=True)
    owner_id: int = Field(foreign_key="user.id", index=True)
    # Unique: an order owns at most one ledger entry.
    order_id: Optional[int] = Field(default=None, foreign_key="orders.id", unique=True)
    description: str = ""
    category: Optional[str] = None
    type: str  # income / expense
    amount: float = 0.0
    paid_amount: float = 0.0
    status: str = "unpaid"
    created_at: datetime = Field(default_factory=utcnow)

    order: Optional["Order"] = Relationship(back_populates="transaction")


class StockMovement(SQLModel, table=True):
    __tablename__ = "stock_movements"

    id: Optional[int] = Field(default=None, primary_key=True)
    owner_id: int = Field(foreign_key="user.id", index=True)
    product_id: int = Field(foreign_key="products.id", index=True)
    type: str  # sale / purchase / manufacture / adjustment
    quantity: float  # signed delta applied to Product.in_stock
    reference_id: Optional[int] = None
    description: str = ""
    created_at: datetime = Field(default_factory=utcnow)

    product: Optional["Product"] = Relationship(back_populates="movements")


class ProductionBatch(SQLModel, table=True):
    __tablename__ = "production_batches"

    id: Optional[int] = Field(default=None, primary_key=True)
    owner_id: int = Field(foreign_key="user.id", index=True)
    created_at: datetime = Field(default_factory=utcnow)

    raw_materials: List["ProductionRaw"] = Relationship(back_populates="batch")
    finished_products: List["ProductionFinished"] = Relationship(back_populates="batch")


class ProductionRaw(SQLModel, table=True):
    __tablename__ = "production_raw"

    id: Optional[int] = Field(default=None, primary_key=True)
    batch_id: int = Field(foreign_key="production_batches.id", index=True)
    product_id: int = Field(foreign_key="products.id")
    quantity: float

    batch: Optional["ProductionBatch"] = Relationship(back_populates="raw_materials")


class ProductionFinished(SQLModel, table=True):
    __tablename__ = "production_finished"

    id: Optional[int] = Field(default=None, primary_key=True)
    batch_id: int = Field(foreign_key="production_batches.id", index=True)
    product_id: int = Field(foreign_key="products.id")
    quantity: float

    batch: Optional["ProductionBatch"] = Relationship(back_populates="finished_products")


class Company(SQLModel, table=True):
    __tablename__ = "companies"

    id: Optional[int] = Field(default=None, primary_key=True)
    owner_id: int = Field(foreign_key="user.id", unique=True)
    name: str
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    tax_number: Optional[str] = None
    currency: str = "USD"
    logo_url: Optional[str] = None
