from datetime import datetime
from typing import Dict, Optional, List

from sqlmodel import SQLModel


class RegisterRequest(SQLModel):
    username: str
    password: str


class LoginRequest(SQLModel):
    username: str
    password: str


class UserRead(SQLModel):
    id: int
    username: str


class AccountCreate(SQLModel):
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    status: str = "active"
    type: Optional[str] = None


class AccountUpdate(SQLModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    status: Optional[str] = None
    type: Optional[str] = None


class AccountUsage(SQLModel):
    has_orders: bool


class ProductCreate(SQLModel):
    name: str
    description: Optional[str] = None
    unit: str = "pcs"
    price: float = 0.0
    cost_price: float = 0.0
    in_stock: float = 0.0
    category: Optional[str] = None


class ProductUpdate(SQLModel):
    # in_stock is absent on purpose: only orders and manufacturing move stock.
    name: Optional[str] = None
    description: Optional[str] = None
    unit: Optional[str] = None
    price: Optional[float] = None
    cost_price: Optional[float] = None
    category: Optional[str] = None


class OrderLineCreate(SQLModel):
    product_id: int
    quantity: float
    price: float
    sell_price: Optional[float] = None


class OrderCreate(SQLModel):
    account_id: int
    type: str
    items: List[OrderLineCreate] = []
    total_amount: Optional[float] = None
    paid_amount: float = 0.0


class OrderUpdate(SQLModel):
    status: Optional[str] = None
    paid_amount: Optional[float] = None
    payment: Optional[float] = None


class TransactionSummary(SQLModel):
    id: int
    paid_amount: float
    status: str


class OrderRead(SQLModel):
    id: int
    account_id: int
    account_name: Optional[str] = None
    total_amount: float
    status: str
    type: str
    created_at: datetime
    transaction: Optional[TransactionSummary] = None


class OrderItemRead(SQLModel):
    id: int
    order_id: int
    product_id: int
    product_name: Optional[str] = None
    quantity: float
    price: float


class TransactionRead(SQLModel):
    id: int
    order_id: Optional[int] = None
    description: str
    category: Optional[str] = None
    type: str
    amount: float
    paid_amount: float
    status: str
    created_at: datetime


class OrderCreated(SQLModel):
    order: OrderRead
    order_items: List[OrderItemRead]
    transaction: TransactionRead


class TransactionCreate(SQLModel):
    description: str = ""
    category: Optional[str] = None
    type: str = "income"
    amount: float = 0.0
    paid_amount: float = 0.0


class TransactionUpdate(SQLModel):
    description: Optional[str] = None
    category: Optional[str] = None
    type: Optional[str] = None
    amount: Optional[float] = None
    paid_amount: Optional[float] = None


class StockMovementRead(SQLModel):
    id: int
    product_id: int
    type: str
    quantity: float
    reference_id: Optional[int] = None
    description: str
    created_at: datetime


class ProductionLine(SQLModel):
    product_id: int
    quantity: float


class ManufactureRequest(SQLModel):
    raw_materials: List[ProductionLine] = []
    finished_products: List[ProductionLine] = []


class ProductionLineRead(SQLModel):
    product_id: int
    product_name: Optional[str] = None
    quantity: float


class ProductionBatchRead(SQLModel):
    id: int
    created_at: datetime
    raw_materials: List[ProductionLineRead] = []
    finished_products: List[ProductionLineRead] = []


class ManufactureResult(SQLModel):
    batch_id: int


class CompanySettings(SQLModel):
    name: str
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    tax_number: Optional[str] = None
    currency: str = "USD"
    logo_url: Optional[str] = None


class CashFlowPoint(SQLModel):
    month: str
    income: float
    expense: float
    net: float


class DashboardSummary(SQLModel):
    total_revenue: float
    revenue_by_category: Dict[str, float]
    total_expenses: float
    expenses_by_category: Dict[str, float]
    net_profit: float
    profit_margin: float
    cash_flow: List[CashFlowPoint]
    sales_this_month: float
    orders_pending: int
    total_inventory: float
    out_of_stock_items: int
    low_stock_items: int
    credit_to_collect: float
    debit_to_pay: float
    cogs: float
    gross_profit: float
    income_in_hand: float
