import os
from datetime import date, datetime, timezone
from typing import Dict, List, Optional

from sqlmodel import Session, select

from backoffice.models import Order, OrderItem, Product, Transaction, as_utc, utcnow
from backoffice.schemas import CashFlowPoint, DashboardSummary

CASH_FLOW_MONTHS = 6


def _low_stock_threshold() -> float:
    return float(os.getenv("LOW_STOCK_THRESHOLD", "10"))


def _month_keys(today: date, count: int) -> List[str]:
    keys = []
    year, month = today.year, today.month
    for _ in range(count):
        keys.append(f"{year:04d}-{month:02d}")
        month -= 1
        if month == 0:
            year, month = year - 1, 12
    return list(reversed(keys))


def revenue_by_category(session: Session, owner_id: int) -> Dict[str, float]:
    return _paid_by_category(
        session.exec(select(Transaction).where(Transaction.owner_id == owner_id)).all(), "income"
    )


def _paid_by_category(transactions: List[Transaction], type: str) -> Dict[str, float]:
    totals: Dict[str, float] = {}
    for txn in transactions:
        if txn.type != type or txn.status != "paid" or not txn.category:
            continue
        totals[txn.category] = totals.get(txn.category, 0.0) + txn.amount
    return totals


def dashboard_summary(
    session: Session, owner_id: int, today: Optional[date] = None
) -> DashboardSummary:
    today = today or utcnow().date()
    transactions = session.exec(select(Transaction).where(Transaction.owner_id == owner_id)).all()
    orders = session.exec(select(Order).where(Order.owner_id == owner_id)).all()
    products = session.exec(select(Product).where(Product.owner_id == owner_id)).all()

    income = [txn for txn in transactions if txn.type == "income"]
    expense = [txn for txn in transactions if txn.type == "expense"]

    total_revenue = sum(txn.amount for txn in income if txn.status == "paid")
    total_expenses = sum(txn.amount for txn in expense if txn.status == "paid")
    net_profit = total_revenue - total_expenses
    profit_margin = round(net_profit / total_revenue * 100, 2) if total_revenue > 0 else 0.0

    flow: Dict[str, Dict[str, float]] = {
        key: {"income": 0.0, "expense": 0.0} for key in _month_keys(today, CASH_FLOW_MONTHS)
    }
    for txn in transactions:
        bucket = flow.get(as_utc(txn.created_at).strftime("%Y-%m"))
        if bucket is not None:
            bucket[txn.type] = bucket.get(txn.type, 0.0) + txn.paid_amount
    cash_flow = [
        CashFlowPoint(
            month=key,
            income=values["income"],
            expense=values["expense"],
            net=values["income"] - values["expense"],
        )
        for key, values in flow.items()
    ]

    month_start = datetime(today.year, today.month, 1, tzinfo=timezone.utc)
    live_sales = [order for order in orders if order.type == "sale" and order.status != "cancelled"]
    sales_this_month = sum(
        order.total_amount for order in live_sales if as_utc(order.created_at) >= month_start
    )

    cogs = 0.0
    sales_revenue = 0.0
    sale_ids = [order.id for order in live_sales]
    if sale_ids:
        rows = session.exec(
            select(OrderItem, Product)
            .where(OrderItem.order_id.in_(sale_ids))
            .where(OrderItem.product_id == Product.id)
        ).all()
        for item, product in rows:
            cogs += item.quantity * product.cost_price
            sales_revenue += item.quantity * item.price

    threshold = _low_stock_threshold()
    paid_in = sum(txn.paid_amount for txn in income)
    paid_out = sum(txn.paid_amount for txn in expense)

    return DashboardSummary(
        total_revenue=total_revenue,
        revenue_by_category=_paid_by_category(transactions, "income"),
        total_expenses=total_expenses,
        expenses_by_category=_paid_by_category(transactions, "expense"),
        net_profit=net_profit,
        profit_margin=profit_margin,
        cash_flow=cash_flow,
        sales_this_month=sales_this_month,
        orders_pending=sum(1 for order in orders if order.status == "pending"),
        total_inventory=sum(product.in_stock for product in products),
        out_of_stock_items=sum(1 for product in products if product.in_stock <= 0),
        low_stock_items=sum(1 for product in products if 0 < product.in_stock < threshold),
        credit_to_collect=sum(max(0.0, txn.amount - txn.paid_amount) for txn in income),
        debit_to_pay=sum(max(0.0, txn.amount - txn.paid_amount) for txn in expense),
        cogs=cogs,
        gross_profit=sales_revenue - cogs,
        income_in_hand=paid_in - paid_out,
    )
