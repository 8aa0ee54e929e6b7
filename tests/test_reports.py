from datetime import date, datetime, timedelta, timezone

import pytest

from backoffice import models
from backoffice.schemas import OrderCreate, OrderLineCreate, TransactionCreate
from backoffice.services import ledger, orders, reports


@pytest.fixture
def books(session, user, make_account, make_product, monkeypatch):
    monkeypatch.setenv("LOW_STOCK_THRESHOLD", "10")
    customer = make_account(user, "customer")
    supplier = make_account(user, "supplier")
    almonds = make_product(user, name="Almonds", in_stock=50, price=100, cost_price=60)
    make_product(user, name="Cashews", in_stock=5)
    raisins = make_product(user, name="Raisins", in_stock=0)

    sale, _, _ = orders.create_order(
        session,
        user.id,
        OrderCreate(
            account_id=customer.id,
            type="sale",
            items=[OrderLineCreate(product_id=almonds.id, quantity=10, price=100)],
            paid_amount=1000,
        ),
    )
    orders.create_order(
        session,
        user.id,
        OrderCreate(
            account_id=supplier.id,
            type="purchase",
            items=[OrderLineCreate(product_id=raisins.id, quantity=20, price=50)],
        ),
    )
    ledger.create_transaction(
        session,
        user.id,
        TransactionCreate(description="Rent", category="rent", type="expense", amount=300, paid_amount=300),
    )
    return sale


class TestDashboardSummary:
    def test_figures(self, session, user, books):
        summary = reports.dashboard_summary(session, user.id, today=datetime.now(timezone.utc).date())

        assert summary.total_revenue == 1000
        assert summary.total_expenses == 300
        assert summary.net_profit == 700
        assert summary.profit_margin == 70.0
        assert summary.revenue_by_category == {"selling": 1000}
        assert summary.expenses_by_category == {"rent": 300}
        assert summary.sales_this_month == 1000
        assert summary.orders_pending == 2
        assert summary.total_inventory == 65
        assert summary.out_of_stock_items == 0
        assert summary.low_stock_items == 1
        assert summary.credit_to_collect == 0
        assert summary.debit_to_pay == 1000
        assert summary.cogs == 600
        assert summary.gross_profit == 400
        assert summary.income_in_hand == 700

    def test_cash_flow_covers_six_months(self, session, user, books):
        summary = reports.dashboard_summary(session, user.id, today=datetime.now(timezone.utc).date())
        assert len(summary.cash_flow) == reports.CASH_FLOW_MONTHS
        current = summary.cash_flow[-1]
        assert current.month == datetime.now(timezone.utc).strftime("%Y-%m")
        assert (current.income, current.expense, current.net) == (1000, 300, 700)

    def test_cancelled_sale_drops_out(self, session, user, books):
        orders.update_order(session, user.id, books.id, status="cancelled")
        summary = reports.dashboard_summary(session, user.id, today=datetime.now(timezone.utc).date())
        assert summary.total_revenue == 0
        assert summary.sales_this_month == 0
        assert summary.cogs == 0
        assert summary.profit_margin == 0.0

    def test_empty_tenant(self, session, other_user):
        summary = reports.dashboard_summary(session, other_user.id)
        assert summary.total_revenue == 0
        assert summary.total_inventory == 0
        assert all(point.net == 0 for point in summary.cash_flow)


def test_month_keys_cross_year_boundary():
    assert reports._month_keys(date(2024, 2, 15), 4) == ["2023-11", "2023-12", "2024-01", "2024-02"]


def test_summary_endpoint(client, books):
    response = client.get("/api/admin/summary")
    assert response.status_code == 200
    assert response.json()["net_profit"] == 700

    response = client.get("/api/admin/revenue/category")
    assert response.json() == {"revenue_by_category": {"selling": 1000}}


class TestTimestamps:
    def test_rows_are_stamped_in_utc(self, session, books):
        assert models.utcnow().tzinfo is timezone.utc
        assert models.as_utc(books.created_at).tzinfo == timezone.utc

    def test_as_utc_normalises_naive_and_offset_values(self):
        naive = datetime(2024, 3, 1, 12, 0)
        assert models.as_utc(naive) == datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)
        plus_two = datetime(2024, 3, 1, 14, 0, tzinfo=timezone(timedelta(hours=2)))
        assert models.as_utc(plus_two) == datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)

    def test_sale_from_last_month_is_not_this_months(self, session, user, books):
        books.created_at = datetime(2024, 2, 28, 23, 0, tzinfo=timezone.utc)
        session.add(books)
        session.commit()

        summary = reports.dashboard_summary(session, user.id, today=date(2024, 3, 10))
        assert summary.sales_this_month == 0
        assert [point.month for point in summary.cash_flow][-2:] == ["2024-02", "2024-03"]
