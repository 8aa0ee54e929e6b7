from . import (
    accounts,
    auth,
    backups,
    demo,
    manufacture,
    orders,
    products,
    reports,
    settings,
    transactions,
)

__all__ = [
    "accounts",
    "auth",
    "backups",
    "demo",
    "manufacture",
    "orders",
    "products",
    "reports",
    "settings",
    "transactions",
]
