import logging
import os

from fastapi import FastAPI
from sqlmodel import Session

from backoffice.db import init_db, engine
from backoffice.errors import register_exception_handlers
from backoffice.logging_config import configure_logging
from backoffice.routers import (
    accounts,
    backups,
    demo,
    manufacture,
    orders,
    products,
    reports,
    settings,
    transactions,
)
from backoffice.routers.auth import router as auth_router

logger = logging.getLogger(__name__)

app = FastAPI(title="Small Business Back Office")

register_exception_handlers(app)

_scheduler = None


@app.on_event("startup")
def on_startup() -> None:
    configure_logging()
    init_db()
    enable_backup = os.getenv("ENABLE_DAILY_BACKUP", "false").lower() == "true"
    if enable_backup:
        from apscheduler.schedulers.background import BackgroundScheduler

        def _run_backup_job():
            from backoffice.backups import run_all_backups

            with Session(engine) as session:
                count = run_all_backups(session)
            logger.info("daily backup finished for %d tenant(s)", count)

        global _scheduler
        if _scheduler is None:
            _scheduler = BackgroundScheduler(daemon=True)
            _scheduler.add_job(_run_backup_job, "interval", days=1)
            _scheduler.start()
            logger.info("daily backup job scheduled")


@app.on_event("shutdown")
def on_shutdown() -> None:
    global _scheduler
    if _scheduler is not None:
        _scheduler.shutdown(wait=False)
        _scheduler = None


@app.get("/")
def root():
    return {"service": app.title, "status": "ok"}


app.include_router(auth_router)
app.include_router(accounts.router)
app.include_router(products.router)
app.include_router(orders.router)
app.include_router(transactions.router)
app.include_router(manufacture.router)
app.include_router(settings.router)
app.include_router(reports.router)
app.include_router(demo.router)
app.include_router(backups.router)
