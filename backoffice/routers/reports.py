from fastapi import APIRouter, Depends, Request
from sqlmodel import Session

from backoffice.db import get_session
from backoffice.routers.auth import require_user
from backoffice.schemas import DashboardSummary
from backoffice.services import reports

router = APIRouter(prefix="/api/admin", tags=["reports"])


@router.get("/summary", response_model=DashboardSummary)
def summary(request: Request, session: Session = Depends(get_session)):
    user = require_user(request, session)
    return reports.dashboard_summary(session, user.id)


@router.get("/revenue/category")
def revenue_by_category(request: Request, session: Session = Depends(get_session)):
    user = require_user(request, session)
    return {"revenue_by_category": reports.revenue_by_category(session, user.id)}
