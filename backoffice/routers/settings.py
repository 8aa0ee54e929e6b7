from fastapi import APIRouter, Depends, Request
from sqlmodel import Session, select

from backoffice.db import get_session
from backoffice.errors import NotFoundError
from backoffice.models import Company
from backoffice.routers.auth import require_user
from backoffice.schemas import CompanySettings

router = APIRouter(prefix="/api/settings", tags=["settings"])


@router.get("", response_model=CompanySettings)
def get_settings(request: Request, session: Session = Depends(get_session)):
    user = require_user(request, session)
    company = session.exec(select(Company).where(Company.owner_id == user.id)).first()
    if not company:
        raise NotFoundError("Company settings")
    return company


@router.post("", response_model=CompanySettings)
def save_settings(payload: CompanySettings, request: Request, session: Session = Depends(get_session)):
    user = require_user(request, session)
    company = session.exec(select(Company).where(Company.owner_id == user.id)).first()
    if company is None:
        company = Company(owner_id=user.id, **payload.model_dump())
    else:
        for key, value in payload.model_dump().items():
            setattr(company, key, value)
    session.add(company)
    session.commit()
    session.refresh(company)
    return company
