from fastapi import APIRouter, Depends, Request
from sqlmodel import Session

from backoffice.db import get_session
from backoffice.routers.auth import require_user
from backoffice.services import demo

router = APIRouter(prefix="/api/demo", tags=["demo"])


@router.post("/generate", status_code=201)
def generate(request: Request, session: Session = Depends(get_session)):
    user = require_user(request, session)
    return demo.generate_demo_data(session, user.id)


@router.delete("")
def clear(request: Request, session: Session = Depends(get_session)):
    user = require_user(request, session)
    return demo.delete_tenant_data(session, user.id)
