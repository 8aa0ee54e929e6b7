from typing import List

from fastapi import APIRouter, Depends, Request
from sqlmodel import Session

from backoffice.db import get_session
from backoffice.routers.auth import require_user
from backoffice.schemas import ManufactureRequest, ManufactureResult, ProductionBatchRead
from backoffice.services import manufacturing

router = APIRouter(prefix="/api/manufacture", tags=["production"])


@router.get("", response_model=List[ProductionBatchRead])
def list_batches(request: Request, session: Session = Depends(get_session)):
    user = require_user(request, session)
    return manufacturing.list_batches(session, user.id)


@router.post("", response_model=ManufactureResult, status_code=201)
def manufacture(payload: ManufactureRequest, request: Request, session: Session = Depends(get_session)):
    user = require_user(request, session)
    batch = manufacturing.manufacture(session, user.id, payload)
    return ManufactureResult(batch_id=batch.id)


@router.get("/{batch_id}", response_model=ProductionBatchRead)
def get_batch(batch_id: int, request: Request, session: Session = Depends(get_session)):
    user = require_user(request, session)
    return manufacturing.get_batch(session, user.id, batch_id)
