from typing import List, Optional

from fastapi import APIRouter, Depends, Request
from sqlmodel import Session

from backoffice.db import get_session
from backoffice.routers.auth import require_user
from backoffice.schemas import TransactionCreate, TransactionRead, TransactionUpdate
from backoffice.services import ledger

router = APIRouter(prefix="/api/transactions", tags=["cashier"])


@router.get("", response_model=List[TransactionRead])
def list_transactions(
    request: Request,
    type: Optional[str] = None,
    status: Optional[str] = None,
    session: Session = Depends(get_session),
):
    user = require_user(request, session)
    return ledger.list_transactions(session, user.id, type=type, status=status)


@router.post("", response_model=TransactionRead, status_code=201)
def create_transaction(
    payload: TransactionCreate, request: Request, session: Session = Depends(get_session)
):
    user = require_user(request, session)
    return ledger.create_transaction(session, user.id, payload)


@router.get("/{transaction_id}", response_model=TransactionRead)
def get_transaction(transaction_id: int, request: Request, session: Session = Depends(get_session)):
    user = require_user(request, session)
    return ledger.get_transaction(session, user.id, transaction_id)


@router.put("/{transaction_id}", response_model=TransactionRead)
def update_transaction(
    transaction_id: int,
    payload: TransactionUpdate,
    request: Request,
    session: Session = Depends(get_session),
):
    user = require_user(request, session)
    return ledger.update_transaction(session, user.id, transaction_id, payload)


@router.delete("/{transaction_id}")
def delete_transaction(transaction_id: int, request: Request, session: Session = Depends(get_session)):
    user = require_user(request, session)
    ledger.delete_transaction(session, user.id, transaction_id)
    return {"message": "Transaction deleted successfully"}
