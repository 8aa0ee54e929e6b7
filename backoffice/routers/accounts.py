import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Request
from sqlmodel import Session, select

from backoffice.db import get_session
from backoffice.errors import ConflictError, InvalidRequestError, NotFoundError
from backoffice.models import ACCOUNT_STATUSES, ACCOUNT_TYPES, Account
from backoffice.routers.auth import require_user
from backoffice.schemas import AccountCreate, AccountUpdate
from backoffice.services.orders import account_has_orders

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/accounts", tags=["accounts"])


def _get_account(session: Session, owner_id: int, account_id: int) -> Account:
    account = session.exec(
        select(Account).where(Account.id == account_id, Account.owner_id == owner_id)
    ).first()
    if not account:
        raise NotFoundError("Account", account_id)
    return account


def _check_status(status: Optional[str]) -> None:
    if status is not None and status not in ACCOUNT_STATUSES:
        raise InvalidRequestError("Account status must be 'active' or 'inactive'")


@router.get("", response_model=List[Account])
def list_accounts(
    request: Request, type: Optional[str] = None, session: Session = Depends(get_session)
):
    user = require_user(request, session)
    statement = select(Account).where(Account.owner_id == user.id)
    if type is not None:
        if type not in ACCOUNT_TYPES:
            raise InvalidRequestError(f"Invalid account type '{type}'")
        statement = statement.where(Account.type == type)
    return session.exec(statement.order_by(Account.name)).all()


@router.post("", response_model=Account, status_code=201)
def create_account(payload: AccountCreate, request: Request, session: Session = Depends(get_session)):
    user = require_user(request, session)
    if payload.type not in ACCOUNT_TYPES:
        raise InvalidRequestError("Invalid or missing account type.")
    _check_status(payload.status)
    account = Account(owner_id=user.id, **payload.model_dump())
    session.add(account)
    session.commit()
    session.refresh(account)
    return account


@router.get("/{account_id}", response_model=Account)
def get_account(account_id: int, request: Request, session: Session = Depends(get_session)):
    user = require_user(request, session)
    return _get_account(session, user.id, account_id)


@router.put("/{account_id}", response_model=Account)
def update_account(
    account_id: int, payload: AccountUpdate, request: Request, session: Session = Depends(get_session)
):
    user = require_user(request, session)
    account = _get_account(session, user.id, account_id)
    changes = payload.model_dump(exclude_unset=True)
    if "type" in changes and changes["type"] not in ACCOUNT_TYPES:
        raise InvalidRequestError("Invalid account type.")
    _check_status(changes.get("status"))
    for key, value in changes.items():
        if key in ("name", "status", "type") and value is None:
            continue
        setattr(account, key, value)
    session.add(account)
    session.commit()
    session.refresh(account)
    return account


@router.delete("/{account_id}")
def delete_account(account_id: int, request: Request, session: Session = Depends(get_session)):
    user = require_user(request, session)
    account = _get_account(session, user.id, account_id)
    if account_has_orders(session, user.id, account.id):
        logger.warning("refused to delete account %s: it has orders", account.id)
        raise ConflictError("This account has existing orders, set it to inactive instead.")
    session.delete(account)
    session.commit()
    return {"message": "Account deleted successfully"}
