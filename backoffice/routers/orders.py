from typing import List

from fastapi import APIRouter, Depends, Request
from sqlmodel import Session

from backoffice.db import get_session
from backoffice.routers.auth import require_user
from backoffice.schemas import (
    AccountUsage,
    OrderCreate,
    OrderCreated,
    OrderItemRead,
    OrderRead,
    OrderUpdate,
    TransactionRead,
)
from backoffice.services import orders

router = APIRouter(prefix="/api/orders", tags=["orders"])


@router.get("", response_model=List[OrderRead])
def list_orders(request: Request, session: Session = Depends(get_session)):
    user = require_user(request, session)
    return orders.list_orders(session, user.id)


@router.post("", response_model=OrderCreated, status_code=201)
def create_order(payload: OrderCreate, request: Request, session: Session = Depends(get_session)):
    user = require_user(request, session)
    order, _, transaction = orders.create_order(session, user.id, payload)
    return OrderCreated(
        order=orders.get_order(session, user.id, order.id),
        order_items=orders.list_order_items(session, user.id, order.id),
        transaction=TransactionRead(**transaction.model_dump()),
    )


@router.get("/check-account/{account_id}", response_model=AccountUsage)
def check_account(account_id: int, request: Request, session: Session = Depends(get_session)):
    user = require_user(request, session)
    return AccountUsage(has_orders=orders.account_has_orders(session, user.id, account_id))


@router.get("/{order_id}", response_model=OrderRead)
def get_order(order_id: int, request: Request, session: Session = Depends(get_session)):
    user = require_user(request, session)
    return orders.get_order(session, user.id, order_id)


@router.get("/{order_id}/items", response_model=List[OrderItemRead])
def list_order_items(order_id: int, request: Request, session: Session = Depends(get_session)):
    user = require_user(request, session)
    return orders.list_order_items(session, user.id, order_id)


@router.put("/{order_id}", response_model=OrderRead)
def update_order(
    order_id: int, payload: OrderUpdate, request: Request, session: Session = Depends(get_session)
):
    user = require_user(request, session)
    orders.update_order(
        session,
        user.id,
        order_id,
        status=payload.status,
        paid_amount=payload.paid_amount,
        payment=payload.payment,
    )
    return orders.get_order(session, user.id, order_id)


@router.delete("/{order_id}")
def delete_order(order_id: int, request: Request, session: Session = Depends(get_session)):
    user = require_user(request, session)
    orders.delete_order(session, user.id, order_id)
    return {"message": "Order and all related records deleted."}
