from typing import List

from fastapi import APIRouter, Depends, Request
from sqlmodel import Session

from backoffice.db import get_session
from backoffice.models import Product
from backoffice.routers.auth import require_user
from backoffice.schemas import ProductCreate, ProductUpdate, StockMovementRead
from backoffice.services import catalog, stock

router = APIRouter(prefix="/api/products", tags=["inventory"])


@router.get("", response_model=List[Product])
def list_products(request: Request, session: Session = Depends(get_session)):
    user = require_user(request, session)
    return catalog.list_products(session, user.id)


@router.post("", response_model=Product, status_code=201)
def create_product(payload: ProductCreate, request: Request, session: Session = Depends(get_session)):
    user = require_user(request, session)
    return catalog.create_product(session, user.id, payload)


@router.get("/{product_id}", response_model=Product)
def get_product(product_id: int, request: Request, session: Session = Depends(get_session)):
    user = require_user(request, session)
    return catalog.get_product(session, user.id, product_id)


@router.put("/{product_id}", response_model=Product)
def update_product(
    product_id: int, payload: ProductUpdate, request: Request, session: Session = Depends(get_session)
):
    user = require_user(request, session)
    return catalog.update_product(session, user.id, product_id, payload)


@router.delete("/{product_id}")
def delete_product(product_id: int, request: Request, session: Session = Depends(get_session)):
    user = require_user(request, session)
    catalog.delete_product(session, user.id, product_id)
    return {"message": "Product deleted successfully"}


@router.get("/{product_id}/movements", response_model=List[StockMovementRead])
def list_product_movements(product_id: int, request: Request, session: Session = Depends(get_session)):
    user = require_user(request, session)
    catalog.get_product(session, user.id, product_id)
    return stock.list_movements(session, user.id, product_id)
