# shopcore/api/routers/orders.py
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from shopcore.api.errors import to_http
from shopcore.data.database import get_db
from shopcore.domain.errors import ShopError
from shopcore.domain.schemas import CheckoutOut, OrderCreate, OrderOut, OrderStatusUpdate
from shopcore.services.order_service import OrderService

router = APIRouter(prefix="/orders", tags=["orders"])


def get_service(db: Session):
    return OrderService(db)


@router.post("", response_model=CheckoutOut, status_code=201)
def create_order(
    payload: OrderCreate,
    owner_id: str = Query(...),
    db: Session = Depends(get_db),
):
    """
    Tworzy zamówienie z aktualnego koszyka i zaklada platnosc w bramce.
    Koszyk i stan magazynu zmieniaja sie dopiero po weryfikacji platnosci.
    """
    svc = get_service(db)
    try:
        return svc.create_order(owner_id, payload)
    except ShopError as e:
        raise to_http(e)


@router.get("", response_model=List[OrderOut])
def list_orders(
    owner_id: str = Query(...),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    return svc.list_orders(owner_id)


@router.get("/{order_id}", response_model=OrderOut)
def get_order(
    order_id: int,
    owner_id: str = Query(...),
    db: Session = Depends(get_db),
):
    """
    Pobiera szczegóły zamówienia.
    """
    svc = get_service(db)
    try:
        return svc.get_order(owner_id, order_id)
    except ShopError as e:
        raise to_http(e)


@router.post("/{order_id}/resume-payment", response_model=CheckoutOut)
def resume_payment(
    order_id: int,
    owner_id: str = Query(...),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    try:
        return svc.resume_payment(owner_id, order_id)
    except ShopError as e:
        raise to_http(e)


@router.patch("/{order_id}/status", response_model=OrderOut)
def update_status(
    order_id: int,
    payload: OrderStatusUpdate,
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    try:
        return svc.update_status(order_id, payload.status, payload.admin_note)
    except ShopError as e:
        raise to_http(e)
