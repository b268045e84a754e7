# shopcore/api/routers/payment_methods.py
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from shopcore.api.errors import to_http
from shopcore.data.database import get_db
from shopcore.domain.errors import ShopError
from shopcore.domain.schemas import PaymentMethod, PaymentMethodIn
from shopcore.services.payment_method_service import PaymentMethodService

router = APIRouter(prefix="/payment-methods", tags=["payment-methods"])


def get_service(db: Session):
    return PaymentMethodService(db)


@router.get("", response_model=List[PaymentMethod])
def list_methods(
    owner_id: str = Query(...),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    return svc.list_methods(owner_id)


@router.post("", response_model=PaymentMethod, status_code=201)
def add_method(
    payload: PaymentMethodIn,
    owner_id: str = Query(...),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    try:
        return svc.add_method(owner_id, payload)
    except ShopError as e:
        raise to_http(e)


@router.delete("/{method_id}", response_model=List[PaymentMethod])
def delete_method(
    method_id: str,
    owner_id: str = Query(...),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    try:
        return svc.delete_method(owner_id, method_id)
    except ShopError as e:
        raise to_http(e)


@router.post("/{method_id}/default", response_model=List[PaymentMethod])
def set_default_method(
    method_id: str,
    owner_id: str = Query(...),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    try:
        return svc.set_default_method(owner_id, method_id)
    except ShopError as e:
        raise to_http(e)
