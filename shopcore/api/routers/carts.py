# shopcore/api/routers/carts.py
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from shopcore.api.errors import to_http
from shopcore.data.database import get_db
from shopcore.domain.errors import ShopError
from shopcore.domain.schemas import CartItemIn, CartItemUpdate, CartOut
from shopcore.services.cart_service import CartService

router = APIRouter(prefix="/cart", tags=["cart"])


def get_service(db: Session):
    return CartService(db)


@router.get("", response_model=CartOut)
def get_cart(
    owner_id: str = Query(...),
    db: Session = Depends(get_db),
):
    """
    Koszyk z cenami i sumami policzonymi w chwili odczytu.
    """
    svc = get_service(db)
    return svc.read(owner_id)


@router.post("/items", response_model=CartOut)
def add_item(
    payload: CartItemIn,
    owner_id: str = Query(...),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    try:
        return svc.add_item(
            owner_id,
            product_id=payload.product_id,
            variant_id=payload.variant_id,
            quantity=payload.quantity,
        )
    except ShopError as e:
        raise to_http(e)


@router.patch("/items/{line_id}", response_model=CartOut)
def update_item(
    line_id: int,
    payload: CartItemUpdate,
    owner_id: str = Query(...),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    try:
        return svc.update_item(owner_id, line_id, payload.quantity)
    except ShopError as e:
        raise to_http(e)


@router.delete("/items/{line_id}", response_model=CartOut)
def remove_item(
    line_id: int,
    owner_id: str = Query(...),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    try:
        return svc.remove_item(owner_id, line_id)
    except ShopError as e:
        raise to_http(e)


@router.delete("", response_model=CartOut)
def clear_cart(
    owner_id: str = Query(...),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    return svc.clear(owner_id)
