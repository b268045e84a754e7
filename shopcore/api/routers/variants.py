# shopcore/api/routers/variants.py
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from shopcore.api.errors import to_http
from shopcore.data.database import get_db
from shopcore.domain.errors import ShopError
from shopcore.domain.schemas import VariantIn, VariantOut
from shopcore.services.variant_service import VariantService

router = APIRouter(tags=["variants"])


def get_service(db: Session):
    return VariantService(db)


@router.get("/products/{product_id}/variants", response_model=List[VariantOut])
def list_variants(product_id: int, db: Session = Depends(get_db)):
    svc = get_service(db)
    try:
        return svc.list_variants(product_id)
    except ShopError as e:
        raise to_http(e)


@router.post("/products/{product_id}/variants", response_model=VariantOut, status_code=201)
def create_variant(product_id: int, payload: VariantIn, db: Session = Depends(get_db)):
    svc = get_service(db)
    try:
        return svc.create_variant(product_id, payload)
    except ShopError as e:
        raise to_http(e)


@router.put("/variants/{variant_id}", response_model=VariantOut)
def update_variant(variant_id: int, payload: VariantIn, db: Session = Depends(get_db)):
    svc = get_service(db)
    try:
        return svc.update_variant(variant_id, payload)
    except ShopError as e:
        raise to_http(e)


@router.delete("/variants/{variant_id}", response_model=List[VariantOut])
def delete_variant(variant_id: int, db: Session = Depends(get_db)):
    svc = get_service(db)
    try:
        return svc.delete_variant(variant_id)
    except ShopError as e:
        raise to_http(e)


@router.post("/variants/{variant_id}/default", response_model=List[VariantOut])
def set_default_variant(variant_id: int, db: Session = Depends(get_db)):
    svc = get_service(db)
    try:
        return svc.set_default_variant(variant_id)
    except ShopError as e:
        raise to_http(e)
