# shopcore/api/routers/addresses.py
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from shopcore.api.errors import to_http
from shopcore.data.database import get_db
from shopcore.domain.errors import ShopError
from shopcore.domain.schemas import Address, AddressIn
from shopcore.services.address_service import AddressService

router = APIRouter(prefix="/addresses", tags=["addresses"])


def get_service(db: Session):
    return AddressService(db)


@router.get("", response_model=List[Address])
def list_addresses(
    owner_id: str = Query(...),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    return svc.list_addresses(owner_id)


@router.post("", response_model=Address, status_code=201)
def add_address(
    payload: AddressIn,
    owner_id: str = Query(...),
    db: Session = Depends(get_db),
):
    """
    Pierwszy adres zawsze zostaje domyslnym.
    """
    svc = get_service(db)
    try:
        return svc.add_address(owner_id, payload)
    except ShopError as e:
        raise to_http(e)


@router.put("/{address_id}", response_model=Address)
def update_address(
    address_id: str,
    payload: AddressIn,
    owner_id: str = Query(...),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    try:
        return svc.update_address(owner_id, address_id, payload)
    except ShopError as e:
        raise to_http(e)


@router.delete("/{address_id}", response_model=List[Address])
def delete_address(
    address_id: str,
    owner_id: str = Query(...),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    try:
        return svc.delete_address(owner_id, address_id)
    except ShopError as e:
        raise to_http(e)


@router.post("/{address_id}/default", response_model=List[Address])
def set_default_address(
    address_id: str,
    owner_id: str = Query(...),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    try:
        return svc.set_default_address(owner_id, address_id)
    except ShopError as e:
        raise to_http(e)
