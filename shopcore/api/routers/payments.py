# shopcore/api/routers/payments.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from shopcore.api.errors import to_http
from shopcore.data.database import get_db
from shopcore.domain.errors import AlreadyVerified, ShopError
from shopcore.domain.schemas import PaymentVerifyIn, VerificationOut
from shopcore.services.lock_service import LockService
from shopcore.services.payment_gateway import PaymentGatewayClient
from shopcore.services.payment_service import PaymentService

router = APIRouter(prefix="/payments", tags=["payments"])


def get_service(db: Session):
    return PaymentService(
        db=db,
        gateway=PaymentGatewayClient(),
        lock_service=LockService(),
    )


@router.post("/verify", response_model=VerificationOut)
def verify_payment(
    payload: PaymentVerifyIn,
    db: Session = Depends(get_db),
):
    """
    Callback po platnosci. Powtorzony callback zwraca sukces bez zmian.
    """
    svc = get_service(db)
    try:
        result = svc.verify(
            payload.order_id,
            payload.gateway_order_id,
            payload.gateway_payment_id,
            payload.signature,
        )
    except AlreadyVerified as e:
        return VerificationOut(
            success=True,
            message=e.message,
            order_id=payload.order_id,
            already_verified=True,
            redirect_url=f"/orders/{payload.order_id}",
        )
    except ShopError as e:
        raise to_http(e)

    return VerificationOut(
        success=result.success,
        message=result.message,
        order_id=result.order_id,
        order_number=result.order_number,
        status=result.status,
        payment_status=result.payment_status,
        redirect_url=f"/orders/{result.order_id}" if result.success else None,
    )
