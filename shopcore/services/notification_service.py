# shopcore/services/notification_service.py
from shopcore.celery_worker import celery_app
from shopcore.utils.logging import get_logger

logger = get_logger(__name__)

ORDER_CREATED = "order.created"
ORDER_STATUS_CHANGED = "order.status_changed"
PAYMENT_VERIFIED = "payment.verified"
PAYMENT_FAILED = "payment.failed"
RECONCILIATION_REQUIRED = "inventory.reconciliation_required"


class NotificationService:
    """
    Emituje zdarzenia domenowe po zmianach zamowien i platnosci.
    Subskrybenci (odswiezenie cache UI, maile) dzialaja w Celery.
    """

    def emit(self, event: str, **payload) -> None:
        logger.info(f"Emitting {event} {payload}")
        dispatch_event_task.delay(event, payload)


@celery_app.task(name="shopcore.services.notification_service.dispatch_event_task")
def dispatch_event_task(event: str, payload: dict):
    """
    Celery task - w prawdziwym systemie uniewaznialby cache storefrontu
    i wysylal maile. Teraz tylko loguje.
    """
    logger.info(f"[EVENT] {event}: {payload}")
    return {"event": event, "payload": payload, "status": "sent"}
