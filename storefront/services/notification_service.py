# storefront/services/notification_service.py
from storefront.celery_worker import celery_app
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

ORDER_PLACED = "placed"
ORDER_STATUS_CHANGED = "status_changed"
ORDER_CANCELLED = "cancelled"


class NotificationService:
    """
    Serwis do wysylania powiadomien o zamowieniach.
    Uzywa Celery do asynchronicznego przetwarzania.
    """

    @staticmethod
    def send_order_notification(user_id: int, order_id: int, event: str, status: str | None = None):
        send_order_notification_task.delay(user_id, order_id, event, status)


@celery_app.task(name="storefront.services.notification_service.send_order_notification_task")
def send_order_notification_task(user_id: int, order_id: int, event: str, status: str | None = None):
    """
    Celery task - w prawdziwym systemie wyslalby email/SMS/push.
    Teraz tylko loguje.
    """
    if event == ORDER_PLACED:
        logger.info(f"[NOTIFICATION] User {user_id}: Order {order_id} is being processed")
    elif event == ORDER_CANCELLED:
        logger.info(f"[NOTIFICATION] User {user_id}: Order {order_id} was cancelled")
    else:
        logger.info(f"[NOTIFICATION] User {user_id}: Order {order_id} is now {status}")

    return {"user_id": user_id, "order_id": order_id, "event": event, "status": "sent"}
