# grabcoffee/services/notification_service.py
from grabcoffee.celery_worker import celery_app
from grabcoffee.utils.logging import get_logger

logger = get_logger(__name__)


class NotificationService:
    """
    Powiadomienia dla obslugi kawiarni.
    Uzywa Celery do asynchronicznego przetwarzania.
    """

    @staticmethod
    def send_order_placed(order_id: int, customer_name: str, payment_method: str):
        send_order_placed_task.delay(order_id, customer_name, payment_method)


@celery_app.task(name="grabcoffee.services.notification_service.send_order_placed_task")
def send_order_placed_task(order_id: int, customer_name: str, payment_method: str):
    """
    Celery task - tablet baristy odpytuje tabele orders, tu tylko logujemy.
    """
    logger.info(f"[NOTIFICATION] New order {order_id} for {customer_name} ({payment_method})")
    return {"order_id": order_id, "status": "sent"}
