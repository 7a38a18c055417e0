# grabcoffee/tasks/reconcile.py
from datetime import datetime, timezone, timedelta

from grabcoffee.celery_worker import celery_app
from grabcoffee.data.database import SessionLocal
from grabcoffee.repos.order_repo import OrderRepo
from grabcoffee.services.stripe_client import StripeClient
from grabcoffee.utils.settings import PENDING_ORDER_TTL_SECONDS
from grabcoffee.utils.logging import get_logger

logger = get_logger(__name__)

#intent w tych stanach juz nie zostanie oplacony bez nowej akcji klienta
ABANDONED_INTENT_STATUSES = {"canceled", "requires_payment_method"}


def reconcile_pending_orders(db, stripe_client: StripeClient, now: datetime | None = None) -> int:
    """Usuwa grupy wierszy, ktorych PaymentIntent porzucono. Zwraca liczbe usunietych wierszy."""
    now = now or datetime.now(timezone.utc)
    repo = OrderRepo(db)

    stale = repo.get_stale_pending(now - timedelta(seconds=PENDING_ORDER_TTL_SECONDS))
    logger.info(f"Found {len(stale)} pending orders to check")

    removed = 0
    for order in stale:
        try:
            intent = stripe_client.retrieve_payment_intent(order.payment_intent_id)
        except Exception as e:
            logger.warning(f"Failed to check intent {order.payment_intent_id} for order {order.id}: {e}")
            continue

        status = intent.get("status")
        if status not in ABANDONED_INTENT_STATUSES:
            continue

        count = repo.delete_group(order.created_at, order.name, order.user_id)
        removed += count
        logger.info(f"Removed {count} rows of abandoned order {order.id} (intent {status})")

    return removed


@celery_app.task(name="grabcoffee.tasks.reconcile.reconcile_pending_orders_task")
def reconcile_pending_orders_task():
    logger.info("Reconcile pending orders task started")

    db = SessionLocal()
    try:
        return reconcile_pending_orders(db, StripeClient())
    finally:
        db.close()
