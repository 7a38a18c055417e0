# grabcoffee/celery_worker.py
from celery import Celery

from grabcoffee.utils.settings import CELERY_BROKER_URL, CELERY_RESULT_BACKEND

celery_app = Celery(
    "grabcoffee",
    broker=CELERY_BROKER_URL,
    backend=CELERY_RESULT_BACKEND,
)

# WAZNE: explicite importuj taski, zeby Celery je zarejestrowal
celery_app.conf.imports = (
    "grabcoffee.tasks.reconcile",
    "grabcoffee.services.notification_service",
)

celery_app.conf.beat_schedule = {
    "reconcile-pending-orders-every-5-minutes": {
        "task": "grabcoffee.tasks.reconcile.reconcile_pending_orders_task",
        "schedule": 300.0,
    },
}

celery_app.conf.timezone = "UTC"
