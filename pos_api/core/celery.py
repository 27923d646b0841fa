"""
Celery configuration for background tasks
"""
from celery import Celery
import logging

from pos_api.core.config import settings

logger = logging.getLogger(__name__)

celery_app = Celery(
    "pos_api",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=[
        "pos_api.modules.sales.tasks",
    ]
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone=settings.TIMEZONE,
    enable_utc=True,
    task_track_started=True,
    task_time_limit=10 * 60,
    task_soft_time_limit=8 * 60,
    worker_prefetch_multiplier=1,
    worker_max_tasks_per_child=1000,

    result_expires=3600,  # 1 hour

    task_routes={
        "pos_api.modules.sales.tasks.*": {"queue": "invoices"},
    },

    # Beat schedule for periodic tasks
    beat_schedule={
        "regenerate-pending-invoices": {
            "task": "pos_api.modules.sales.tasks.regenerate_pending_invoices",
            "schedule": 300.0,  # Cada 5 minutos
        },
    }
)

if __name__ == "__main__":
    celery_app.start()
